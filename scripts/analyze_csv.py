"""
Offline analysis script.

Loads one or more enrollment CSV files (or directories of them), runs every
analysis over the combined dataset and writes a JSON report.

    python scripts/analyze_csv.py data/ --method iqr --sensitivity high -o report.json
"""
import argparse
import json
import logging
import os
import sys
from datetime import date
from pathlib import Path

from tqdm import tqdm

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sentinel.config import configure_logging
from sentinel.exceptions import SentinelError
from sentinel.services.analysis_service import AnalysisService
from sentinel.services.ingestion import load_policy_events, records_from_csv
from sentinel.utils.date_utils import parse_date_string

logger = logging.getLogger(__name__)


def find_csv_files(paths):
    """Expand directories into the CSV files they contain."""
    csv_files = []
    for path in paths:
        if os.path.isdir(path):
            for f in sorted(os.listdir(path)):
                if f.endswith('.csv'):
                    csv_files.append(os.path.join(path, f))
        else:
            csv_files.append(path)
    return csv_files


def load_rows(csv_files):
    rows = []
    for csv_file in tqdm(csv_files, desc="Files"):
        try:
            file_rows = records_from_csv(Path(csv_file))
        except SentinelError as e:
            logger.error(f"Skipping {os.path.basename(csv_file)}: {e}")
            continue
        logger.info(f"  {os.path.basename(csv_file)}: {len(file_rows)} rows")
        rows.extend(file_rows)
    return rows


def build_report(service: AnalysisService, method: str, sensitivity: str) -> dict:
    return {
        "summary": service.summary(),
        "anomalies": [a.to_dict() for a in service.detect_anomalies(method, sensitivity)],
        "risk_matrix": [e.to_dict() for e in service.score_risk()],
        "patterns": service.recognize_patterns().to_dict(),
        "forecast": service.forecast().to_dict(),
        "alerts": service.evaluate_alerts().to_dict()["active"],
        "policy_correlation": [c.to_dict() for c in service.policy_correlation()],
        "age_analysis": service.analyze_age_groups().to_dict(),
        "data_quality": service.assess_data_quality().to_dict(),
        "districts": [d.to_dict() for d in service.compare_districts()],
    }


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Run enrollment risk analytics over CSV files.")
    parser.add_argument("paths", nargs="+", help="CSV files or directories containing CSV files")
    parser.add_argument("--method", choices=["zscore", "iqr", "growth"], default="zscore")
    parser.add_argument("--sensitivity", choices=["low", "medium", "high"], default="medium")
    parser.add_argument("--today", help="Analysis date (YYYY-MM-DD or DD-MM-YYYY), defaults to the current date")
    parser.add_argument("--policy-events", help="JSON file with the policy timeline")
    parser.add_argument("--strict", action="store_true", help="Fail on the first malformed record")
    parser.add_argument("-o", "--output", help="Write the report here instead of stdout")
    args = parser.parse_args(argv)

    configure_logging()

    today = date.today()
    if args.today:
        today = parse_date_string(args.today)
        if today is None:
            parser.error(f"Unrecognised --today value: {args.today}")

    csv_files = find_csv_files(args.paths)
    if not csv_files:
        logger.warning("No CSV files found")
        return 1

    service = AnalysisService(
        policy_events=load_policy_events(args.policy_events),
        strict=args.strict,
        today=lambda: today,
    )
    snapshot = service.aggregate(load_rows(csv_files))
    if snapshot.is_empty:
        logger.error("No usable records were loaded")
        return 1

    report = build_report(service, args.method, args.sensitivity)
    text = json.dumps(report, indent=2, default=str)

    if args.output:
        with open(args.output, 'w', encoding='utf-8') as f:
            f.write(text)
        logger.info(f"Report written to {args.output}")
    else:
        print(text)

    logger.info(
        f"Analyzed {len(snapshot.records):,} records across {len(snapshot.pins)} locations "
        f"({snapshot.rejected_count} rejected, {len(report['anomalies'])} anomalies, "
        f"{len(report['alerts'])} alerts)"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
