"""
Ingestion - raw CSV / JSON rows to canonical record mappings.

Column headers from dashboard exports vary ("Pincode", "Age 0 5",
"age_18_greater", ...). They are normalized here; per-record validation and
rejection counting happen in the aggregator.
"""
import io
import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import pandas as pd

from sentinel.exceptions import StructuralInputError
from sentinel.schemas.records import PolicyEvent
from sentinel.utils.constants import DEFAULT_POLICY_TIMELINE

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ["date", "state", "district", "location_code"]
COUNT_FIELDS = ["age_0_5", "age_5_17", "age_18_plus"]


def normalize_header(header: str) -> Optional[str]:
    """
    Map a source column header onto a canonical record field.

    Args:
        header: Column name as it appears in the upload

    Returns:
        Canonical field name, or None for columns that are not used
    """
    key = re.sub(r"[^a-z0-9]", "", str(header).lower())
    if not key:
        return None

    if key.startswith("age"):
        if "18" in key or "greater" in key or "plus" in key or "above" in key:
            return "age_18_plus"
        if "517" in key:
            return "age_5_17"
        if "05" in key:
            return "age_0_5"
        return None

    if "date" in key:
        return "date"
    if "state" in key:
        return "state"
    if "district" in key:
        return "district"
    if "pin" in key or key in ("locationcode", "location"):
        return "location_code"
    return None


def _clean_value(value):
    if value is None:
        return None
    if isinstance(value, float) and value != value:  # NaN
        return None
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def _parse_count(value):
    """Numeric text such as "12" or "12.0" to int; anything else is left for validation."""
    if isinstance(value, str):
        try:
            number = float(value.replace(",", ""))
        except ValueError:
            return value
        return int(number) if number.is_integer() else value
    return value


def records_from_rows(rows: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    """
    Normalize headers and values of raw rows.

    Args:
        rows: Mappings keyed by source column headers

    Returns:
        Mappings keyed by canonical field names. Rows are not validated
        here; the aggregator accepts or rejects each one.
    """
    normalized = []
    for row in rows:
        record: Dict[str, Any] = {}
        for header, value in dict(row).items():
            field = normalize_header(header)
            if field is None or field in record:
                continue
            value = _clean_value(value)
            if field in COUNT_FIELDS:
                value = _parse_count(value)
            record[field] = value
        normalized.append(record)
    return normalized


def records_from_csv(source: Union[str, Path]) -> List[Dict[str, Any]]:
    """
    Read CSV text or a CSV file into canonical record mappings.

    Args:
        source: CSV content as a string, or a Path to a CSV file. Strings
            are always parsed as CSV text, never opened as paths.

    Raises:
        StructuralInputError: file is empty or lacks a required column
    """
    if isinstance(source, Path):
        logger.info(f"Reading CSV file {source}")
        buffer = source
    else:
        buffer = io.StringIO(source)

    try:
        df = pd.read_csv(buffer, dtype=str, skipinitialspace=True)
    except pd.errors.EmptyDataError as e:
        raise StructuralInputError("No data found in file") from e
    except pd.errors.ParserError as e:
        raise StructuralInputError(f"Could not parse CSV: {e}") from e

    if df.empty:
        raise StructuralInputError("No data found in file")

    mapped = {normalize_header(c) for c in df.columns}
    missing = [f for f in REQUIRED_FIELDS if f not in mapped]
    if missing:
        raise StructuralInputError(f"Missing required columns: {', '.join(missing)}")

    df = df.astype(object).where(pd.notna(df), None)
    records = records_from_rows(df.to_dict(orient="records"))
    logger.info(f"Read {len(records)} rows from CSV ({len(df.columns)} columns)")
    return records


def load_policy_events(path: Optional[Union[str, Path]] = None) -> List[PolicyEvent]:
    """
    Load the policy timeline from a JSON file, or the built-in default.

    Args:
        path: JSON file holding a list of {"date", "title", "description"}

    Raises:
        StructuralInputError: the file is not a list of valid events
    """
    if path is None:
        raw = DEFAULT_POLICY_TIMELINE
    else:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
        if not isinstance(raw, list):
            raise StructuralInputError(f"Policy events file {path} must contain a JSON list")
        logger.info(f"Loaded {len(raw)} policy events from {path}")

    try:
        events = [PolicyEvent.model_validate(item) for item in raw]
    except ValueError as e:
        raise StructuralInputError(f"Invalid policy event: {e}") from e
    return sorted(events, key=lambda e: e.date)
