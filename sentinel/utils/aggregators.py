"""
Data aggregation and small numeric utility functions.
"""
import math
import warnings
from typing import List, Sequence

import numpy as np
import pandas as pd
from scipy import stats


def aggregate_monthly(
    df: pd.DataFrame,
    value_columns: List[str],
    date_column: str = 'date'
) -> pd.DataFrame:
    """
    Sum value columns per calendar month.

    Args:
        df: Input DataFrame with a date column
        value_columns: Columns to sum
        date_column: Name of date column

    Returns:
        DataFrame with one row per month, the month start in date_column
    """
    if df.empty:
        return df

    df = df.copy()
    df['period'] = pd.to_datetime(df[date_column]).dt.to_period('M')
    agg_df = df.groupby('period')[value_columns].sum().reset_index()
    agg_df[date_column] = agg_df['period'].dt.to_timestamp()
    return agg_df.drop('period', axis=1).sort_values(date_column).reset_index(drop=True)


def aggregate_by_district(df: pd.DataFrame) -> pd.DataFrame:
    """Sum every numeric column per (state, district)."""
    if df.empty:
        return df

    group_cols = ['state', 'district']
    value_columns = [c for c in df.select_dtypes(include=['number']).columns if c not in group_cols]
    return df.groupby(group_cols)[value_columns].sum().reset_index()


def round_half_up(value: float) -> int:
    """Round to nearest integer with .5 going up (not banker's rounding)."""
    return int(math.floor(value + 0.5))


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    """Clamp a score into [low, high]."""
    return max(low, min(high, value))


def percentage(part: float, total: float, digits: int = 1) -> float:
    """part / total as a percentage, 0.0 when total is zero."""
    if not total:
        return 0.0
    return round(part / total * 100, digits)


def population_mean_std(values: Sequence[float]):
    """
    Population mean and standard deviation (ddof=0).

    Returns:
        (mean, std); (0.0, 0.0) for an empty sequence
    """
    if len(values) == 0:
        return 0.0, 0.0
    arr = np.asarray(values, dtype=float)
    return float(arr.mean()), float(arr.std(ddof=0))


def pearson_correlation(x: Sequence[float], y: Sequence[float]) -> float:
    """
    Pearson correlation coefficient of two equal-length series.

    Unequal lengths, fewer than two points or a constant series give 0.0
    instead of an error or NaN.
    """
    if len(x) != len(y) or len(x) < 2:
        return 0.0

    a = np.asarray(x, dtype=float)
    b = np.asarray(y, dtype=float)
    if np.ptp(a) == 0 or np.ptp(b) == 0:
        return 0.0

    with warnings.catch_warnings():
        warnings.simplefilter("ignore", RuntimeWarning)
        r = stats.pearsonr(a, b)[0]

    if not np.isfinite(r):
        return 0.0
    return float(r)
