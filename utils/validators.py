from __future__ import annotations

from typing import Iterable, List

import pandas as pd


class SchemaError(ValueError):
    """An input table lacks columns the pipeline cannot run without."""


def missing_columns(df: pd.DataFrame, required_columns: Iterable[str]) -> List[str]:
    return [col for col in required_columns if col not in df.columns]


def require_columns(df: pd.DataFrame, required_columns: Iterable[str], source: str) -> None:
    missing = missing_columns(df, required_columns)
    if missing:
        raise SchemaError(f"{source} is missing required columns: {missing}. Columns: {list(df.columns)}")


def invalid_coordinate_mask(df: pd.DataFrame, lat_col: str, lon_col: str) -> pd.Series:
    lats = df[lat_col]
    lons = df[lon_col]
    return lats.isna() | lons.isna() | (lats < -90) | (lats > 90) | (lons < -180) | (lons > 180)


def is_time_sorted(times: pd.Series) -> bool:
    # NaT rows are dropped before this check in every caller
    return bool(times.is_monotonic_increasing)
