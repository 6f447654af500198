from __future__ import annotations

import logging
from typing import Optional

import pandas as pd

from data_loader.track_cleaner import combine_date_time
from utils.io_helpers import normalize_columns
from utils.validators import require_columns

logger = logging.getLogger(__name__)

# Echoview interval export column -> canonical name (after lower-casing)
ACOUSTIC_COLUMN_MAP = {
    "interval": "interval_id",
    "layer": "layer",
    "sv_mean": "sv_mean",
    "frequency": "frequency",
    "date_m": "date",
    "time_s": "time_start",
    "time_e": "time_end",
    "lat_m": "latitude",
    "lon_m": "longitude",
}
NUMERIC_COLUMNS = ["interval_id", "layer", "sv_mean", "frequency", "latitude", "longitude"]
ACOUSTIC_RECORD_COLUMNS = [
    "interval_id",
    "layer",
    "sv_mean",
    "frequency",
    "start_time",
    "end_time",
    "latitude",
    "longitude",
]


class SurveyRecordFilter:
    """Turn raw acoustic export rows into typed, sentinel-free layer records.

    Steps, in order: drop "no fix" rows (longitude sentinel), replace the
    missing-data sentinel with NaN in every numeric field, drop rows whose
    interval id, layer or times cannot be parsed, keep the requested layer.
    """

    def __init__(
        self,
        layer: int = 1,
        missing_sentinel: float = -999.0,
        invalid_lon_sentinel: float = 999.0,
        date_format: Optional[str] = None,
    ):
        self.layer = layer
        self.missing_sentinel = missing_sentinel
        self.invalid_lon_sentinel = invalid_lon_sentinel
        self.date_format = date_format

    @staticmethod
    def empty_records() -> pd.DataFrame:
        df = pd.DataFrame({c: pd.Series(dtype=float) for c in ACOUSTIC_RECORD_COLUMNS})
        df["interval_id"] = pd.Series(dtype="Int64")
        df["layer"] = pd.Series(dtype="Int64")
        df["start_time"] = pd.Series(dtype="datetime64[ns]")
        df["end_time"] = pd.Series(dtype="datetime64[ns]")
        return df[ACOUSTIC_RECORD_COLUMNS]

    def prepare(self, raw: pd.DataFrame) -> pd.DataFrame:
        df = normalize_columns(raw)
        require_columns(df, list(ACOUSTIC_COLUMN_MAP), "Acoustic file")
        df = df[list(ACOUSTIC_COLUMN_MAP)].rename(columns=ACOUSTIC_COLUMN_MAP).copy()
        n_in = len(df)

        for col in NUMERIC_COLUMNS:
            df[col] = pd.to_numeric(df[col], errors="coerce")

        no_fix = df["longitude"] == self.invalid_lon_sentinel
        if no_fix.any():
            logger.info("Dropped %d acoustic rows without a position fix", int(no_fix.sum()))
            df = df[~no_fix].copy()

        df[NUMERIC_COLUMNS] = df[NUMERIC_COLUMNS].mask(df[NUMERIC_COLUMNS] == self.missing_sentinel)

        df["start_time"] = combine_date_time(df["date"], df["time_start"], self.date_format)
        df["end_time"] = combine_date_time(df["date"], df["time_end"], self.date_format)
        # An end time-of-day before the start means the interval crosses midnight
        rollover = df["end_time"] < df["start_time"]
        df.loc[rollover, "end_time"] = df.loc[rollover, "end_time"] + pd.Timedelta(days=1)

        malformed = df[["interval_id", "layer", "start_time", "end_time"]].isna().any(axis=1)
        if malformed.any():
            logger.warning("Dropped %d malformed acoustic rows", int(malformed.sum()))
            df = df[~malformed]

        df = df[df["layer"] == self.layer]
        logger.info("Acoustic records in layer %s: %d of %d", self.layer, len(df), n_in)
        if df.empty:
            return self.empty_records()

        df = df.astype({"interval_id": "Int64", "layer": "Int64"})
        return df[ACOUSTIC_RECORD_COLUMNS].reset_index(drop=True)
