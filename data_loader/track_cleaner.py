from __future__ import annotations

import logging
from typing import Optional

import numpy as np
import pandas as pd

from analysis.geo_distance import GeoDistance
from utils.io_helpers import normalize_columns
from utils.validators import invalid_coordinate_mask, is_time_sorted, require_columns

logger = logging.getLogger(__name__)

TRACK_INPUT_COLUMNS = ["ping_date", "ping_time", "latitude", "longitude", "depth", "position_status"]
CLEAN_TRACK_COLUMNS = [
    "timestamp",
    "latitude",
    "longitude",
    "depth",
    "distance_from_previous",
    "distance_along_track",
]


def combine_date_time(dates: pd.Series, times: pd.Series, date_format: Optional[str] = None) -> pd.Series:
    """Combine a calendar-date column and a time-of-day column into timestamps.

    Unparseable parts give NaT. Times are read as offsets from midnight, so
    fractional seconds survive.
    """
    day = pd.to_datetime(dates.astype(str).str.strip(), format=date_format, errors="coerce").dt.normalize()
    offset = pd.to_timedelta(times.astype(str).str.strip(), errors="coerce")
    return day + offset


class TrackCleaner:
    def __init__(
        self,
        valid_status: int = 1,
        missing_sentinel: float = -999.0,
        date_format: Optional[str] = None,
        geo: Optional[GeoDistance] = None,
    ):
        self.valid_status = valid_status
        self.missing_sentinel = missing_sentinel
        self.date_format = date_format
        self.geo = geo or GeoDistance()

    @staticmethod
    def empty_track() -> pd.DataFrame:
        df = pd.DataFrame({c: pd.Series(dtype=float) for c in CLEAN_TRACK_COLUMNS})
        df["timestamp"] = pd.Series(dtype="datetime64[ns]")
        return df[CLEAN_TRACK_COLUMNS]

    def clean(self, raw: pd.DataFrame) -> pd.DataFrame:
        df = normalize_columns(raw)
        require_columns(df, TRACK_INPUT_COLUMNS, "Track file")
        n_in = len(df)

        status = pd.to_numeric(df["position_status"], errors="coerce")
        df = df[status == self.valid_status]
        logger.info("Track fixes with valid status: %d of %d", len(df), n_in)

        out = pd.DataFrame(
            {
                "timestamp": combine_date_time(df["ping_date"], df["ping_time"], self.date_format),
                "latitude": pd.to_numeric(df["latitude"], errors="coerce"),
                "longitude": pd.to_numeric(df["longitude"], errors="coerce"),
                "depth": pd.to_numeric(df["depth"], errors="coerce"),
            },
            index=df.index,
        )
        out["depth"] = out["depth"].mask(out["depth"] == self.missing_sentinel)

        malformed = out["timestamp"].isna() | out["latitude"].isna() | out["longitude"].isna()
        if malformed.any():
            logger.warning("Dropped %d malformed track rows", int(malformed.sum()))
            out = out[~malformed]

        if out.empty:
            logger.warning("No valid track fixes after cleaning")
            return self.empty_track()

        if not is_time_sorted(out["timestamp"]):
            logger.warning("Track fixes are not in time order; sorting by timestamp")
            out = out.sort_values("timestamp", kind="mergesort")
        out = out.reset_index(drop=True)

        # Parsed but out-of-range positions stay in the track with no distance
        bad = invalid_coordinate_mask(out, "latitude", "longitude")
        if bad.any():
            logger.warning("%d track fixes have out-of-range coordinates", int(bad.sum()))
            out.loc[bad, ["latitude", "longitude"]] = np.nan

        out["distance_from_previous"] = self.geo.step_distances(out["latitude"], out["longitude"])
        out["distance_along_track"] = self.geo.cumulative_distance(out["latitude"], out["longitude"])
        logger.info(
            "Clean track: %d fixes, %.1f m along track",
            len(out),
            float(out["distance_along_track"].max()),
        )
        return out[CLEAN_TRACK_COLUMNS]
