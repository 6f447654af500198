from __future__ import annotations

import logging

import dask.dataframe as dd
import pandas as pd

from aggregation.interval_index import SurveyIntervalIndex

logger = logging.getLogger(__name__)

AGGREGATE_COLUMNS = ["interval_id", "mean_depth", "n_fixes", "distance_along_track"]


class TrackAligner:
    def __init__(
        self,
        index: SurveyIntervalIndex,
        timestamp_col: str = "timestamp",
        depth_col: str = "depth",
        distance_col: str = "distance_along_track",
        npartitions: int = 1,
    ):
        self.index = index
        self.timestamp_col = timestamp_col
        self.depth_col = depth_col
        self.distance_col = distance_col
        self.npartitions = max(1, int(npartitions))

    def assign_intervals(self, track: pd.DataFrame) -> pd.DataFrame:
        times = track[self.timestamp_col]
        if self.npartitions > 1 and len(track) > self.npartitions:
            logger.info("Assigning intervals over %d dask partitions", self.npartitions)
            meta = pd.DataFrame({"interval_id": pd.Series(dtype="Int64"), "n_matches": pd.Series(dtype="int64")})
            ddf = dd.from_pandas(times.reset_index(drop=True), npartitions=self.npartitions)
            assigned = ddf.map_partitions(self.index.assign, meta=meta).compute()
            assigned.index = track.index
        else:
            assigned = self.index.assign(times)

        out = track.copy()
        out["interval_id"] = assigned["interval_id"]
        out["n_matches"] = assigned["n_matches"]

        unmatched = int((out["n_matches"] == 0).sum())
        ambiguous = int((out["n_matches"] > 1).sum())
        logger.info("Track points without a survey interval: %d of %d", unmatched, len(out))
        if ambiguous:
            logger.info(
                "Track points inside overlapping intervals: %d (resolved with tie-break '%s')",
                ambiguous,
                self.index.tie_break.value,
            )
        return out

    def aggregate_depth(self, assigned: pd.DataFrame) -> pd.DataFrame:
        matched = assigned.dropna(subset=["interval_id"])
        if matched.empty:
            return self.empty_aggregates()
        agg = (
            matched.groupby("interval_id")
            .agg(
                mean_depth=(self.depth_col, "mean"),
                n_fixes=(self.depth_col, "size"),
                distance_along_track=(self.distance_col, "mean"),
            )
            .reset_index()
        )
        if (agg["n_fixes"] < 1).any():
            raise RuntimeError("Empty aggregate group produced for a matched interval")
        agg = agg.astype({"interval_id": "Int64", "n_fixes": "int64"})
        logger.info("Aggregated depth for %d survey intervals", len(agg))
        return agg[AGGREGATE_COLUMNS]

    def align(self, track: pd.DataFrame) -> pd.DataFrame:
        return self.aggregate_depth(self.assign_intervals(track))

    @staticmethod
    def empty_aggregates() -> pd.DataFrame:
        return pd.DataFrame(
            {
                "interval_id": pd.Series(dtype="Int64"),
                "mean_depth": pd.Series(dtype=float),
                "n_fixes": pd.Series(dtype="int64"),
                "distance_along_track": pd.Series(dtype=float),
            }
        )
