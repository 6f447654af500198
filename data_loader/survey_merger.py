from __future__ import annotations

import logging

import pandas as pd

from utils.validators import is_time_sorted

logger = logging.getLogger(__name__)


class SurveyMerger:
    def __init__(
        self,
        id_col: str = "interval_id",
        time_col: str = "start_time",
        max_display_depth: float = 250.0,
    ):
        self.id_col = id_col
        self.time_col = time_col
        self.max_display_depth = max_display_depth

    def clamp_depth(self, mean_depth: pd.Series) -> pd.Series:
        """Cap depths at the display limit; missing depths stay missing."""
        return mean_depth.clip(upper=self.max_display_depth)

    def merge(self, acoustic: pd.DataFrame, aggregates: pd.DataFrame) -> pd.DataFrame:
        """Left-join per-interval depth aggregates onto the acoustic records.

        Every acoustic record appears exactly once in the output, in time
        order. Records whose interval had no track points get NaN depth.
        """
        a = acoustic.copy()
        if not is_time_sorted(a[self.time_col]):
            logger.warning("Acoustic records are not in time order; sorting by %s", self.time_col)
            a = a.sort_values(self.time_col, kind="mergesort").reset_index(drop=True)

        merged = a.merge(aggregates, on=self.id_col, how="left", validate="many_to_one")
        merged["n_fixes"] = merged["n_fixes"].astype("Int64")
        merged["depth_matched"] = merged["mean_depth"].notna()
        if len(merged):
            logger.info("Depth match rate: %.2f%%", merged["depth_matched"].mean() * 100)
        merged["depth_for_display"] = self.clamp_depth(merged["mean_depth"])
        return merged
