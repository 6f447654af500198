from __future__ import annotations

import logging
from enum import Enum
from typing import Optional, Set

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)


class TieBreak(str, Enum):
    """How a timestamp claimed by several survey intervals is resolved.

    FIRST keeps the first matching interval in construction order.
    SMALLEST_ID keeps the lowest interval id.
    EARLIEST_START keeps the interval that starts first, then construction order.
    """

    FIRST = "first"
    SMALLEST_ID = "smallest_id"
    EARLIEST_START = "earliest_start"


class SurveyIntervalIndex:
    """Inclusive [start, end] survey intervals with point lookup.

    Intervals may overlap or leave gaps. Lookups scan every interval, so the
    vectorized `assign` works in chunks to keep the hit matrix bounded.
    """

    def __init__(
        self,
        records: pd.DataFrame,
        id_col: str = "interval_id",
        start_col: str = "start_time",
        end_col: str = "end_time",
        tie_break: TieBreak | str = TieBreak.FIRST,
        max_cells: int = 4_000_000,
    ):
        self.tie_break = TieBreak(tie_break)
        self.max_cells = max_cells
        # One interval exported at several frequencies is still one interval
        unique = records.drop_duplicates(subset=[id_col, start_col, end_col], keep="first")
        if len(unique) < len(records):
            logger.debug("Collapsed %d repeated interval rows", len(records) - len(unique))
        records = unique
        self._ids = records[id_col].to_numpy(dtype="int64")
        self._starts = _to_ns(records[start_col])
        self._ends = _to_ns(records[end_col])

        if self.tie_break is TieBreak.SMALLEST_ID:
            order = np.argsort(self._ids, kind="stable")
        elif self.tie_break is TieBreak.EARLIEST_START:
            order = np.argsort(self._starts, kind="stable")
        else:
            order = np.arange(len(self._ids))
        # Policy order: the first hit along this axis is the representative
        self._p_ids = self._ids[order]
        self._p_starts = self._starts[order]
        self._p_ends = self._ends[order]
        logger.info("Built interval index: %d intervals, tie-break=%s", len(self), self.tie_break.value)

    def __len__(self) -> int:
        return len(self._ids)

    def find(self, timestamp) -> Set[int]:
        t = pd.Timestamp(timestamp)
        if pd.isna(t):
            return set()
        t_ns = t.value
        hits = (self._starts <= t_ns) & (t_ns <= self._ends)
        return {int(i) for i in self._ids[hits]}

    def representative(self, timestamp) -> Optional[int]:
        """Single interval id for the timestamp under the tie-break, or None."""
        t = pd.Timestamp(timestamp)
        if pd.isna(t) or len(self) == 0:
            return None
        t_ns = t.value
        hits = np.flatnonzero((self._p_starts <= t_ns) & (t_ns <= self._p_ends))
        if hits.size == 0:
            return None
        return int(self._p_ids[hits[0]])

    def assign(self, timestamps: pd.Series) -> pd.DataFrame:
        """Representative interval id and match count for every timestamp.

        Returns a frame on the input index with `interval_id` (Int64, <NA> for
        no match) and `n_matches`.
        """
        n = len(timestamps)
        n_matches = np.zeros(n, dtype="int64")
        position = np.full(n, -1, dtype="int64")
        if n and len(self):
            valid = timestamps.notna().to_numpy()
            t_ns = _to_ns(timestamps)
            step = max(1, self.max_cells // len(self))
            for lo in range(0, n, step):
                hi = min(lo + step, n)
                t = t_ns[lo:hi, None]
                hits = (self._p_starts[None, :] <= t) & (t <= self._p_ends[None, :])
                hits &= valid[lo:hi, None]
                n_matches[lo:hi] = hits.sum(axis=1)
                position[lo:hi] = np.where(n_matches[lo:hi] > 0, hits.argmax(axis=1), -1)

        matched = position >= 0
        values = np.zeros(n, dtype="int64")
        values[matched] = self._p_ids[position[matched]]
        ids = pd.arrays.IntegerArray(values, ~matched)
        return pd.DataFrame({"interval_id": ids, "n_matches": n_matches}, index=timestamps.index)


def _to_ns(values: pd.Series) -> np.ndarray:
    # NaT maps to the minimum int64 and can never fall inside an interval
    return pd.to_datetime(values).to_numpy(dtype="datetime64[ns]").astype("int64")
