from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd

from analysis.alignment import AlignmentResult

PERCENTILES = [0.05, 0.5, 0.95]


class StatisticsCalculator:
    def calculate_descriptive_stats(self, data: pd.DataFrame, columns: List[str]) -> pd.DataFrame:
        """Distribution of each numeric column present in `data`, one row per column."""
        present = [col for col in columns if col in data.columns]
        numeric = data[present].apply(pd.to_numeric, errors="coerce").astype(float)
        numeric = numeric.loc[:, numeric.notna().any()]
        if numeric.empty:
            return pd.DataFrame(columns=["variable", "count", "mean", "std", "min", "p05", "median", "p95", "max", "missing"])
        desc = numeric.describe(percentiles=PERCENTILES).T
        desc = desc.rename(columns={"5%": "p05", "50%": "median", "95%": "p95"})
        desc["missing"] = numeric.isna().sum()
        desc["count"] = desc["count"].astype(int)
        return desc.reset_index().rename(columns={"index": "variable"})

    def interval_fix_stats(self, result: AlignmentResult) -> Dict[str, Any]:
        """How the track fixes spread over the survey intervals."""
        agg = result.aggregates
        counts = agg["n_fixes"].astype("int64") if len(agg) else pd.Series(dtype="int64")
        matched = int(counts.sum())
        survey_ids = result.survey["interval_id"].dropna().unique() if len(result.survey) else []
        return {
            "fixes_matched": matched,
            "fixes_unmatched": len(result.track) - matched,
            "intervals_without_fixes": int(len(set(survey_ids) - set(agg["interval_id"].dropna()))),
            "intervals_without_depth": int(agg["mean_depth"].isna().sum()) if len(agg) else 0,
            "fixes_per_interval_min": int(counts.min()) if len(counts) else 0,
            "fixes_per_interval_median": float(counts.median()) if len(counts) else np.nan,
            "fixes_per_interval_max": int(counts.max()) if len(counts) else 0,
        }

    def alignment_summary(self, result: AlignmentResult) -> Dict[str, Any]:
        survey = result.survey
        track = result.track
        along = track["distance_along_track"].max() if len(track) else 0.0
        return {
            "track_fixes": len(track),
            "track_length_m": float(along) if pd.notna(along) else 0.0,
            "acoustic_records": len(survey),
            "intervals_with_depth": len(result.aggregates),
            "records_with_depth": int(survey["depth_matched"].sum()) if len(survey) else 0,
        }

    def save_stats_to_file(
        self,
        stats: pd.DataFrame,
        summary: Dict[str, Any],
        output_path: Path,
        fix_stats: Optional[Dict[str, Any]] = None,
    ) -> None:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        lines = ["Alignment Summary", "=================", ""]
        lines += [f"{key}: {value}" for key, value in summary.items()]
        if fix_stats:
            lines += ["", "Track Fixes per Interval", "========================", ""]
            lines += [f"{key}: {value}" for key, value in fix_stats.items()]
        lines += ["", "Descriptive Statistics", "======================", ""]
        for _, row in stats.iterrows():
            lines.append(f"Variable: {row['variable']}")
            lines.append(
                f"count={row['count']} mean={row['mean']:.3f} std={row['std']:.3f} "
                f"min={row['min']:.3f} p05={row['p05']:.3f} median={row['median']:.3f} "
                f"p95={row['p95']:.3f} max={row['max']:.3f} missing={row['missing']}"
            )
            lines.append("")
        output_path.write_text("\n".join(lines), encoding="utf-8")
