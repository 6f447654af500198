from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import pandas as pd

from aggregation.interval_index import SurveyIntervalIndex, TieBreak
from aggregation.track_aligner import TrackAligner
from data_loader.survey_merger import SurveyMerger
from data_loader.survey_records import SurveyRecordFilter
from data_loader.track_cleaner import TrackCleaner

logger = logging.getLogger(__name__)


@dataclass
class AlignmentSettings:
    valid_status: int = 1
    layer: int = 1
    missing_sentinel: float = -999.0
    invalid_lon_sentinel: float = 999.0
    tie_break: TieBreak = TieBreak.FIRST
    partitions: int = 1
    max_display_depth: float = 250.0
    track_date_format: Optional[str] = None
    acoustic_date_format: Optional[str] = None

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "AlignmentSettings":
        track = config.get("track", {}) or {}
        acoustic = config.get("acoustic", {}) or {}
        sentinels = config.get("sentinels", {}) or {}
        alignment = config.get("alignment", {}) or {}
        display = config.get("display", {}) or {}
        return cls(
            valid_status=int(track.get("valid_status", 1)),
            layer=int(acoustic.get("layer", 1)),
            missing_sentinel=float(sentinels.get("missing", -999.0)),
            invalid_lon_sentinel=float(sentinels.get("invalid_longitude", 999.0)),
            tie_break=TieBreak(alignment.get("tie_break", "first")),
            partitions=int(alignment.get("partitions", 1)),
            max_display_depth=float(display.get("max_depth", 250.0)),
            track_date_format=track.get("date_format"),
            acoustic_date_format=acoustic.get("date_format"),
        )


@dataclass
class AlignmentResult:
    track: pd.DataFrame
    aggregates: pd.DataFrame
    survey: pd.DataFrame


def align_track_to_survey(
    track_rows: pd.DataFrame,
    acoustic_rows: pd.DataFrame,
    settings: Optional[AlignmentSettings] = None,
) -> AlignmentResult:
    """Attach mean seafloor depth from the ship track to each survey interval.

    The track is cleaned and given an along-track distance, each fix is
    matched to the survey interval covering its timestamp, depths are
    averaged per interval and joined back onto the acoustic records.
    """
    settings = settings or AlignmentSettings()
    if acoustic_rows.empty:
        raise ValueError("Acoustic input contains no rows")

    track = TrackCleaner(
        valid_status=settings.valid_status,
        missing_sentinel=settings.missing_sentinel,
        date_format=settings.track_date_format,
    ).clean(track_rows)
    acoustic = SurveyRecordFilter(
        layer=settings.layer,
        missing_sentinel=settings.missing_sentinel,
        invalid_lon_sentinel=settings.invalid_lon_sentinel,
        date_format=settings.acoustic_date_format,
    ).prepare(acoustic_rows)

    index = SurveyIntervalIndex(acoustic, tie_break=settings.tie_break)
    aligner = TrackAligner(index, npartitions=settings.partitions)
    aggregates = aligner.align(track)
    survey = SurveyMerger(max_display_depth=settings.max_display_depth).merge(acoustic, aggregates)
    logger.info("Aligned %d track fixes onto %d acoustic records", len(track), len(survey))
    return AlignmentResult(track=track, aggregates=aggregates, survey=survey)
