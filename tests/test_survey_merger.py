import os
import sys

import numpy as np
import pandas as pd

# Ensure project root is importable
ROOT = os.path.dirname(os.path.dirname(__file__))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from aggregation.track_aligner import TrackAligner
from data_loader.survey_merger import SurveyMerger


def make_acoustic(ids, minutes):
    return pd.DataFrame(
        {
            "interval_id": pd.array(ids, dtype="Int64"),
            "layer": pd.array([1] * len(ids), dtype="Int64"),
            "sv_mean": [-70.0 - i for i in range(len(ids))],
            "frequency": [38.0] * len(ids),
            "start_time": [pd.Timestamp("2024-05-01 10:00") + pd.Timedelta(minutes=m) for m in minutes],
            "end_time": [pd.Timestamp("2024-05-01 10:00:59") + pd.Timedelta(minutes=m) for m in minutes],
            "latitude": [57.0] * len(ids),
            "longitude": [11.0] * len(ids),
        }
    )


def make_aggregates(ids, depths):
    return pd.DataFrame(
        {
            "interval_id": pd.array(ids, dtype="Int64"),
            "mean_depth": depths,
            "n_fixes": [3] * len(ids),
            "distance_along_track": [100.0 * i for i in range(len(ids))],
        }
    )


def test_clamp_depth():
    clamped = SurveyMerger().clamp_depth(pd.Series([300.0, 100.0, np.nan, 250.0]))
    assert clamped.iloc[0] == 250.0
    assert clamped.iloc[1] == 100.0
    assert np.isnan(clamped.iloc[2])
    assert clamped.iloc[3] == 250.0


def test_every_record_kept_once_in_order():
    acoustic = make_acoustic([4, 5, 6, 7], [0, 1, 2, 3])
    aggregates = make_aggregates([7, 5], [300.0, 100.0])
    merged = SurveyMerger().merge(acoustic, aggregates)

    assert merged["interval_id"].tolist() == [4, 5, 6, 7]
    assert merged["sv_mean"].tolist() == acoustic["sv_mean"].tolist()
    assert merged["depth_matched"].tolist() == [False, True, False, True]
    assert merged["depth_for_display"].iloc[3] == 250.0
    assert merged["mean_depth"].iloc[3] == 300.0
    assert merged["depth_for_display"].iloc[1] == 100.0
    assert np.isnan(merged["depth_for_display"].iloc[0])
    assert pd.isna(merged["n_fixes"].iloc[0])


def test_unsorted_records_are_put_in_time_order():
    acoustic = make_acoustic([2, 1], [5, 0])
    merged = SurveyMerger().merge(acoustic, make_aggregates([1], [20.0]))
    assert merged["interval_id"].tolist() == [1, 2]
    assert merged["mean_depth"].iloc[0] == 20.0
    # input untouched
    assert acoustic["interval_id"].tolist() == [2, 1]


def test_merge_with_no_aggregates():
    acoustic = make_acoustic([1, 2], [0, 1])
    merged = SurveyMerger().merge(acoustic, TrackAligner.empty_aggregates())
    assert len(merged) == 2
    assert merged["mean_depth"].isna().all()
    assert merged["depth_for_display"].isna().all()
