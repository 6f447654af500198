import os
import sys

import numpy as np
import pandas as pd
import pytest

# Ensure project root is importable
ROOT = os.path.dirname(os.path.dirname(__file__))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from data_loader.survey_records import ACOUSTIC_RECORD_COLUMNS, SurveyRecordFilter
from utils.validators import SchemaError

COLUMNS = ["Interval", "Layer", "Sv_mean", "Frequency", "Date_M", "Time_S", "Time_E", "Lat_M", "Lon_M"]


def make_acoustic(rows):
    return pd.DataFrame(rows, columns=COLUMNS)


def test_prepare_filters_sentinels_and_layers():
    raw = make_acoustic(
        [
            [1, 1, -70.5, 38, "20240501", "10:00:00.0000", "10:00:30.0000", 57.0, 11.0],
            [1, 2, -75.0, 38, "20240501", "10:00:00.0000", "10:00:30.0000", 57.0, 11.0],
            [2, 1, -71.0, 38, "20240501", "10:00:30.0000", "10:01:00.0000", 999.0, 999.0],
            [3, 1, -999.0, 38, "20240501", "10:01:00.0000", "10:01:30.0000", 57.0, 11.01],
        ]
    )
    records = SurveyRecordFilter().prepare(raw)

    assert list(records.columns) == ACOUSTIC_RECORD_COLUMNS
    assert records["interval_id"].tolist() == [1, 3]
    assert str(records["interval_id"].dtype) == "Int64"
    assert records["sv_mean"].iloc[0] == -70.5
    assert np.isnan(records["sv_mean"].iloc[1])
    assert records["start_time"].iloc[0] == pd.Timestamp("2024-05-01 10:00:00")
    assert records["end_time"].iloc[1] == pd.Timestamp("2024-05-01 10:01:30")


def test_malformed_rows_are_dropped():
    raw = make_acoustic(
        [
            [1, 1, -70.0, 38, "20240501", "10:00:00", "10:00:30", 57.0, 11.0],
            ["x", 1, -70.0, 38, "20240501", "10:00:30", "10:01:00", 57.0, 11.0],
            [3, 1, -70.0, 38, "20240501", "garbage", "10:01:30", 57.0, 11.0],
            [4, -999, -70.0, 38, "20240501", "10:01:30", "10:02:00", 57.0, 11.0],
        ]
    )
    records = SurveyRecordFilter().prepare(raw)
    assert records["interval_id"].tolist() == [1]


def test_interval_crossing_midnight():
    raw = make_acoustic([[7, 1, -70.0, 38, "20240501", "23:59:50", "00:00:20", 57.0, 11.0]])
    records = SurveyRecordFilter().prepare(raw)
    assert records["start_time"].iloc[0] == pd.Timestamp("2024-05-01 23:59:50")
    assert records["end_time"].iloc[0] == pd.Timestamp("2024-05-02 00:00:20")


def test_no_layer_one_records_gives_typed_empty_table():
    raw = make_acoustic([[1, 2, -70.0, 38, "20240501", "10:00:00", "10:00:30", 57.0, 11.0]])
    records = SurveyRecordFilter().prepare(raw)
    assert records.empty
    assert list(records.columns) == ACOUSTIC_RECORD_COLUMNS


def test_missing_columns_raise():
    raw = make_acoustic([[1, 1, -70.0, 38, "20240501", "10:00:00", "10:00:30", 57.0, 11.0]])
    with pytest.raises(SchemaError, match="time_e"):
        SurveyRecordFilter().prepare(raw.drop(columns=["Time_E"]))
