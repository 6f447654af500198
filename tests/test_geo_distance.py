import os
import sys

import numpy as np
import pandas as pd
import pytest

# Ensure project root is importable
ROOT = os.path.dirname(os.path.dirname(__file__))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from analysis.geo_distance import GeoDistance, haversine_m


def test_one_degree_on_equator():
    d = GeoDistance().distance((0.0, 0.0), (0.0, 1.0))
    assert d == pytest.approx(111_195, rel=0.005)


def test_identical_points_and_symmetry():
    geo = GeoDistance()
    p = (57.7, 11.9)
    q = (58.1, 10.5)
    assert geo.distance(p, p) == 0.0
    assert geo.distance(p, q) == pytest.approx(geo.distance(q, p))


def test_cumulative_distance_starts_at_zero_and_never_decreases():
    lat = pd.Series([57.0, 57.0, 57.01, 57.01, 57.03, 56.99])
    lon = pd.Series([11.0, 11.0, 11.02, 11.05, 11.05, 11.0])
    geo = GeoDistance()
    cum = geo.cumulative_distance(lat, lon)
    steps = geo.step_distances(lat, lon)

    assert cum.iloc[0] == 0.0
    assert (cum.diff().dropna() >= 0).all()
    # repeated fix contributes nothing
    assert steps.iloc[1] == 0.0
    assert np.allclose(cum.diff().iloc[1:], steps.iloc[1:])


def test_invalid_coordinates_give_no_value_without_raising():
    assert np.isnan(haversine_m(0.0, 0.0, 95.0, 0.0))
    assert np.isnan(haversine_m(0.0, 0.0, np.nan, 0.0))

    lat = pd.Series([0.0, np.nan, 0.0, 0.0])
    lon = pd.Series([0.0, 0.5, 1.0, 2.0])
    cum = GeoDistance().cumulative_distance(lat, lon)
    assert cum.iloc[0] == 0.0
    assert np.isnan(cum.iloc[1])
    # the leg from the last valid fix is still counted
    assert cum.iloc[2] == pytest.approx(111_195, rel=0.005)
    assert cum.iloc[3] == pytest.approx(222_390, rel=0.005)


def test_out_of_range_fix_is_skipped_as_predecessor():
    lat = pd.Series([0.0, 0.0, 0.0, 0.0])
    lon = pd.Series([0.0, 400.0, 1.0, 2.0])
    geo = GeoDistance()
    steps = geo.step_distances(lat, lon)
    cum = geo.cumulative_distance(lat, lon)

    assert np.isnan(steps.iloc[1])
    assert steps.iloc[2] == pytest.approx(111_195, rel=0.005)
    assert cum.iloc[2] == pytest.approx(111_195, rel=0.005)
    assert cum.iloc[3] == pytest.approx(222_390, rel=0.005)


def test_leading_invalid_fix_leaves_first_valid_at_zero():
    lat = pd.Series([np.nan, 0.0, 0.0])
    lon = pd.Series([0.0, 0.0, 1.0])
    cum = GeoDistance().cumulative_distance(lat, lon)
    assert np.isnan(cum.iloc[0])
    assert cum.iloc[1] == 0.0
    assert cum.iloc[2] == pytest.approx(111_195, rel=0.005)


def test_empty_sequence():
    cum = GeoDistance().cumulative_distance(pd.Series([], dtype=float), pd.Series([], dtype=float))
    assert cum.empty
