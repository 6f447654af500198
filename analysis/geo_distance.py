from __future__ import annotations

from typing import Tuple

import numpy as np
import pandas as pd

EARTH_RADIUS_M = 6_371_000.0


def _valid_or_nan(lat, lon) -> Tuple[np.ndarray, np.ndarray]:
    lat = np.asarray(lat, dtype=float)
    lon = np.asarray(lon, dtype=float)
    bad = (np.abs(lat) > 90) | (np.abs(lon) > 180)
    return np.where(bad, np.nan, lat), np.where(bad, np.nan, lon)


def haversine_m(lat1, lon1, lat2, lon2, radius_m: float = EARTH_RADIUS_M):
    """Great-circle distance in metres between lat/lon pairs given in degrees.

    Works on scalars and on equally shaped arrays. Out-of-range or missing
    coordinates give NaN for that pair instead of raising.
    """
    lat1, lon1 = _valid_or_nan(lat1, lon1)
    lat2, lon2 = _valid_or_nan(lat2, lon2)
    phi1 = np.radians(lat1)
    phi2 = np.radians(lat2)
    d_phi = phi2 - phi1
    d_lambda = np.radians(lon2 - lon1)

    a = np.sin(d_phi / 2.0) ** 2 + np.cos(phi1) * np.cos(phi2) * np.sin(d_lambda / 2.0) ** 2
    # Rounding can push a marginally outside [0, 1]
    a = np.clip(a, 0.0, 1.0)
    c = 2.0 * np.arctan2(np.sqrt(a), np.sqrt(1.0 - a))
    return radius_m * c


class GeoDistance:
    def __init__(self, radius_m: float = EARTH_RADIUS_M):
        self.radius_m = radius_m

    def distance(self, point_a: Tuple[float, float], point_b: Tuple[float, float]) -> float:
        """Distance in metres between two (lat, lon) points."""
        return float(haversine_m(point_a[0], point_a[1], point_b[0], point_b[1], radius_m=self.radius_m))

    def step_distances(self, lat: pd.Series, lon: pd.Series) -> pd.Series:
        """Distance from each valid point to the last valid point before it.

        The first valid point gets 0. Points with missing or out-of-range
        coordinates get NaN and are skipped as predecessors, so a bad fix
        between A and C still leaves the A to C leg in the track.
        """
        lat_arr, lon_arr = _valid_or_nan(
            pd.Series(lat, dtype=float).to_numpy(), pd.Series(lon, dtype=float).to_numpy()
        )
        lat = pd.Series(lat_arr, dtype=float)
        lon = pd.Series(lon_arr, dtype=float)
        valid = lat.notna() & lon.notna()

        prev_lat = lat.where(valid).ffill().shift(1)
        prev_lon = lon.where(valid).ffill().shift(1)
        steps = pd.Series(
            haversine_m(prev_lat, prev_lon, lat, lon, radius_m=self.radius_m),
            dtype=float,
        )
        # No valid predecessor yet: this point starts the track
        steps[valid & prev_lat.isna()] = 0.0
        return steps

    def cumulative_distance(self, lat: pd.Series, lon: pd.Series) -> pd.Series:
        """Running along-track distance in metres, starting at 0.

        Invalid points have no position (NaN). Every valid point, including
        one that follows an invalid point, keeps a finite distance.
        """
        return self.step_distances(lat, lon).cumsum(skipna=True)
