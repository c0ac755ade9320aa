"""
Test fixtures for PyLoess library.

This module contains shared test fixtures for creating common data scenarios
used throughout the test suite.
"""

import pytest
import numpy as np
import pandas as pd
import xarray as xr


@pytest.fixture
def rng():
    """Seeded random generator for reproducible scattered data."""
    return np.random.default_rng(42)


@pytest.fixture
def line_observations():
    """The 1D scenario: observations at 0, 1, 2 with values equal to the coordinate."""
    return {
        'x': np.array([0.0, 1.0, 2.0]),
        'z': np.array([0.0, 1.0, 2.0]),
    }


@pytest.fixture
def scattered_2d(rng):
    """Scattered points in the unit square with coordinates of shape (n, 2)."""
    return rng.uniform(0.0, 1.0, size=(40, 2))


@pytest.fixture
def affine_dataframe(scattered_2d):
    """Scattered observations of the affine field 3 + 2x - 1.5y."""
    return pd.DataFrame({
        'x': scattered_2d[:, 0],
        'y': scattered_2d[:, 1],
        'temperature': 3.0 + 2.0 * scattered_2d[:, 0] - 1.5 * scattered_2d[:, 1],
    })


@pytest.fixture
def station_dataset():
    """Scattered station dataset with two variables, one with a missing value."""
    lon = np.array([-5.0, -2.0, 0.0, 1.5, 3.0, 5.0])
    lat = np.array([42.0, 46.0, 44.0, 47.5, 43.0, 45.0])
    temperature = 20.0 + 0.5 * lon - 0.25 * lat
    humidity = np.array([50.0, 55.0, np.nan, 65.0, 70.0, 60.0])

    return xr.Dataset(
        {
            'temperature': (['station'], temperature),
            'humidity': (['station'], humidity),
        },
        coords={
            'lon': (['station'], lon),
            'lat': (['station'], lat),
        }
    )


@pytest.fixture
def target_grid():
    """Regular lat/lon grid covering the station dataset."""
    lons = np.linspace(-4.0, 4.0, 5)
    lats = np.linspace(43.0, 46.0, 4)
    return xr.Dataset(coords={'lat': lats, 'lon': lons})
