"""
Tests for estimation problem definition: data, domains and problem validation.
"""

import pytest
import numpy as np
import pandas as pd
import xarray as xr

from pyloess.exceptions import ConfigurationError
from pyloess.problem import (
    EstimationProblem,
    PointSetDomain,
    RectilinearGridDomain,
    RegularGridDomain,
    SpatialData,
)


class TestSpatialData:
    """Test SpatialData construction from the supported containers."""

    def test_from_dataframe(self, affine_dataframe):
        data = SpatialData(affine_dataframe)
        assert data.coord_names == ['x', 'y']
        assert data.ndims == 2
        assert data.npoints == 40
        assert data.variables == ['temperature']

    def test_from_xarray_dataset(self, station_dataset):
        data = SpatialData(station_dataset)
        assert data.coord_names == ['lon', 'lat']
        assert set(data.variables) == {'temperature', 'humidity'}
        assert data.coords.shape == (6, 2)

    def test_from_dict(self):
        source = {
            'longitude': np.array([-5.0, 0.0, 5.0]),
            'latitude': np.array([42.0, 45.0, 48.0]),
            'temperature': np.array([20.0, 25.0, 30.0]),
        }
        data = SpatialData(source)
        assert data.coord_names == ['longitude', 'latitude']
        np.testing.assert_allclose(data.coords[:, 0], [-5.0, 0.0, 5.0])

    def test_one_dimensional_xarray(self):
        """A dimension coordinate can serve as the location coordinate."""
        ds = xr.Dataset({'z': ('x', [0.0, 1.0, 2.0])}, coords={'x': [0.0, 1.0, 2.0]})
        data = SpatialData(ds)
        assert data.coord_names == ['x']
        assert data.variables == ['z']

    def test_index_coordinates_are_not_variables(self, station_dataset):
        ds = station_dataset.assign_coords(station=np.arange(6))
        data = SpatialData(ds)
        assert 'station' not in data.variables

    def test_non_spatial_coordinates_are_not_variables(self, station_dataset):
        """Station labels and times attached as coordinates are not estimated."""
        ds = station_dataset.assign_coords(
            station_id=('station', list('abcdef')),
            time=('station', np.arange(6, dtype=float)),
        )
        data = SpatialData(ds)
        assert data.coord_names == ['lon', 'lat']
        assert set(data.variables) == {'temperature', 'humidity'}

    def test_numeric_variables(self):
        data = SpatialData({
            'x': [0.0, 1.0],
            'v': np.array([1.0, 2.0]),
            'label': np.array(['a', 'b'], dtype=object),
        })
        assert data.variables == ['v', 'label']
        assert data.numeric_variables == ['v']

    def test_explicit_coord_names(self, affine_dataframe):
        data = SpatialData(affine_dataframe, coord_names=['y', 'x'])
        np.testing.assert_allclose(data.coords[:, 0], affine_dataframe['y'].values)

    def test_missing_coord_names(self, affine_dataframe):
        with pytest.raises(ValueError, match="not found"):
            SpatialData(affine_dataframe, coord_names=['easting', 'northing'])

    def test_coordinates_not_inferable(self):
        with pytest.raises(ValueError, match="Could not infer"):
            SpatialData(pd.DataFrame({'a': [1.0], 'b': [2.0]}))

    def test_non_finite_coordinates(self):
        df = pd.DataFrame({'x': [0.0, np.nan], 'y': [0.0, 1.0], 'v': [1.0, 2.0]})
        with pytest.raises(ValueError, match="NaN"):
            SpatialData(df)

    def test_unsupported_type(self):
        with pytest.raises(TypeError):
            SpatialData([1, 2, 3])

    def test_from_arrays(self):
        data = SpatialData.from_arrays(np.zeros((4, 3)), a=np.arange(4), b=np.ones(4))
        assert data.coord_names == ['x1', 'x2', 'x3']
        assert data.variables == ['a', 'b']

    def test_valid_drops_missing_values(self, station_dataset):
        data = SpatialData(station_dataset)
        X, z = data.valid('humidity')
        assert len(z) == 5
        assert X.shape == (5, 2)
        assert not np.any(np.isnan(z))
        X, z = data.valid('temperature')
        assert len(z) == 6

    def test_valid_handles_none_values(self):
        data = SpatialData({'x': [0.0, 1.0, 2.0], 'v': np.array([1.0, None, 3.0], dtype=object)})
        X, z = data.valid('v')
        np.testing.assert_allclose(X[:, 0], [0.0, 2.0])

    def test_valid_unknown_variable(self, affine_dataframe):
        with pytest.raises(KeyError):
            SpatialData(affine_dataframe).valid('pressure')


class TestDomains:
    """Test query domains."""

    def test_point_set(self):
        domain = PointSetDomain([[0.0, 1.0], [2.0, 3.0], [4.0, 5.0]])
        assert domain.npoints == 3
        assert domain.ndims == 2
        assert len(domain) == 3
        np.testing.assert_allclose(domain.coordinates(1), [2.0, 3.0])
        assert list(domain) == [0, 1, 2]

    def test_point_set_one_dimensional(self):
        domain = PointSetDomain([0.5, 1.5])
        assert domain.all_coordinates().shape == (2, 1)

    def test_point_set_is_read_only(self):
        coords = np.array([[0.0, 1.0]])
        domain = PointSetDomain(coords)
        coords[0, 0] = 99.0
        assert domain.coordinates(0)[0] == 0.0
        with pytest.raises(ValueError):
            domain.all_coordinates()[0, 0] = 1.0

    def test_point_set_rejects_nan(self):
        with pytest.raises(ValueError):
            PointSetDomain([[0.0, np.nan]])

    def test_grid_coordinates_c_order(self):
        domain = RegularGridDomain((2, 3), origin=(10.0, 0.0), spacing=(1.0, 0.5))
        assert domain.npoints == 6
        expected = np.array([
            [10.0, 0.0], [10.0, 0.5], [10.0, 1.0],
            [11.0, 0.0], [11.0, 0.5], [11.0, 1.0],
        ])
        np.testing.assert_allclose(domain.all_coordinates(), expected)
        for i in range(domain.npoints):
            np.testing.assert_allclose(domain.coordinates(i), expected[i])

    def test_grid_index_out_of_range(self):
        with pytest.raises(IndexError):
            RegularGridDomain((2, 2)).coordinates(4)

    def test_grid_from_coords(self):
        domain = RegularGridDomain.from_coords({'y': [0.0, 2.0, 4.0], 'x': [1.0, 1.5]})
        assert domain.shape == (3, 2)
        assert domain.dims == ['y', 'x']
        np.testing.assert_allclose(domain.axis(0), [0.0, 2.0, 4.0])
        np.testing.assert_allclose(domain.axis(1), [1.0, 1.5])

    def test_grid_from_uneven_coords(self):
        with pytest.raises(ValueError, match="evenly spaced"):
            RegularGridDomain.from_coords({'x': [0.0, 1.0, 3.0]})

    def test_rectilinear_grid(self):
        """Axes may be uneven or decreasing."""
        domain = RectilinearGridDomain({'lat': [0.75, 0.25], 'lon': [0.0, 1.0, 3.0]})
        assert domain.shape == (2, 3)
        assert domain.dims == ['lat', 'lon']
        expected = np.array([
            [0.75, 0.0], [0.75, 1.0], [0.75, 3.0],
            [0.25, 0.0], [0.25, 1.0], [0.25, 3.0],
        ])
        np.testing.assert_allclose(domain.all_coordinates(), expected)
        np.testing.assert_allclose(domain.coordinates(4), [0.25, 1.0])
        np.testing.assert_allclose(domain.axis(0), [0.75, 0.25])

    @pytest.mark.parametrize("axes", [
        {},
        {'x': []},
        {'x': [0.0, np.nan]},
        {'x': [[0.0, 1.0]]},
    ])
    def test_rectilinear_grid_invalid(self, axes):
        with pytest.raises(ValueError):
            RectilinearGridDomain(axes)

    @pytest.mark.parametrize("kwargs", [
        {'shape': (0, 2)},
        {'shape': (2, 2), 'spacing': (1.0, 0.0)},
        {'shape': (2, 2), 'origin': (0.0,)},
        {'shape': (2, 2), 'dims': ['x']},
    ])
    def test_grid_invalid(self, kwargs):
        with pytest.raises(ValueError):
            RegularGridDomain(**kwargs)


class TestEstimationProblem:
    """Test problem validation."""

    def test_defaults_to_all_variables(self, station_dataset):
        data = SpatialData(station_dataset)
        problem = EstimationProblem(data, PointSetDomain([[0.0, 45.0]]))
        assert set(problem.variables) == {'temperature', 'humidity'}

    def test_defaults_skip_non_numeric_variables(self):
        data = SpatialData({
            'x': [0.0, 1.0],
            'v': np.array([1.0, 2.0]),
            'label': np.array(['a', 'b'], dtype=object),
        })
        problem = EstimationProblem(data, PointSetDomain([0.5]))
        assert problem.variables == ['v']

    def test_single_variable_string(self, station_dataset):
        data = SpatialData(station_dataset)
        problem = EstimationProblem(data, PointSetDomain([[0.0, 45.0]]), 'humidity')
        assert problem.variables == ['humidity']

    def test_unknown_variable(self, station_dataset):
        data = SpatialData(station_dataset)
        with pytest.raises(ConfigurationError) as excinfo:
            EstimationProblem(data, PointSetDomain([[0.0, 45.0]]), ['pressure'])
        assert excinfo.value.variable == 'pressure'
        assert excinfo.value.stage == 'validation'

    def test_dimension_mismatch(self, station_dataset):
        data = SpatialData(station_dataset)
        with pytest.raises(ConfigurationError, match="dimensions"):
            EstimationProblem(data, PointSetDomain([0.0, 1.0]))

    def test_type_checks(self, station_dataset):
        data = SpatialData(station_dataset)
        with pytest.raises(TypeError):
            EstimationProblem(station_dataset, PointSetDomain([[0.0, 45.0]]))
        with pytest.raises(TypeError):
            EstimationProblem(data, np.zeros((1, 2)))
