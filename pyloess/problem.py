"""
Estimation problem definition.

An estimation problem bundles the observed scattered data, the query domain
where estimates are wanted and the list of variables to estimate.
"""

from abc import ABC, abstractmethod
from typing import Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
import xarray as xr

from .exceptions import ConfigurationError

# Candidate coordinate names, searched in order for each axis
_COORD_CANDIDATES = [
    ['x', 'lon', 'longitude', 'easting'],
    ['y', 'lat', 'latitude', 'northing'],
    ['z', 'depth', 'elevation', 'height'],
]


def _infer_coord_names(names: Sequence[str]) -> List[str]:
    """Pick coordinate names from the available names, one per axis."""
    lowered = {str(name).lower(): name for name in names}
    found = []
    for candidates in _COORD_CANDIDATES:
        match = next((lowered[c] for c in candidates if c in lowered), None)
        if match is None:
            break
        found.append(match)
    if not found:
        raise ValueError(
            f"Could not infer coordinate names from {list(names)}. "
            f"Please pass coord_names explicitly."
        )
    return found


class SpatialData:
    """
    Scattered observations: coordinates plus one or more measured variables.

    Parameters
    ----------
    source_points : pandas.DataFrame, xarray.Dataset or dict
        Point data. Coordinates are columns/variables/keys named in
        ``coord_names``; every other column is a variable.
    coord_names : sequence of str, optional
        Names of the coordinate columns. If None, inferred from common names
        (x/lon/longitude, y/lat/latitude, z/depth/elevation).
    """

    def __init__(
        self,
        source_points: Union[pd.DataFrame, xr.Dataset, Dict[str, np.ndarray]],
        coord_names: Optional[Sequence[str]] = None,
    ):
        if isinstance(source_points, pd.DataFrame):
            names = list(source_points.columns)
            variable_names = names
            getter = lambda key: source_points[key].values  # noqa: E731
        elif isinstance(source_points, xr.Dataset):
            names = [str(n) for n in source_points.coords] + [str(n) for n in source_points.data_vars]
            # Coordinates locate or label the points, only data variables are measured
            variable_names = [str(n) for n in source_points.data_vars]
            getter = lambda key: source_points[key].values  # noqa: E731
        elif isinstance(source_points, Mapping):
            names = list(source_points.keys())
            variable_names = names
            getter = lambda key: source_points[key]  # noqa: E731
        else:
            raise TypeError(
                f"source_points must be pandas.DataFrame, xarray.Dataset, or dict, "
                f"got {type(source_points)}"
            )

        if coord_names is None:
            coord_names = _infer_coord_names(names)
        else:
            coord_names = list(coord_names)
            missing = [c for c in coord_names if c not in names]
            if missing:
                raise ValueError(f"Coordinate names {missing} not found in source points")
        self.coord_names = coord_names

        columns = [np.asarray(getter(c), dtype=float).ravel() for c in coord_names]
        lengths = {len(col) for col in columns}
        if len(lengths) != 1:
            raise ValueError("Coordinate arrays must all have the same length")
        coords = np.column_stack(columns)
        if not np.all(np.isfinite(coords)):
            raise ValueError("Coordinates contain NaN or infinite values")
        self.coords = coords

        self.data_vars: Dict[str, np.ndarray] = {}
        for name in variable_names:
            if name in coord_names:
                continue
            values = np.asarray(getter(name)).ravel()
            if len(values) != len(coords):
                # Skip variables that do not align with the points
                continue
            self.data_vars[name] = values

    @classmethod
    def from_arrays(cls, coords, coord_names: Optional[Sequence[str]] = None, **variables):
        """
        Build from a coordinate array of shape (n, d) and named value arrays.
        """
        coords = np.asarray(coords, dtype=float)
        if coords.ndim == 1:
            coords = coords.reshape(-1, 1)
        if coord_names is None:
            coord_names = [f"x{i + 1}" for i in range(coords.shape[1])]
        if len(coord_names) != coords.shape[1]:
            raise ValueError("coord_names must have one entry per coordinate dimension")
        source = {name: coords[:, i] for i, name in enumerate(coord_names)}
        source.update({name: np.asarray(values) for name, values in variables.items()})
        return cls(source, coord_names=coord_names)

    @property
    def npoints(self) -> int:
        return int(self.coords.shape[0])

    @property
    def ndims(self) -> int:
        return int(self.coords.shape[1])

    @property
    def variables(self) -> List[str]:
        return list(self.data_vars)

    @property
    def numeric_variables(self) -> List[str]:
        """Variables holding numbers, the ones estimated by default."""
        return [
            name for name, values in self.data_vars.items()
            if pd.api.types.is_numeric_dtype(values.dtype)
        ]

    def valid(self, variable: str) -> Tuple[np.ndarray, np.ndarray]:
        """
        Coordinates and values of the observations where ``variable`` is present.

        Returns
        -------
        X : np.ndarray
            Coordinates of shape (n_valid, d)
        z : np.ndarray
            Values of shape (n_valid,)
        """
        if variable not in self.data_vars:
            raise KeyError(f"Variable '{variable}' not found in data: {self.variables}")
        values = self.data_vars[variable]
        mask = ~pd.isna(values)
        return self.coords[mask], values[mask]

    def __repr__(self) -> str:
        return (
            f"SpatialData(npoints={self.npoints}, coords={self.coord_names}, "
            f"variables={self.variables})"
        )


class Domain(ABC):
    """Ordered, indexable collection of query locations."""

    @property
    @abstractmethod
    def npoints(self) -> int:
        pass

    @property
    @abstractmethod
    def ndims(self) -> int:
        pass

    @abstractmethod
    def all_coordinates(self) -> np.ndarray:
        """Coordinates of every location in iteration order, shape (npoints, ndims)."""
        pass

    def coordinates(self, index: int) -> np.ndarray:
        """Coordinates of the location at ``index``."""
        if not 0 <= index < self.npoints:
            raise IndexError(f"Location index {index} out of range for {self.npoints} points")
        return self.all_coordinates()[index]

    def __len__(self) -> int:
        return self.npoints

    def __iter__(self) -> Iterator[int]:
        return iter(range(self.npoints))


class PointSetDomain(Domain):
    """
    Explicit list of query points.

    Parameters
    ----------
    coords : array-like
        Coordinates of shape (n, d); a 1D array is read as n points in 1D
    coord_names : sequence of str, optional
        Names used when exporting results
    """

    def __init__(self, coords, coord_names: Optional[Sequence[str]] = None):
        coords = np.array(coords, dtype=float)
        if coords.ndim == 1:
            coords = coords.reshape(-1, 1)
        if coords.ndim != 2:
            raise ValueError(f"coords must have shape (n, d), got {coords.shape}")
        if not np.all(np.isfinite(coords)):
            raise ValueError("Domain coordinates contain NaN or infinite values")
        self._coords = coords
        self._coords.setflags(write=False)
        if coord_names is None:
            coord_names = [f"x{i + 1}" for i in range(coords.shape[1])]
        if len(coord_names) != coords.shape[1]:
            raise ValueError("coord_names must have one entry per coordinate dimension")
        self.coord_names = list(coord_names)

    @property
    def npoints(self) -> int:
        return int(self._coords.shape[0])

    @property
    def ndims(self) -> int:
        return int(self._coords.shape[1])

    def all_coordinates(self) -> np.ndarray:
        return self._coords

    def coordinates(self, index: int) -> np.ndarray:
        return self._coords[index]

    def __repr__(self) -> str:
        return f"PointSetDomain(npoints={self.npoints}, ndims={self.ndims})"


class GridDomain(Domain):
    """
    Cartesian product of 1D coordinate axes, iterated in C order (last axis fastest).

    Subclasses define the axis values through ``axis(i)``.
    """

    shape: Tuple[int, ...]
    dims: List[str]

    @abstractmethod
    def axis(self, i: int) -> np.ndarray:
        """Coordinate values along axis ``i``."""
        pass

    @property
    def npoints(self) -> int:
        return int(np.prod(self.shape))

    @property
    def ndims(self) -> int:
        return len(self.shape)

    def all_coordinates(self) -> np.ndarray:
        if getattr(self, '_coords', None) is None:
            mesh = np.meshgrid(*[self.axis(i) for i in range(self.ndims)], indexing='ij')
            coords = np.stack([m.ravel() for m in mesh], axis=-1)
            coords.setflags(write=False)
            self._coords = coords
        return self._coords

    def coordinates(self, index: int) -> np.ndarray:
        if not 0 <= index < self.npoints:
            raise IndexError(f"Location index {index} out of range for {self.npoints} points")
        multi = np.unravel_index(index, self.shape)
        return np.array([self.axis(i)[j] for i, j in enumerate(multi)])

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(shape={self.shape}, dims={self.dims})"


class RegularGridDomain(GridDomain):
    """
    Regular grid of query points defined by origin and spacing.

    Parameters
    ----------
    shape : sequence of int
        Number of points along each axis
    origin : sequence of float, optional
        Coordinates of the first grid point (default: zeros)
    spacing : sequence of float, optional
        Spacing along each axis (default: ones)
    dims : sequence of str, optional
        Axis names used when exporting results
    """

    def __init__(
        self,
        shape: Sequence[int],
        origin: Optional[Sequence[float]] = None,
        spacing: Optional[Sequence[float]] = None,
        dims: Optional[Sequence[str]] = None,
    ):
        self.shape = tuple(int(n) for n in np.atleast_1d(shape))
        if any(n < 1 for n in self.shape):
            raise ValueError(f"Grid shape must be positive, got {self.shape}")
        ndims = len(self.shape)
        self.origin = np.zeros(ndims) if origin is None else np.asarray(origin, dtype=float).ravel()
        self.spacing = np.ones(ndims) if spacing is None else np.asarray(spacing, dtype=float).ravel()
        if self.origin.size != ndims or self.spacing.size != ndims:
            raise ValueError("origin and spacing must have one entry per grid dimension")
        if np.any(self.spacing <= 0):
            raise ValueError("Grid spacing must be positive")
        if dims is None:
            dims = [f"x{i + 1}" for i in range(ndims)]
        if len(dims) != ndims:
            raise ValueError("dims must have one entry per grid dimension")
        self.dims = list(dims)
        self._coords = None

    @classmethod
    def from_coords(cls, axes: Mapping[str, Sequence[float]]) -> "RegularGridDomain":
        """
        Build from evenly spaced 1D coordinate axes, e.g. ``{'y': lats, 'x': lons}``.

        Use ``RectilinearGridDomain`` for uneven or decreasing axes.
        """
        shape, origin, spacing = [], [], []
        for name, values in axes.items():
            values = np.asarray(values, dtype=float).ravel()
            if values.size == 0:
                raise ValueError(f"Axis '{name}' is empty")
            step = np.diff(values)
            if values.size > 1 and not np.allclose(step, step[0]):
                raise ValueError(f"Axis '{name}' is not evenly spaced")
            if values.size > 1 and step[0] <= 0:
                raise ValueError(f"Axis '{name}' must be increasing")
            shape.append(values.size)
            origin.append(values[0])
            spacing.append(step[0] if values.size > 1 else 1.0)
        return cls(shape, origin=origin, spacing=spacing, dims=list(axes))

    def axis(self, i: int) -> np.ndarray:
        return self.origin[i] + self.spacing[i] * np.arange(self.shape[i])


class RectilinearGridDomain(GridDomain):
    """
    Grid spanned by arbitrary 1D axes, e.g. descending latitudes or Gaussian grids.

    Parameters
    ----------
    axes : mapping of str to array-like
        Axis name to coordinate values, in grid dimension order
    """

    def __init__(self, axes: Mapping[str, Sequence[float]]):
        if not axes:
            raise ValueError("Grid needs at least one axis")
        self._axes = []
        for name, values in axes.items():
            values = np.array(values, dtype=float)
            if values.ndim != 1:
                raise ValueError(f"Axis '{name}' must be 1D, got {values.ndim}D")
            if values.size == 0:
                raise ValueError(f"Axis '{name}' is empty")
            if not np.all(np.isfinite(values)):
                raise ValueError(f"Axis '{name}' contains NaN or infinite values")
            values.setflags(write=False)
            self._axes.append(values)
        self.dims = [str(name) for name in axes]
        self.shape = tuple(values.size for values in self._axes)
        self._coords = None

    def axis(self, i: int) -> np.ndarray:
        return self._axes[i]


class EstimationProblem:
    """
    Observed data, query domain and the variables to estimate.

    Parameters
    ----------
    data : SpatialData
        Scattered observations
    domain : Domain
        Query locations
    variables : sequence of str, optional
        Variables to estimate (default: every variable in ``data``)
    """

    def __init__(
        self,
        data: SpatialData,
        domain: Domain,
        variables: Optional[Union[str, Sequence[str]]] = None,
    ):
        if not isinstance(data, SpatialData):
            raise TypeError(f"data must be SpatialData, got {type(data)}")
        if not isinstance(domain, Domain):
            raise TypeError(f"domain must be a Domain, got {type(domain)}")
        if variables is None:
            variables = data.numeric_variables
        elif isinstance(variables, str):
            variables = [variables]
        variables = list(variables)
        if not variables:
            raise ConfigurationError("Estimation problem has no variables", stage='validation')
        for var in variables:
            if var not in data.data_vars:
                raise ConfigurationError(
                    f"Variable not found in data, available: {data.variables}",
                    variable=var,
                    stage='validation',
                )
        if data.ndims != domain.ndims:
            raise ConfigurationError(
                f"Data has {data.ndims} coordinate dimensions but domain has {domain.ndims}",
                stage='validation',
            )
        self.data = data
        self.domain = domain
        self.variables = variables

    def __repr__(self) -> str:
        return (
            f"EstimationProblem(data={self.data!r}, domain={self.domain!r}, "
            f"variables={self.variables})"
        )
