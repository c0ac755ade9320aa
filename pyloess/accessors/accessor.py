"""
PyLoess Accessor implementation.

This module implements the xarray accessor that provides the .pyloess interface
on scattered point datasets.
"""

from typing import Optional, Sequence, Union

import numpy as np
import pandas as pd
import xarray as xr
from pyproj import CRS, Transformer

from ..problem import EstimationProblem, PointSetDomain, RectilinearGridDomain, SpatialData
from ..solution import EstimationSolution


@xr.register_dataset_accessor("pyloess")
@xr.register_dataarray_accessor("pyloess")
class PyLoessAccessor:
    """
    xarray accessor for locally weighted regression.

    The wrapped object holds scattered observations: coordinate variables
    along a point dimension plus one or more data variables.
    """

    def __init__(self, xarray_obj: Union[xr.Dataset, xr.DataArray]):
        self._obj = xarray_obj
        self._name = "pyloess"

    def _source_dataset(self) -> xr.Dataset:
        if isinstance(self._obj, xr.DataArray):
            name = self._obj.name if self._obj.name is not None else "values"
            return self._obj.to_dataset(name=name)
        return self._obj

    def estimate(
        self,
        target: Union[xr.Dataset, xr.DataArray, pd.DataFrame, np.ndarray],
        variables: Optional[Union[str, Sequence[str]]] = None,
        coord_names: Optional[Sequence[str]] = None,
        source_crs: Optional[Union[str, CRS]] = None,
        target_crs: Optional[Union[str, CRS]] = None,
        **kwargs
    ) -> xr.Dataset:
        """
        Estimate the data variables at the target locations.

        Parameters
        ----------
        target : xr.Dataset, xr.DataArray, pandas.DataFrame or np.ndarray
            Grid (xarray object with 1D coordinates named like the source
            coordinates, with any spacing or direction) or explicit points
            (DataFrame with the coordinate columns, or array of shape (n, d))
        variables : str or sequence of str, optional
            Variables to estimate (default: all numeric data variables)
        coord_names : sequence of str, optional
            Coordinate names in the source. Inferred if None.
        source_crs, target_crs : str or CRS, optional
            When both are given and differ, target points are transformed to
            the source CRS before estimation (point targets only)
        **kwargs
            Arguments for ``LocalWeightRegress`` (neighbors, variogram,
            distance, variable_params, on_error, use_dask, ...)

        Returns
        -------
        xr.Dataset
            Mean estimates under each variable name and uncertainties under
            ``<variable>_uncertainty``
        """
        from ..solver import LocalWeightRegress

        data = SpatialData(self._source_dataset(), coord_names=coord_names)
        domain = self._build_domain(target, data.coord_names)

        query_domain = domain
        if source_crs is not None and target_crs is not None:
            source_crs, target_crs = CRS.from_user_input(source_crs), CRS.from_user_input(target_crs)
            if source_crs != target_crs:
                query_domain = self._transform_domain(domain, source_crs, target_crs)

        problem = EstimationProblem(data, query_domain, variables)
        solution = LocalWeightRegress(**kwargs).solve(problem)
        if query_domain is not domain:
            # Report results at the target coordinates
            solution = EstimationSolution(domain, solution.mean, solution.uncertainty)
        result = solution.to_xarray()

        if isinstance(target, (xr.Dataset, xr.DataArray)):
            # Restore the target's dimension order
            order = [str(d) for d in target.dims if str(d) in result.dims]
            result = result.transpose(*order, ...)
        return result

    def _build_domain(self, target, coord_names):
        if isinstance(target, (xr.Dataset, xr.DataArray)):
            missing = [name for name in coord_names if name not in target.coords]
            if missing:
                raise ValueError(
                    f"Target grid is missing coordinates {missing} required by the source data"
                )
            axes = {}
            for name in coord_names:
                values = target[name].values
                if values.ndim != 1:
                    raise ValueError(f"Target coordinate '{name}' must be 1D, got {values.ndim}D")
                axes[name] = values
            return RectilinearGridDomain(axes)
        if isinstance(target, pd.DataFrame):
            missing = [name for name in coord_names if name not in target.columns]
            if missing:
                raise ValueError(f"Target DataFrame is missing columns {missing}")
            return PointSetDomain(target[coord_names].values, coord_names=coord_names)
        if isinstance(target, np.ndarray):
            points = target.reshape(-1, 1) if target.ndim == 1 else target
            if points.ndim != 2 or points.shape[1] != len(coord_names):
                raise ValueError(
                    f"Target coordinates array must have shape (n, {len(coord_names)})"
                )
            return PointSetDomain(points, coord_names=coord_names)
        raise TypeError(
            f"target must be xr.Dataset, xr.DataArray, pandas.DataFrame or np.ndarray, "
            f"got {type(target)}"
        )

    def _transform_domain(self, domain, source_crs, target_crs):
        if not isinstance(domain, PointSetDomain):
            raise ValueError(
                "CRS transformation is only supported for point targets; "
                "project the grid to the source CRS first"
            )
        if domain.ndims != 2:
            raise ValueError("CRS transformation requires 2D coordinates")
        points = domain.all_coordinates()
        transformer = Transformer.from_crs(target_crs, source_crs, always_xy=True)
        xs, ys = transformer.transform(points[:, 0], points[:, 1])
        return PointSetDomain(np.column_stack([xs, ys]), coord_names=domain.coord_names)
