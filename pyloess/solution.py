"""
Estimation results container.
"""

from typing import Dict, Iterator, List, Tuple

import numpy as np
import pandas as pd
import xarray as xr

from .problem import Domain, GridDomain

UNCERTAINTY_SUFFIX = "_uncertainty"


def _as_float_array(values) -> np.ndarray:
    values = np.asarray(values)
    if np.issubdtype(values.dtype, np.floating):
        return values
    return values.astype(np.float64)


class EstimationSolution:
    """
    Mean and uncertainty estimates for every variable over a domain.

    Arrays are index-aligned with the domain's iteration order.

    Parameters
    ----------
    domain : Domain
        The query domain the estimates refer to
    mean : dict
        Mapping from variable name to mean estimates of length ``domain.npoints``
    uncertainty : dict
        Mapping from variable name to uncertainty estimates of the same length
    """

    def __init__(
        self,
        domain: Domain,
        mean: Dict[str, np.ndarray],
        uncertainty: Dict[str, np.ndarray],
    ):
        if set(mean) != set(uncertainty):
            raise ValueError("mean and uncertainty must contain the same variables")
        mean = {var: _as_float_array(values) for var, values in mean.items()}
        uncertainty = {var: _as_float_array(uncertainty[var]) for var in mean}
        for var in mean:
            if len(mean[var]) != domain.npoints or len(uncertainty[var]) != domain.npoints:
                raise ValueError(
                    f"Estimates for '{var}' do not match the domain size {domain.npoints}"
                )
            mean[var].setflags(write=False)
            uncertainty[var].setflags(write=False)
        self.domain = domain
        self.mean = mean
        self.uncertainty = uncertainty

    @property
    def variables(self) -> List[str]:
        return list(self.mean)

    def __getitem__(self, variable: str) -> Tuple[np.ndarray, np.ndarray]:
        return self.mean[variable], self.uncertainty[variable]

    def __contains__(self, variable) -> bool:
        return variable in self.mean

    def __iter__(self) -> Iterator[str]:
        return iter(self.mean)

    def __len__(self) -> int:
        return len(self.mean)

    def to_xarray(self) -> xr.Dataset:
        """
        Convert to an xarray Dataset.

        Grid domains keep their shape and axis coordinates; point domains use a
        ``points`` dimension with one coordinate per axis. Uncertainty arrays
        are stored as ``<variable>_uncertainty``.
        """
        data_vars = {}
        if isinstance(self.domain, GridDomain):
            dims = self.domain.dims
            coords = {dim: self.domain.axis(i) for i, dim in enumerate(dims)}
            for var in self.variables:
                data_vars[var] = (dims, self.mean[var].reshape(self.domain.shape))
                data_vars[var + UNCERTAINTY_SUFFIX] = (
                    dims, self.uncertainty[var].reshape(self.domain.shape)
                )
        else:
            dims = ['points']
            points = self.domain.all_coordinates()
            names = getattr(self.domain, 'coord_names', None) or [
                f"x{i + 1}" for i in range(self.domain.ndims)
            ]
            coords = {name: (dims, points[:, i]) for i, name in enumerate(names)}
            for var in self.variables:
                data_vars[var] = (dims, np.asarray(self.mean[var]))
                data_vars[var + UNCERTAINTY_SUFFIX] = (dims, np.asarray(self.uncertainty[var]))

        return xr.Dataset(
            data_vars,
            coords=coords,
            attrs={"description": "Locally weighted regression estimates"},
        )

    def to_dataframe(self) -> pd.DataFrame:
        """One row per location: coordinates, then mean and uncertainty per variable."""
        points = self.domain.all_coordinates()
        if isinstance(self.domain, GridDomain):
            names = self.domain.dims
        else:
            names = getattr(self.domain, 'coord_names', None) or [
                f"x{i + 1}" for i in range(self.domain.ndims)
            ]
        columns = {name: points[:, i] for i, name in enumerate(names)}
        for var in self.variables:
            columns[var] = self.mean[var]
            columns[var + UNCERTAINTY_SUFFIX] = self.uncertainty[var]
        return pd.DataFrame(columns)

    def __repr__(self) -> str:
        return f"EstimationSolution(domain={self.domain!r}, variables={self.variables})"
