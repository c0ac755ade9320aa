"""
Locally weighted regression (LOESS) estimation solver.

For every requested variable the solver extracts the valid observations,
builds a neighbor index over them and, for each query location in domain
order, fits a local linear model to the k nearest observations weighted by
``sill - gamma`` of a variogram model. The result holds a mean estimate and an
uncertainty (norm of the influence vector) per location.

References
----------
Cleveland 1979. Robust Locally Weighted Regression and Smoothing Scatterplots
"""

import warnings
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Tuple, Union

import numpy as np

from .exceptions import (
    ConfigurationError,
    EstimationError,
    NegativeWeightError,
    NeighborCountError,
    NumericalError,
    SingularSystemWarning,
)
from .kernel import KernelWeighter
from .local_regression import solve_local_regression
from .metrics.distances import Euclidean, Metric, get_metric
from .problem import EstimationProblem
from .solution import EstimationSolution
from .spatial_index import NeighborIndex, build_neighbor_index
from .variography.models import ExponentialVariogram, Variogram


def _output_dtype(dtype) -> np.dtype:
    """Estimates keep floating value types; anything else is promoted to float64."""
    if np.issubdtype(dtype, np.floating):
        return np.result_type(dtype, np.float32)
    return np.dtype(np.float64)


@dataclass(frozen=True)
class VariableParams:
    """
    Estimation parameters for one variable.

    Attributes
    ----------
    neighbors : int, optional
        Number of nearest observations per local fit (default: all observations)
    variogram : Variogram
        Model whose ``sill - gamma`` defines the weights (default: ExponentialVariogram())
    distance : Metric
        Metric for neighbor search (default: Euclidean())
    """

    neighbors: Optional[int] = None
    variogram: Variogram = field(default_factory=ExponentialVariogram)
    distance: Metric = field(default_factory=Euclidean)

    def __post_init__(self):
        if self.neighbors is not None:
            if isinstance(self.neighbors, bool) or not isinstance(self.neighbors, (int, np.integer)):
                raise TypeError(f"neighbors must be an integer, got {type(self.neighbors)}")
            if self.neighbors < 1:
                raise NeighborCountError(
                    f"Number of neighbors must be at least 1, got {self.neighbors}",
                    stage='validation',
                )
        if not isinstance(self.variogram, Variogram):
            raise TypeError(f"variogram must be a Variogram, got {type(self.variogram)}")
        object.__setattr__(self, 'distance', get_metric(self.distance))

    def resolve_neighbors(self, ndata: int) -> int:
        """Neighbor count for ``ndata`` observations."""
        return ndata if self.neighbors is None else int(self.neighbors)


class LocalWeightRegress:
    """
    Locally weighted regression estimation solver.

    Parameters
    ----------
    variable_params : dict, optional
        Mapping from variable name to ``VariableParams`` (or a dict of its
        fields). Variables not listed use the defaults below.
    neighbors : int, optional
        Default number of neighbors (default: all data locations)
    variogram : Variogram, optional
        Default variogram (default: ExponentialVariogram())
    distance : Metric, str or callable, optional
        Default neighbor search metric (default: Euclidean())
    chunk_size : int, optional
        Number of query locations processed per batch (default: 10000)
    on_error : str, optional
        'raise' aborts on the first singular local system (default);
        'nan' writes NaN at that location and warns once per variable
    use_dask : bool, optional
        Evaluate location chunks in parallel with Dask (default: False)
    scheduler : str, optional
        Dask scheduler when ``use_dask`` is True (default: 'threads')
    num_workers : int, optional
        Number of Dask workers
    """

    def __init__(
        self,
        variable_params: Optional[Mapping[str, Union[VariableParams, dict]]] = None,
        neighbors: Optional[int] = None,
        variogram: Optional[Variogram] = None,
        distance: Optional[Union[Metric, str]] = None,
        chunk_size: Optional[int] = 10000,
        on_error: str = "raise",
        use_dask: bool = False,
        scheduler: str = "threads",
        num_workers: Optional[int] = None,
    ):
        defaults = {'neighbors': neighbors}
        if variogram is not None:
            defaults['variogram'] = variogram
        if distance is not None:
            defaults['distance'] = distance
        self.default_params = VariableParams(**defaults)

        self.variable_params: Dict[str, VariableParams] = {}
        for var, params in (variable_params or {}).items():
            if isinstance(params, Mapping):
                params = VariableParams(**params)
            elif not isinstance(params, VariableParams):
                raise TypeError(
                    f"Parameters for '{var}' must be VariableParams or dict, got {type(params)}"
                )
            self.variable_params[var] = params

        valid_policies = ['raise', 'nan']
        if on_error not in valid_policies:
            raise ValueError(f"on_error must be one of {valid_policies}, got '{on_error}'")
        self.on_error = on_error

        self.chunk_size = chunk_size if chunk_size is not None else 10000
        if self.chunk_size < 1:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")

        self.use_dask = use_dask
        self.processor = None
        if use_dask:
            from . import ParallelProcessor
            self.processor = ParallelProcessor(scheduler=scheduler, num_workers=num_workers)

    def params_for(self, variable: str) -> VariableParams:
        """Parameters used for ``variable``."""
        return self.variable_params.get(variable, self.default_params)

    def solve(self, problem: EstimationProblem) -> EstimationSolution:
        """
        Estimate every variable of the problem over its domain.

        Variables are processed one at a time; any error aborts the whole run.

        Parameters
        ----------
        problem : EstimationProblem
            Data, domain and variables to estimate

        Returns
        -------
        EstimationSolution
        """
        if not isinstance(problem, EstimationProblem):
            raise TypeError(f"problem must be an EstimationProblem, got {type(problem)}")

        unknown = [var for var in self.variable_params if var not in problem.variables]
        if unknown:
            warnings.warn(
                f"Parameters given for variables {unknown} which are not part of the problem",
                UserWarning
            )

        means, uncertainties = {}, {}
        for var in problem.variables:
            means[var], uncertainties[var] = self.solve_variable(problem, var)

        return EstimationSolution(problem.domain, means, uncertainties)

    def solve_variable(self, problem: EstimationProblem, variable: str) -> Tuple[np.ndarray, np.ndarray]:
        """
        Estimate a single variable.

        Returns
        -------
        mean : np.ndarray
            Mean estimates in domain order
        uncertainty : np.ndarray
            Uncertainty estimates in domain order
        """
        params = self.params_for(variable)

        # validation
        X, z = problem.data.valid(variable)
        ndata = len(z)
        if ndata == 0:
            raise ConfigurationError("Estimation requires data", variable=variable, stage='validation')
        out_dtype = _output_dtype(z.dtype)
        try:
            z = np.asarray(z, dtype=float)
        except (TypeError, ValueError) as err:
            raise ConfigurationError(
                f"Values must be real numbers, got dtype {z.dtype}",
                variable=variable,
                stage='validation',
            ) from err

        k = params.resolve_neighbors(ndata)
        if not 1 <= k <= ndata:
            raise NeighborCountError(
                f"Number of neighbors must be in [1, {ndata}], got {k}",
                variable=variable,
                stage='validation',
            )
        if k < problem.domain.ndims + 1:
            warnings.warn(
                f"{k} neighbors cannot determine a linear model in {problem.domain.ndims} "
                f"dimensions for variable '{variable}'; local systems will be singular",
                UserWarning
            )

        # indexing
        try:
            index = build_neighbor_index(X, params.distance)
        except (ValueError, TypeError) as err:
            raise EstimationError(
                f"Failed to build neighbor index: {err}", variable=variable, stage='indexing'
            ) from err

        kernel = KernelWeighter(params.variogram)
        points = problem.domain.all_coordinates()
        n_points = problem.domain.npoints

        def estimate_chunk(start, stop):
            return self._estimate_chunk(
                variable, index, kernel, X, z, k, points, start, stop, out_dtype
            )

        if self.processor is not None:
            results = self.processor.map_chunks(estimate_chunk, n_points, self.chunk_size)
        else:
            results = [
                estimate_chunk(start, min(start + self.chunk_size, n_points))
                for start in range(0, n_points, self.chunk_size)
            ]

        if results:
            mean = np.concatenate([r[0] for r in results])
            uncertainty = np.concatenate([r[1] for r in results])
        else:
            mean, uncertainty = np.empty(0, dtype=out_dtype), np.empty(0, dtype=out_dtype)
        n_failed = sum(r[2] for r in results)
        if n_failed:
            warnings.warn(
                f"{n_failed} of {n_points} locations of variable '{variable}' have singular "
                f"local systems and were set to NaN",
                SingularSystemWarning
            )
        return mean, uncertainty

    def _estimate_chunk(
        self,
        variable: str,
        index: NeighborIndex,
        kernel: KernelWeighter,
        X: np.ndarray,
        z: np.ndarray,
        k: int,
        points: np.ndarray,
        start: int,
        stop: int,
        dtype=np.float64,
    ) -> Tuple[np.ndarray, np.ndarray, int]:
        """Estimate locations ``start:stop``; returns means, uncertainties and failure count."""
        chunk = points[start:stop]
        _, neighbor_indices = index.query(chunk, k=k)

        mean = np.empty(len(chunk), dtype=dtype)
        uncertainty = np.empty(len(chunk), dtype=dtype)
        n_failed = 0
        for i, x in enumerate(chunk):
            inds = neighbor_indices[i]
            X_local = X[inds]
            weights = kernel.weights(x, X_local)
            try:
                estimate = solve_local_regression(X_local, z[inds], weights, x)
            except NegativeWeightError as err:
                raise NegativeWeightError(
                    err.message, variable=variable, stage='weighting', location=start + i
                ) from err
            except NumericalError as err:
                if self.on_error == 'nan':
                    mean[i] = uncertainty[i] = np.nan
                    n_failed += 1
                    continue
                raise type(err)(
                    err.message, variable=variable, stage='solve', location=start + i
                ) from err
            mean[i] = estimate.mean
            uncertainty[i] = estimate.uncertainty
        return mean, uncertainty, n_failed

    def __repr__(self) -> str:
        return (
            f"LocalWeightRegress(default={self.default_params}, "
            f"variables={list(self.variable_params)}, on_error='{self.on_error}')"
        )
