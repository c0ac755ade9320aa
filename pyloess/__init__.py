"""
PyLoess: locally weighted regression for scattered spatial data.

This library estimates a scalar field at query locations from sparse
observations by fitting a weighted local linear model around every location:
- k-nearest-neighbor search (k-d tree for Minkowski metrics, exhaustive otherwise)
- Variogram-derived kernel weights (sill minus semivariance)
- Mean estimate and influence-vector uncertainty per location
- Dask integration for parallel evaluation of query locations

The xarray accessor is available as .pyloess on xarray objects.
"""

__version__ = "0.1.0"

# Import core classes and functions
from .exceptions import (  # noqa: F401
    PyLoessError,
    EstimationError,
    ConfigurationError,
    NeighborCountError,
    NegativeWeightError,
    NumericalError,
    SingularSystemError,
    SingularSystemWarning,
)
from .metrics import (  # noqa: F401
    Metric,
    Euclidean,
    Manhattan,
    Chebyshev,
    Minkowski,
    Haversine,
    Mahalanobis,
    CallableMetric,
    get_metric,
)
from .variography import (  # noqa: F401
    Variogram,
    GaussianVariogram,
    ExponentialVariogram,
    SphericalVariogram,
    CubicVariogram,
    PentasphericalVariogram,
    NuggetEffect,
)
from .spatial_index import (  # noqa: F401
    NeighborIndex,
    KDTreeIndex,
    BruteForceIndex,
    build_neighbor_index,
)
from .kernel import KernelWeighter  # noqa: F401
from .local_regression import LocalEstimate, solve_local_regression  # noqa: F401
from .problem import (  # noqa: F401
    SpatialData,
    Domain,
    PointSetDomain,
    GridDomain,
    RegularGridDomain,
    RectilinearGridDomain,
    EstimationProblem,
)
from .solution import EstimationSolution  # noqa: F401
from .solver import LocalWeightRegress, VariableParams  # noqa: F401
from .accessors import PyLoessAccessor  # noqa: F401

# Import and expose Dask functionality if available
try:
    from .dask import ParallelProcessor
    HAS_DASK = True
except ImportError:
    # Dask is optional, so if it's not available, provide a placeholder class
    class ParallelProcessor:
        def __init__(self, *args, **kwargs):
            raise ImportError(
                "ParallelProcessor requires Dask to be installed. "
                "Install with `pip install pyloess[dask]`"
            )

    HAS_DASK = False

# Public API
__all__ = [
    "PyLoessError",
    "EstimationError",
    "ConfigurationError",
    "NeighborCountError",
    "NegativeWeightError",
    "NumericalError",
    "SingularSystemError",
    "SingularSystemWarning",
    "Metric",
    "Euclidean",
    "Manhattan",
    "Chebyshev",
    "Minkowski",
    "Haversine",
    "Mahalanobis",
    "CallableMetric",
    "get_metric",
    "Variogram",
    "GaussianVariogram",
    "ExponentialVariogram",
    "SphericalVariogram",
    "CubicVariogram",
    "PentasphericalVariogram",
    "NuggetEffect",
    "NeighborIndex",
    "KDTreeIndex",
    "BruteForceIndex",
    "build_neighbor_index",
    "KernelWeighter",
    "LocalEstimate",
    "solve_local_regression",
    "SpatialData",
    "Domain",
    "PointSetDomain",
    "GridDomain",
    "RegularGridDomain",
    "RectilinearGridDomain",
    "EstimationProblem",
    "EstimationSolution",
    "LocalWeightRegress",
    "VariableParams",
    "PyLoessAccessor",
    "ParallelProcessor",
    "HAS_DASK",
]
