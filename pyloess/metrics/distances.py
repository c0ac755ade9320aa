"""
Distance metrics for neighbor search and variogram evaluation.

Each metric computes pairwise distances between two sets of coordinates and
advertises whether it belongs to the Minkowski family. Minkowski metrics can be
searched with a space-partitioning tree; every other metric is treated as
opaque and searched exhaustively.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional, Union

import numpy as np
from pyproj import Geod
from scipy.spatial.distance import cdist
from sklearn.metrics.pairwise import haversine_distances


def _as_2d(points: Any) -> np.ndarray:
    """Coerce a single point or a set of points to shape (n, d)."""
    points = np.asarray(points, dtype=float)
    if points.ndim == 0:
        return points.reshape(1, 1)
    if points.ndim == 1:
        return points.reshape(1, -1)
    if points.ndim != 2:
        raise ValueError(f"Coordinates must be 1D or 2D, got shape {points.shape}")
    return points


class Metric(ABC):
    """
    Abstract base class for distance metrics.

    Subclasses implement ``pairwise``; calling the metric on two single points
    returns a scalar distance.
    """

    name = "metric"
    is_minkowski = False

    @abstractmethod
    def pairwise(self, a: np.ndarray, b: np.ndarray) -> np.ndarray:
        """
        Compute all distances between two point sets.

        Parameters
        ----------
        a : array-like
            Points of shape (na, d)
        b : array-like
            Points of shape (nb, d)

        Returns
        -------
        np.ndarray
            Distance matrix of shape (na, nb)
        """
        pass

    def __call__(self, a, b) -> float:
        return float(self.pairwise(_as_2d(a), _as_2d(b))[0, 0])

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"

    def __eq__(self, other) -> bool:
        return type(self) is type(other) and self.__dict__ == other.__dict__

    def __hash__(self) -> int:
        return hash(type(self))


class MinkowskiMetric(Metric):
    """
    Minkowski distance of order p.

    Parameters
    ----------
    p : float
        Order of the norm, ``1 <= p <= inf``
    """

    name = "minkowski"
    is_minkowski = True

    def __init__(self, p: float = 2.0):
        p = float(p)
        if not p >= 1:
            raise ValueError(f"Minkowski order p must be >= 1, got {p}")
        self.p = p

    def pairwise(self, a, b):
        a, b = _as_2d(a), _as_2d(b)
        if np.isinf(self.p):
            return cdist(a, b, metric="chebyshev")
        return cdist(a, b, metric="minkowski", p=self.p)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(p={self.p})"


Minkowski = MinkowskiMetric


class Euclidean(MinkowskiMetric):
    """Straight-line distance."""

    name = "euclidean"

    def __init__(self):
        super().__init__(p=2.0)

    def pairwise(self, a, b):
        return cdist(_as_2d(a), _as_2d(b), metric="euclidean")

    def __repr__(self) -> str:
        return "Euclidean()"


class Manhattan(MinkowskiMetric):
    """City block distance."""

    name = "manhattan"

    def __init__(self):
        super().__init__(p=1.0)

    def pairwise(self, a, b):
        return cdist(_as_2d(a), _as_2d(b), metric="cityblock")

    def __repr__(self) -> str:
        return "Manhattan()"


Cityblock = Manhattan


class Chebyshev(MinkowskiMetric):
    """Maximum coordinate difference."""

    name = "chebyshev"

    def __init__(self):
        super().__init__(p=np.inf)

    def pairwise(self, a, b):
        return cdist(_as_2d(a), _as_2d(b), metric="chebyshev")

    def __repr__(self) -> str:
        return "Chebyshev()"


class Haversine(Metric):
    """
    Great-circle distance between (lon, lat) points given in degrees.

    Parameters
    ----------
    radius : float, optional
        Sphere radius. Defaults to the WGS 84 semi-major axis in meters.
    """

    name = "haversine"

    def __init__(self, radius: Optional[float] = None):
        if radius is None:
            radius = Geod(ellps='WGS84').a
        if radius <= 0:
            raise ValueError(f"radius must be positive, got {radius}")
        self.radius = float(radius)

    def pairwise(self, a, b):
        a, b = _as_2d(a), _as_2d(b)
        if a.shape[1] != 2 or b.shape[1] != 2:
            raise ValueError("Haversine distance requires 2D (lon, lat) coordinates")
        # haversine_distances expects [lat, lon] in radians
        a_rad = np.radians(a[:, ::-1])
        b_rad = np.radians(b[:, ::-1])
        return haversine_distances(a_rad, b_rad) * self.radius

    def __repr__(self) -> str:
        return f"Haversine(radius={self.radius})"


class Mahalanobis(Metric):
    """
    Mahalanobis distance for a given inverse covariance matrix.

    Parameters
    ----------
    VI : array-like
        Inverse covariance matrix of shape (d, d)
    """

    name = "mahalanobis"

    def __init__(self, VI):
        VI = np.atleast_2d(np.asarray(VI, dtype=float))
        if VI.shape[0] != VI.shape[1]:
            raise ValueError(f"VI must be square, got shape {VI.shape}")
        self.VI = VI

    def pairwise(self, a, b):
        return cdist(_as_2d(a), _as_2d(b), metric="mahalanobis", VI=self.VI)

    def __eq__(self, other) -> bool:
        return isinstance(other, Mahalanobis) and np.array_equal(self.VI, other.VI)

    def __hash__(self) -> int:
        return hash((type(self), self.VI.tobytes()))


class CallableMetric(Metric):
    """
    Wrap an arbitrary distance function ``func(u, v) -> float``.

    The function is treated as opaque: no triangle inequality or norm structure
    is assumed, so neighbor search falls back to exhaustive evaluation.
    """

    name = "callable"

    def __init__(self, func: Callable[[np.ndarray, np.ndarray], float]):
        if not callable(func):
            raise TypeError(f"func must be callable, got {type(func)}")
        self.func = func

    def pairwise(self, a, b):
        return cdist(_as_2d(a), _as_2d(b), metric=self.func)

    def __repr__(self) -> str:
        return f"CallableMetric({getattr(self.func, '__name__', self.func)!r})"


_NAMED_METRICS = {
    'euclidean': Euclidean,
    'manhattan': Manhattan,
    'cityblock': Manhattan,
    'chebyshev': Chebyshev,
    'haversine': Haversine,
}


def get_metric(metric: Union[Metric, str, Callable, None] = None) -> Metric:
    """
    Resolve a metric specification to a ``Metric`` instance.

    Parameters
    ----------
    metric : Metric, str, callable or None
        A metric instance, one of the names 'euclidean', 'manhattan',
        'cityblock', 'chebyshev', 'haversine', or a distance function.
        None resolves to Euclidean.

    Returns
    -------
    Metric
    """
    if metric is None:
        return Euclidean()
    if isinstance(metric, Metric):
        return metric
    if isinstance(metric, str):
        key = metric.lower()
        if key not in _NAMED_METRICS:
            raise ValueError(
                f"Unknown metric '{metric}'. Must be one of {sorted(_NAMED_METRICS)}"
            )
        return _NAMED_METRICS[key]()
    if callable(metric):
        return CallableMetric(metric)
    raise TypeError(f"metric must be a Metric, str or callable, got {type(metric)}")
