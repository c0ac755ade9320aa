"""
Spatial indexing for k-nearest-neighbor search.

Two index variants share a common query interface:

- ``KDTreeIndex`` wraps scipy's cKDTree and is used for Minkowski-family
  metrics, which admit space partitioning.
- ``BruteForceIndex`` evaluates every distance per query and is correct for
  any metric.

``build_neighbor_index`` selects the variant from the metric's capability flag.
"""

from abc import ABC, abstractmethod
from typing import Optional, Tuple, Union

import numpy as np
from scipy.spatial import cKDTree

from .exceptions import NeighborCountError
from .metrics.distances import Metric, _as_2d, get_metric

# Relative slack when collecting neighbors tied at the k-th distance
TIE_TOLERANCE = 1e-9


class NeighborIndex(ABC):
    """
    Abstract base class for read-only neighbor indices.

    Parameters
    ----------
    coords : array-like
        Indexed coordinates of shape (n, d)
    metric : Metric
        Distance used to rank neighbors
    """

    def __init__(self, coords: np.ndarray, metric: Metric):
        coords = np.asarray(coords, dtype=float)
        if coords.ndim == 1:
            coords = coords.reshape(-1, 1)
        if coords.ndim != 2:
            raise ValueError(f"coords must have shape (n, d), got {coords.shape}")
        if coords.shape[0] == 0:
            raise ValueError("Cannot build a neighbor index from zero points")
        if not np.all(np.isfinite(coords)):
            raise ValueError("coords contain NaN or infinite values")
        self.coords = coords
        self.metric = metric
        self._build_index()

    @property
    def n_points(self) -> int:
        return int(self.coords.shape[0])

    @property
    def ndims(self) -> int:
        return int(self.coords.shape[1])

    @abstractmethod
    def _build_index(self):
        pass

    @abstractmethod
    def _query(self, points: np.ndarray, k: int) -> Tuple[np.ndarray, np.ndarray]:
        pass

    def query(self, target_points, k: int = 1) -> Tuple[np.ndarray, np.ndarray]:
        """
        Query the index for the k nearest neighbors of each target point.

        Parameters
        ----------
        target_points : array-like
            Target points of shape (n, d)
        k : int
            Number of nearest neighbors to find

        Returns
        -------
        distances : np.ndarray
            Distances to the k nearest neighbors, shape (n, k), ascending
        indices : np.ndarray
            Indices of the k nearest neighbors, shape (n, k)
        """
        k = int(k)
        if k < 1 or k > self.n_points:
            raise NeighborCountError(
                f"Number of neighbors must be in [1, {self.n_points}], got {k}"
            )
        points = _as_2d(target_points)
        if points.shape[1] != self.ndims:
            raise ValueError(
                f"Target points have {points.shape[1]} dimensions, index has {self.ndims}"
            )
        distances, indices = self._query(points, k)
        return (
            np.reshape(distances, (points.shape[0], k)),
            np.reshape(indices, (points.shape[0], k)).astype(np.intp),
        )

    def knn(self, point, k: int) -> Tuple[np.ndarray, np.ndarray]:
        """
        Nearest neighbors of a single point.

        Returns
        -------
        indices : np.ndarray
            Shape (k,)
        distances : np.ndarray
            Shape (k,)
        """
        distances, indices = self.query(np.asarray(point, dtype=float).reshape(1, -1), k)
        return indices[0], distances[0]

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(n_points={self.n_points}, metric={self.metric!r})"


class KDTreeIndex(NeighborIndex):
    """
    k-d tree index for Minkowski-family metrics.

    Neighbors tied at the k-th distance are resolved like ``BruteForceIndex``
    does, by ascending point index, so both indices return the same sets.
    """

    def _build_index(self):
        p = getattr(self.metric, 'p', None)
        if not getattr(self.metric, 'is_minkowski', False) or p is None:
            raise TypeError(
                f"KDTreeIndex requires a Minkowski-family metric with an order p, got {self.metric!r}"
            )
        self.p = p
        self.spatial_index = cKDTree(self.coords)

    def _query(self, points, k):
        dists, _ = self.spatial_index.query(points, k=k, p=self.p)
        kth = np.reshape(dists, (points.shape[0], k))[:, -1]
        # Every point within the k-th distance is a candidate
        radii = kth * (1.0 + TIE_TOLERANCE) + TIE_TOLERANCE
        candidates = self.spatial_index.query_ball_point(points, r=radii, p=self.p)

        distances = np.empty((points.shape[0], k))
        indices = np.empty((points.shape[0], k), dtype=np.intp)
        for i, cand in enumerate(candidates):
            cand = np.sort(np.asarray(cand, dtype=np.intp))
            cand_dists = self.metric.pairwise(points[i:i + 1], self.coords[cand])[0]
            order = np.argsort(cand_dists, kind='stable')[:k]
            distances[i] = cand_dists[order]
            indices[i] = cand[order]
        return distances, indices


class BruteForceIndex(NeighborIndex):
    """Exhaustive index, valid for any metric."""

    def _build_index(self):
        # Nothing to precompute
        pass

    def _query(self, points, k):
        dists = self.metric.pairwise(points, self.coords)
        # stable sort keeps ties in input order
        order = np.argsort(dists, axis=1, kind='stable')[:, :k]
        return np.take_along_axis(dists, order, axis=1), order


def build_neighbor_index(
    coords,
    metric: Optional[Union[Metric, str]] = None,
    force_brute: bool = False,
) -> NeighborIndex:
    """
    Build the appropriate neighbor index for a metric.

    Parameters
    ----------
    coords : array-like
        Indexed coordinates of shape (n, d)
    metric : Metric, str or callable, optional
        Search metric (default: Euclidean)
    force_brute : bool
        Use exhaustive search even for Minkowski metrics

    Returns
    -------
    NeighborIndex
        A ``KDTreeIndex`` for Minkowski metrics, otherwise a ``BruteForceIndex``
    """
    metric = get_metric(metric)
    if metric.is_minkowski and not force_brute:
        return KDTreeIndex(coords, metric)
    return BruteForceIndex(coords, metric)
