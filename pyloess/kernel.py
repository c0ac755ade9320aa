"""
Kernel weights derived from a variogram model.

The weight between two locations is the covariance implied by the variogram,
``sill - gamma(a, b)``. It equals the sill at zero separation and decays
towards zero as the semivariance approaches the sill.
"""

import numpy as np

from .metrics.distances import _as_2d
from .variography.models import Variogram


class KernelWeighter:
    """
    Convert a variogram model into proximity weights.

    Parameters
    ----------
    variogram : Variogram
        Model exposing ``sill`` and pairwise semivariance
    """

    def __init__(self, variogram: Variogram):
        if not isinstance(variogram, Variogram):
            raise TypeError(f"variogram must be a Variogram, got {type(variogram)}")
        self.variogram = variogram

    @property
    def sill(self) -> float:
        return self.variogram.sill

    def weight(self, a, b) -> float:
        """Weight between two single locations."""
        return self.sill - self.variogram(a, b)

    def weights(self, x, neighbors) -> np.ndarray:
        """
        Weights between one location and a set of neighbors.

        Parameters
        ----------
        x : array-like
            Query location of shape (d,)
        neighbors : array-like
            Neighbor coordinates of shape (k, d)

        Returns
        -------
        np.ndarray
            Weights of shape (k,)
        """
        gamma = self.variogram.pairwise(_as_2d(x), _as_2d(neighbors))[0]
        return self.sill - gamma

    def weights_from_distances(self, distances) -> np.ndarray:
        """Weights for precomputed lag distances."""
        return self.sill - np.asarray(self.variogram.evaluate(distances), dtype=float)

    def __repr__(self) -> str:
        return f"KernelWeighter({self.variogram!r})"
