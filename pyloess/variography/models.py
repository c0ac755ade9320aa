"""
Theoretical variogram models.

All models share the form

    gamma(h) = (sill - nugget) * f(h / range) + nugget * (h > 0)

where ``f`` rises from 0 at the origin to 1 at (or asymptotically towards) the
range. Semivariance is therefore exactly zero at zero lag and approaches the
sill at large lags.
"""

from abc import ABC, abstractmethod
from typing import Optional, Union

import numpy as np

from ..metrics.distances import Metric, get_metric


class Variogram(ABC):
    """
    Abstract base class for variogram models.

    Parameters
    ----------
    sill : float
        Asymptotic semivariance, must be positive
    range : float
        Correlation length, must be positive
    nugget : float
        Discontinuity at the origin, ``0 <= nugget <= sill``
    distance : Metric, str or callable, optional
        Metric used when the model is evaluated on coordinate pairs
        (default: Euclidean)
    """

    def __init__(
        self,
        sill: float = 1.0,
        range: float = 1.0,
        nugget: float = 0.0,
        distance: Optional[Union[Metric, str]] = None,
    ):
        if not sill > 0:
            raise ValueError(f"sill must be positive, got {sill}")
        if not range > 0:
            raise ValueError(f"range must be positive, got {range}")
        if not 0 <= nugget <= sill:
            raise ValueError(f"nugget must lie in [0, sill], got {nugget}")
        self._sill = float(sill)
        self.range = float(range)
        self.nugget = float(nugget)
        self.distance = get_metric(distance)

    @property
    def sill(self) -> float:
        return self._sill

    @abstractmethod
    def _structure(self, h: np.ndarray) -> np.ndarray:
        """Normalised structure function of the lag scaled by the range."""
        pass

    def evaluate(self, h):
        """
        Semivariance at the given lag distance(s).

        Parameters
        ----------
        h : float or array-like
            Non-negative lag distances

        Returns
        -------
        float or np.ndarray
        """
        lags = np.asarray(h, dtype=float)
        gamma = (self._sill - self.nugget) * self._structure(lags / self.range)
        gamma = gamma + self.nugget * (lags > 0)
        if gamma.ndim == 0:
            return float(gamma)
        return gamma

    def pairwise(self, a, b) -> np.ndarray:
        """Semivariance between every point of ``a`` and every point of ``b``."""
        return self.evaluate(self.distance.pairwise(a, b))

    def __call__(self, a, b=None):
        """
        Evaluate the model on a lag, ``model(h)``, or a coordinate pair, ``model(a, b)``.
        """
        if b is None:
            return self.evaluate(a)
        return self.evaluate(self.distance(a, b))

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(sill={self._sill}, range={self.range}, "
            f"nugget={self.nugget}, distance={self.distance!r})"
        )

    def __eq__(self, other) -> bool:
        return (
            type(self) is type(other)
            and self._sill == other._sill
            and self.range == other.range
            and self.nugget == other.nugget
            and self.distance == other.distance
        )

    def __hash__(self) -> int:
        return hash((type(self), self._sill, self.range, self.nugget))


class GaussianVariogram(Variogram):
    """Gaussian model, parabolic near the origin, practical range at ``range``."""

    def _structure(self, h):
        return 1.0 - np.exp(-3.0 * h ** 2)


class ExponentialVariogram(Variogram):
    """Exponential model, practical range at ``range``."""

    def _structure(self, h):
        return 1.0 - np.exp(-3.0 * h)


class SphericalVariogram(Variogram):
    """Spherical model, reaches the sill exactly at ``range``."""

    def _structure(self, h):
        h = np.minimum(h, 1.0)
        return 1.5 * h - 0.5 * h ** 3


class CubicVariogram(Variogram):
    """Cubic model, reaches the sill exactly at ``range``."""

    def _structure(self, h):
        h = np.minimum(h, 1.0)
        return 7.0 * h ** 2 - 8.75 * h ** 3 + 3.5 * h ** 5 - 0.75 * h ** 7


class PentasphericalVariogram(Variogram):
    """Pentaspherical model, reaches the sill exactly at ``range``."""

    def _structure(self, h):
        h = np.minimum(h, 1.0)
        return 1.875 * h - 1.25 * h ** 3 + 0.375 * h ** 5


class NuggetEffect(Variogram):
    """
    Pure nugget model.

    The sill equals the nugget: semivariance is zero at the origin and jumps to
    the nugget for any positive lag.
    """

    def __init__(self, nugget: float = 1.0, distance=None):
        super().__init__(sill=nugget, range=1.0, nugget=nugget, distance=distance)

    def _structure(self, h):
        return np.zeros_like(h)

    def __repr__(self) -> str:
        return f"NuggetEffect(nugget={self.nugget}, distance={self.distance!r})"
