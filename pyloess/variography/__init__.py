"""
Variogram models for PyLoess.

The models map a lag distance, or a pair of coordinates, to a semivariance and
expose the sill from which local regression weights are derived.
"""

from .models import (
    Variogram,
    GaussianVariogram,
    ExponentialVariogram,
    SphericalVariogram,
    CubicVariogram,
    PentasphericalVariogram,
    NuggetEffect,
)

__all__ = [
    'Variogram',
    'GaussianVariogram',
    'ExponentialVariogram',
    'SphericalVariogram',
    'CubicVariogram',
    'PentasphericalVariogram',
    'NuggetEffect',
]
