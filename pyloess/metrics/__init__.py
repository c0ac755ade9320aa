"""
Distance metrics module for PyLoess.

This module wraps pairwise distance functions and classifies them as
Minkowski-family (tree searchable) or opaque (exhaustive search).
"""

from .distances import (
    Metric,
    MinkowskiMetric,
    Minkowski,
    Euclidean,
    Manhattan,
    Cityblock,
    Chebyshev,
    Haversine,
    Mahalanobis,
    CallableMetric,
    get_metric,
)

__all__ = [
    'Metric',
    'MinkowskiMetric',
    'Minkowski',
    'Euclidean',
    'Manhattan',
    'Cityblock',
    'Chebyshev',
    'Haversine',
    'Mahalanobis',
    'CallableMetric',
    'get_metric',
]
