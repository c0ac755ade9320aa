"""
Dask integration module for PyLoess.

This module provides Dask-based parallel evaluation of query locations.
"""
from .parallel_processing import ParallelProcessor

__all__ = ['ParallelProcessor']
