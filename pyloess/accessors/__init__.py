"""
PyLoess Accessor module.

This module defines the xarray accessor that provides the .pyloess interface.
"""

from .accessor import PyLoessAccessor

__all__ = ["PyLoessAccessor"]
