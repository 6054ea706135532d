"""Derivative generation and caching for the image store."""

from .generator import shrink_image, nearest_shrink, reduced_size
from .store import DerivativeStore

__all__ = ['shrink_image', 'nearest_shrink', 'reduced_size', 'DerivativeStore']
