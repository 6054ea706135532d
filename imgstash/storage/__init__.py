"""Storage modules for the image store."""

from .files import ImageStorage, write_atomic, random_name

__all__ = ['ImageStorage', 'write_atomic', 'random_name']
