"""Spherical ROAM level-of-detail mesh with BIL elevation tile support."""

__version__ = "0.1.0"
__all__ = ["elevation", "geometry", "mesh", "pqueue", "sphere"]