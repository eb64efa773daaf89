"""Geometry, meshes and their loaders, a scene graph, and GPU synchronization tables."""

__version__ = "0.1.0"