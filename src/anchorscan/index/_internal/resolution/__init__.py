"""Lazy function dependency resolution."""

from anchorscan.index._internal.resolution.dependencies import DependencyResolver

__all__ = ["DependencyResolver"]
