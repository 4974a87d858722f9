"""Source file collection."""

from anchorscan.index._internal.discovery.walker import SourceFile, WalkResult, collect_sources

__all__ = ["SourceFile", "WalkResult", "collect_sources"]
