"""Index module - entity scanning and the metadata graph.

This module provides:
- Boundary scanning: brace-matched ranges per entity kind
- Classification: Anchor-aware subtypes for every entity
- Entity store: identity and section-document persistence
- Dependency resolution: lazy, cached call graph edges

Public API is in `anchorscan.index.ops`:
- IndexCoordinator: High-level orchestration
- ScanStats: Result type

Internal implementations are in `anchorscan.index._internal/`.
"""

from anchorscan.index.models import (
    ContextAccountField,
    ContextAccountsRecord,
    EntityKind,
    EntrypointView,
    EnumSubtype,
    FunctionDependencyRecord,
    FunctionSubtype,
    ScanRange,
    SourceEntity,
    StructSubtype,
    Subtype,
    TraitImplementationRecord,
    TraitImplementationSubtype,
    TraitSubtype,
)
from anchorscan.index.ops import IndexCoordinator, ScanStats

__all__ = [
    # Public API (ops.py)
    "IndexCoordinator",
    "ScanStats",
    # Enums
    "EntityKind",
    "FunctionSubtype",
    "StructSubtype",
    "TraitSubtype",
    "TraitImplementationSubtype",
    "EnumSubtype",
    "Subtype",
    # Entities and records
    "ScanRange",
    "SourceEntity",
    "ContextAccountField",
    "ContextAccountsRecord",
    "FunctionDependencyRecord",
    "TraitImplementationRecord",
    "EntrypointView",
]
