"""Section-document persistence for entities and derived records."""

from anchorscan.index._internal.store.entity_store import EntityStore, mint_id
from anchorscan.index._internal.store.source import SourceReader

__all__ = ["EntityStore", "SourceReader", "mint_id"]
