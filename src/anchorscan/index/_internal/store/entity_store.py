"""Entity store: identity assignment and section-document persistence.

One document per entity kind plus one per record kind, all under the
metadata directory. Every write rewrites the whole document (read, modify,
write). The store assumes a single writer process; there is no locking.

Identity: an entity keeps its ``id`` for as long as its identity key matches
a stored record. The identity key is ``SourceEntity.logical_key`` plus the
entity's position, in line order, among entities sharing that logical key.
Anything else gets a freshly minted id.
"""

from __future__ import annotations

import os
from collections import defaultdict
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any
from uuid import uuid4

import structlog

from anchorscan.core.errors import DocumentFormatError, EntityLookupError
from anchorscan.index._internal.store.schemas import (
    CONTEXT_ACCOUNTS_SCHEMA,
    DEPENDENCY_SCHEMA,
    ENTITY_SCHEMAS,
    TRAIT_IMPLEMENTATION_SCHEMA,
    context_accounts_from_values,
    context_accounts_to_values,
    dependency_from_values,
    dependency_to_values,
    entity_from_values,
    entity_to_values,
    trait_implementation_from_values,
    trait_implementation_to_values,
)
from anchorscan.index._internal.store.sections import (
    SectionSchema,
    decode_document,
    encode_document,
    encode_section,
)
from anchorscan.index.models import (
    ContextAccountsRecord,
    EntityKind,
    FunctionDependencyRecord,
    SourceEntity,
    Subtype,
    TraitImplementationRecord,
)

log = structlog.get_logger(__name__)


def mint_id() -> str:
    """Opaque 32-character identity token."""
    return uuid4().hex


def _sort_key(entity: SourceEntity) -> tuple[str, str, int]:
    return entity.name, entity.path, entity.start_line


IdentityKey = tuple[object, ...]


def identity_keys(entities: list[SourceEntity]) -> list[IdentityKey]:
    """Logical key of each entity plus its ordinal among same-key entities."""
    keys: list[IdentityKey] = [()] * len(entities)
    seen: dict[IdentityKey, int] = defaultdict(int)
    for i in sorted(range(len(entities)), key=lambda i: entities[i].start_line):
        base = entities[i].logical_key
        keys[i] = (*base, seen[base])
        seen[base] += 1
    return keys


class EntityStore:
    """Persistent, cached view of the metadata documents.

    Usage::

        store = EntityStore(repo_root / ".anchorscan" / "metadata")
        stored = store.upsert(EntityKind.FUNCTION, entity)
        store.read_by_id(stored.id)
    """

    def __init__(self, metadata_dir: Path, *, id_factory: Callable[[], str] = mint_id) -> None:
        self.metadata_dir = metadata_dir
        self._mint = id_factory
        self._entities: dict[EntityKind, list[SourceEntity]] = {}
        self._by_id: dict[str, SourceEntity] | None = None
        self._dependencies: dict[str, FunctionDependencyRecord] | None = None
        self._trait_impls: dict[str, TraitImplementationRecord] | None = None
        self._context_accounts: dict[str, ContextAccountsRecord] | None = None

    # =========================================================================
    # Document I/O
    # =========================================================================

    def document_path(self, schema: SectionSchema) -> Path:
        return self.metadata_dir / schema.document

    def _read(self, schema: SectionSchema) -> list[dict[str, Any]]:
        path = self.document_path(schema)
        if not path.exists():
            return []
        return decode_document(schema, path.read_text(encoding="utf-8"))

    def _write(self, schema: SectionSchema, records: Iterable[dict[str, Any]]) -> None:
        path = self.document_path(schema)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(path.suffix + ".tmp")
        tmp.write_text(encode_document(schema, records), encoding="utf-8")
        os.replace(tmp, path)

    # =========================================================================
    # Entities
    # =========================================================================

    def _load(self, kind: EntityKind) -> list[SourceEntity]:
        if kind not in self._entities:
            schema = ENTITY_SCHEMAS[kind]
            entities: list[SourceEntity] = []
            for values in self._read(schema):
                try:
                    entities.append(entity_from_values(kind, values))
                except ValueError as e:
                    raise DocumentFormatError.invalid_value(
                        schema.document,
                        encode_section(schema, values),
                        "type",
                        str(values.get("type")),
                        str(e),
                    ) from e
            self._entities[kind] = entities
        return self._entities[kind]

    def _save(self, kind: EntityKind, entities: list[SourceEntity]) -> None:
        entities.sort(key=_sort_key)
        self._write(ENTITY_SCHEMAS[kind], (entity_to_values(e) for e in entities))
        self._entities[kind] = entities
        self._by_id = None

    def _assign(
        self,
        kind: EntityKind,
        entities: Iterable[SourceEntity],
        known: dict[IdentityKey, str],
    ) -> list[tuple[IdentityKey, SourceEntity]]:
        batch = list(entities)
        for entity in batch:
            if entity.kind is not kind:
                raise ValueError(
                    f"Cannot store {entity.kind.value} {entity.name!r} as {kind.value}"
                )
        assigned: list[tuple[IdentityKey, SourceEntity]] = []
        for key, entity in zip(identity_keys(batch), batch, strict=True):
            entity_id = known.get(key) or self._mint()
            assigned.append((key, entity.with_id(entity_id)))
        return assigned

    def upsert(self, kind: EntityKind, entity: SourceEntity) -> SourceEntity:
        """Insert or replace one entity; returns it with its stored id."""
        return self.upsert_many(kind, [entity])[0]

    def upsert_many(self, kind: EntityKind, entities: Iterable[SourceEntity]) -> list[SourceEntity]:
        """Upsert a batch with a single document write."""
        current = list(self._load(kind))
        current_keys = identity_keys(current)
        position = {key: i for i, key in enumerate(current_keys)}
        known = {key: e.id for key, e in zip(current_keys, current, strict=True)}
        assigned = self._assign(kind, entities, known)
        for key, entity in assigned:
            index = position.get(key)
            if index is None:
                position[key] = len(current)
                current.append(entity)
                log.debug("entity_upserted", action="inserted", kind=kind.value, id=entity.id)
            else:
                current[index] = entity
                log.debug("entity_upserted", action="replaced", kind=kind.value, id=entity.id)
        self._save(kind, current)
        return [entity for _key, entity in assigned]

    def replace_all(self, kind: EntityKind, entities: Iterable[SourceEntity]) -> list[SourceEntity]:
        """Rebuild a kind's document from scratch.

        Ids of entities whose logical key was already stored are kept; stored
        entities missing from ``entities`` are dropped.
        """
        previous = self._load(kind)
        previous_keys = identity_keys(previous)
        known = {key: e.id for key, e in zip(previous_keys, previous, strict=True)}
        assigned = self._assign(kind, entities, known)
        stored = [entity for _key, entity in assigned]
        kept = {key for key, _entity in assigned}
        dropped = sum(1 for key in previous_keys if key not in kept)
        self._save(kind, list(stored))
        log.info("entities_rebuilt", kind=kind.value, count=len(stored), dropped=dropped)
        return stored

    def all(self, kind: EntityKind) -> list[SourceEntity]:
        return list(self._load(kind))

    def query(
        self,
        kind: EntityKind,
        name: str | None = None,
        subtype: Subtype | None = None,
    ) -> list[SourceEntity]:
        """Entities of ``kind`` matching the filters. Empty list when none match."""
        return [
            e
            for e in self._load(kind)
            if (name is None or e.name == name) and (subtype is None or e.subtype == subtype)
        ]

    def find_by_id(self, entity_id: str) -> SourceEntity | None:
        if self._by_id is None:
            self._by_id = {e.id: e for kind in EntityKind for e in self._load(kind)}
        return self._by_id.get(entity_id)

    def read_by_id(self, entity_id: str) -> SourceEntity:
        """Point lookup across all kinds. A miss means the graph is inconsistent."""
        entity = self.find_by_id(entity_id)
        if entity is None:
            raise EntityLookupError.missing_id(entity_id)
        return entity

    def locate(self, entity_id: str) -> tuple[str, int]:
        """``(path, start_line)`` for opening an entity in an editor."""
        entity = self.read_by_id(entity_id)
        return entity.path, entity.start_line

    # =========================================================================
    # Function dependency records
    # =========================================================================

    def _load_dependencies(self) -> dict[str, FunctionDependencyRecord]:
        if self._dependencies is None:
            records = (dependency_from_values(v) for v in self._read(DEPENDENCY_SCHEMA))
            self._dependencies = {r.owner_id: r for r in records}
        return self._dependencies

    def get_dependency_record(self, owner_id: str) -> FunctionDependencyRecord | None:
        return self._load_dependencies().get(owner_id)

    def put_dependency_records(self, records: Iterable[FunctionDependencyRecord]) -> None:
        cached = self._load_dependencies()
        for record in records:
            cached[record.owner_id] = record
        ordered = sorted(cached.values(), key=lambda r: (r.function_name, r.owner_id))
        self._write(DEPENDENCY_SCHEMA, (dependency_to_values(r) for r in ordered))

    def put_dependency_record(self, record: FunctionDependencyRecord) -> None:
        self.put_dependency_records([record])

    def dependency_records(self) -> list[FunctionDependencyRecord]:
        return list(self._load_dependencies().values())

    def clear_dependency_records(self) -> None:
        self._dependencies = {}
        self._write(DEPENDENCY_SCHEMA, [])

    # =========================================================================
    # Trait implementation records
    # =========================================================================

    def _load_trait_impls(self) -> dict[str, TraitImplementationRecord]:
        if self._trait_impls is None:
            records = (
                trait_implementation_from_values(v) for v in self._read(TRAIT_IMPLEMENTATION_SCHEMA)
            )
            self._trait_impls = {r.trait_entity_id: r for r in records}
        return self._trait_impls

    def replace_trait_implementation_records(
        self, records: Iterable[TraitImplementationRecord]
    ) -> None:
        ordered = sorted(records, key=lambda r: (r.name, r.trait_entity_id))
        self._write(
            TRAIT_IMPLEMENTATION_SCHEMA, (trait_implementation_to_values(r) for r in ordered)
        )
        self._trait_impls = {r.trait_entity_id: r for r in ordered}

    def trait_implementation_records(self) -> list[TraitImplementationRecord]:
        return list(self._load_trait_impls().values())

    def get_trait_implementation_record(
        self, trait_entity_id: str
    ) -> TraitImplementationRecord | None:
        return self._load_trait_impls().get(trait_entity_id)

    # =========================================================================
    # Context accounts records
    # =========================================================================

    def _load_context_accounts(self) -> dict[str, ContextAccountsRecord]:
        if self._context_accounts is None:
            records = (
                context_accounts_from_values(v) for v in self._read(CONTEXT_ACCOUNTS_SCHEMA)
            )
            self._context_accounts = {r.struct_entity_id: r for r in records}
        return self._context_accounts

    def replace_context_accounts_records(self, records: Iterable[ContextAccountsRecord]) -> None:
        ordered = sorted(records, key=lambda r: (r.name, r.struct_entity_id))
        self._write(CONTEXT_ACCOUNTS_SCHEMA, (context_accounts_to_values(r) for r in ordered))
        self._context_accounts = {r.struct_entity_id: r for r in ordered}

    def context_accounts_records(self) -> list[ContextAccountsRecord]:
        return list(self._load_context_accounts().values())

    def get_context_accounts_record(self, struct_entity_id: str) -> ContextAccountsRecord | None:
        return self._load_context_accounts().get(struct_entity_id)
