"""High-level orchestration of the audit index.

The IndexCoordinator is the entry point for all index operations:

    walk -> boundary scan (one worker per kind) -> classify -> store
         -> trait implementation records -> context accounts records

Dependency records are computed lazily afterwards and cached in the store.

SCAN MODEL:
- Each kind's worker owns its own accumulator and iterates the full file
  list; nothing is shared between workers until they are joined.
- Results are merged, given enclosing ranges, and written after the join.
- A scan rebuilds every scanned kind's document and drops cached
  dependency records.
"""

from __future__ import annotations

import re
import time
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from pathlib import Path

import structlog

from anchorscan.config import (
    AnchorScanConfig,
    get_metadata_dir,
    load_config,
    resolve_program_lib_path,
)
from anchorscan.config.constants import CONTEXT_LOOKAHEAD_LINES
from anchorscan.core.errors import EntrypointNotFoundError, InternalError
from anchorscan.core.logging import set_run_id
from anchorscan.index._internal.discovery import SourceFile, collect_sources
from anchorscan.index._internal.parsing import (
    ProgramContext,
    build_trait_implementation_record,
    classify,
    context_name_from_text,
    find_entrypoints,
    function_body,
    function_parameters,
    parse_context_accounts,
)
from anchorscan.index._internal.resolution import DependencyResolver
from anchorscan.index._internal.scanning import scan_boundaries
from anchorscan.index._internal.store import EntityStore, SourceReader
from anchorscan.index.models import (
    ContextAccountsRecord,
    EntityKind,
    EntrypointView,
    FunctionDependencyRecord,
    FunctionSubtype,
    SourceEntity,
    StructSubtype,
    Subtype,
    TraitSubtype,
)

log = structlog.get_logger(__name__)

_CONTAINER_KINDS = (EntityKind.TRAIT_IMPLEMENTATION, EntityKind.TRAIT)


@dataclass
class ScanStats:
    """Statistics from one scan."""

    files_scanned: int
    entities_by_kind: dict[str, int]
    trait_implementations: int
    context_accounts: int
    duration_seconds: float
    program_lib_path: str | None = None
    entrypoints: list[str] = field(default_factory=list)
    skipped_files: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


def scan_kind(
    kind: EntityKind, files: list[SourceFile], program: ProgramContext
) -> list[SourceEntity]:
    """Scan every file for one kind. Runs on a worker thread."""
    found_entities: list[SourceEntity] = []
    for source in files:
        lines = source.lines
        for found in scan_boundaries(kind, source.text):
            found_entities.append(
                SourceEntity(
                    kind=kind,
                    subtype=classify(kind, source.path, found, lines, program),
                    path=source.path,
                    name=found.name,
                    start_line=found.start_line,
                    end_line=found.end_line,
                )
            )
    log.debug("scan_kind_done", kind=kind.value, count=len(found_entities))
    return found_entities


def assign_enclosing_ranges(
    scanned: dict[EntityKind, list[SourceEntity]],
) -> dict[EntityKind, list[SourceEntity]]:
    """Tag entities nested in an impl or trait block with that block's range."""
    containers: dict[str, list[SourceEntity]] = defaultdict(list)
    for kind in _CONTAINER_KINDS:
        for entity in scanned.get(kind, []):
            containers[entity.path].append(entity)

    result: dict[EntityKind, list[SourceEntity]] = {}
    for kind, entities in scanned.items():
        tagged: list[SourceEntity] = []
        for entity in entities:
            enclosing = [c for c in containers.get(entity.path, []) if c.contains(entity)]
            if enclosing:
                inner = min(enclosing, key=lambda c: c.end_line - c.start_line)
                entity = replace(entity, enclosing_range=(inner.start_line, inner.end_line))
            tagged.append(entity)
        result[kind] = tagged
    return result


class IndexCoordinator:
    """
    Scan orchestration and queries over the metadata graph.

    Usage::

        coordinator = IndexCoordinator(repo_root)
        stats = coordinator.scan()

        for fn in coordinator.query(EntityKind.FUNCTION, name="deposit"):
            record = coordinator.resolve_dependencies(fn.id)
    """

    def __init__(self, repo_root: Path, config: AnchorScanConfig | None = None) -> None:
        self.repo_root = repo_root
        self.config = config or load_config(repo_root)
        self.store = EntityStore(get_metadata_dir(repo_root, self.config))
        self.source = SourceReader(repo_root)
        self._resolver: DependencyResolver | None = None

    # =========================================================================
    # Scanning
    # =========================================================================

    def _program_context(self, files: list[SourceFile]) -> ProgramContext:
        lib_path = resolve_program_lib_path(self.repo_root, self.config)
        if lib_path is None:
            return ProgramContext()
        by_path = {f.path: f for f in files}
        lib_file = by_path.get(lib_path)
        lib_text = lib_file.text if lib_file else "\n".join(self.source.lines(lib_path))
        entrypoints = find_entrypoints(lib_text)
        log.info("entrypoints_found", lib_path=lib_path, count=len(entrypoints))
        return ProgramContext.from_entrypoints(lib_path, entrypoints)

    def scan(self) -> ScanStats:
        """Rescan the program directory and rebuild every document."""
        set_run_id()
        start = time.perf_counter()
        self.source.clear()
        self._resolver = None

        walk = collect_sources(
            self.repo_root,
            self.config.program.program_dir,
            extensions=self.config.scan.extensions,
            max_file_size_mb=self.config.scan.max_file_size_mb,
        )
        program = self._program_context(walk.files)
        kinds = [EntityKind(k) for k in self.config.scan.kinds]

        with ThreadPoolExecutor(max_workers=max(len(kinds), 1), thread_name_prefix="scan") as pool:
            futures = {kind: pool.submit(scan_kind, kind, walk.files, program) for kind in kinds}
            scanned: dict[EntityKind, list[SourceEntity]] = {}
            for kind, future in futures.items():
                try:
                    scanned[kind] = future.result()
                except ValueError as e:
                    raise InternalError.unexpected(
                        "scan worker failed", kind=kind.value, error=str(e)
                    ) from e

        scanned = assign_enclosing_ranges(scanned)
        for kind in kinds:
            self.store.replace_all(kind, scanned[kind])

        self.store.clear_dependency_records()
        impl_count = self._rebuild_trait_implementation_records()
        accounts_count = self._rebuild_context_accounts_records(walk.files)

        stats = ScanStats(
            files_scanned=len(walk.files),
            entities_by_kind={kind.value: len(scanned[kind]) for kind in kinds},
            trait_implementations=impl_count,
            context_accounts=accounts_count,
            duration_seconds=time.perf_counter() - start,
            program_lib_path=program.program_lib_path,
            entrypoints=[ep.name for ep in program.entrypoints],
            skipped_files=walk.skipped_large,
            errors=walk.errors,
        )
        log.info(
            "scan_complete",
            files=stats.files_scanned,
            entities=stats.entities_by_kind,
            duration_s=round(stats.duration_seconds, 3),
        )
        return stats

    def _rebuild_trait_implementation_records(self) -> int:
        functions = self.store.all(EntityKind.FUNCTION)
        definitions = {
            trait.name: trait
            for trait in self.store.query(EntityKind.TRAIT, subtype=TraitSubtype.DEFINITION)
        }
        records = [
            build_trait_implementation_record(impl, functions, definitions)
            for impl in self.store.all(EntityKind.TRAIT_IMPLEMENTATION)
        ]
        self.store.replace_trait_implementation_records(records)
        return len(records)

    def _rebuild_context_accounts_records(self, files: list[SourceFile]) -> int:
        by_path = {f.path: f.lines for f in files}
        records: list[ContextAccountsRecord] = []
        for struct in self.store.query(EntityKind.STRUCT, subtype=StructSubtype.CONTEXT_ACCOUNTS):
            lines = by_path.get(struct.path) or self.source.lines(struct.path)
            content = "\n".join(lines[struct.start_line - 1 : struct.end_line])
            records.append(
                ContextAccountsRecord(
                    struct_entity_id=struct.id,
                    name=struct.name,
                    accounts=tuple(parse_context_accounts(content)),
                )
            )
        self.store.replace_context_accounts_records(records)
        return len(records)

    # =========================================================================
    # Queries
    # =========================================================================

    def query(
        self,
        kind: EntityKind,
        name: str | None = None,
        subtype: Subtype | None = None,
    ) -> list[SourceEntity]:
        return self.store.query(kind, name=name, subtype=subtype)

    def read_by_id(self, entity_id: str) -> SourceEntity:
        return self.store.read_by_id(entity_id)

    def locate(self, entity_id: str) -> tuple[str, int]:
        return self.store.locate(entity_id)

    @property
    def resolver(self) -> DependencyResolver:
        if self._resolver is None:
            self._resolver = DependencyResolver(self.store, self.source)
        return self._resolver

    def resolve_dependencies(self, function_id: str) -> FunctionDependencyRecord:
        return self.resolver.resolve(function_id)

    def resolve_dependencies_by_name(self, name: str) -> list[FunctionDependencyRecord]:
        """Records for every function called ``name`` (empty when none)."""
        return [self.resolver.resolve(f.id) for f in self.query(EntityKind.FUNCTION, name=name)]

    def entrypoint(self, name: str) -> EntrypointView:
        """Entrypoint function with its accounts struct and handler.

        Raises:
            EntrypointNotFoundError: if there is not exactly one entrypoint
                named ``name`` or its context accounts struct is missing.
        """
        matches = self.query(EntityKind.FUNCTION, name=name, subtype=FunctionSubtype.ENTRYPOINT)
        if len(matches) != 1:
            raise EntrypointNotFoundError.entrypoint(name, len(matches))
        entrypoint = matches[0]
        content = self.source.content(entrypoint)
        lookahead = "\n".join(content.split("\n")[:CONTEXT_LOOKAHEAD_LINES])
        context_name = context_name_from_text(lookahead)

        structs = (
            self.query(EntityKind.STRUCT, name=context_name, subtype=StructSubtype.CONTEXT_ACCOUNTS)
            if context_name
            else []
        )
        if not structs:
            raise EntrypointNotFoundError.context_accounts(name, context_name or "")
        context_accounts = structs[0]

        body = function_body(content)
        handler = None
        for candidate in self.query(EntityKind.FUNCTION, subtype=FunctionSubtype.HANDLER):
            if not re.search(rf"\b{re.escape(candidate.name)}\b", body):
                continue
            params = function_parameters(self.source.content(candidate))
            if params and context_name_from_text(params[0]) == context_name:
                handler = candidate
                break

        return EntrypointView(
            name=name,
            entrypoint=entrypoint,
            context_accounts=context_accounts,
            accounts=self.store.get_context_accounts_record(context_accounts.id),
            handler=handler,
        )

    def entrypoint_names(self) -> list[str]:
        return sorted(
            e.name
            for e in self.query(EntityKind.FUNCTION, subtype=FunctionSubtype.ENTRYPOINT)
        )
