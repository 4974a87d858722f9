"""Function dependency resolution.

For one function body:

1. ``Type::method(...)`` calls are matched against member functions of
   non-external impl blocks whose implemented type is ``Type``. Hits become
   internal edges and are blanked out of the body.
2. Remaining ``name(...)`` calls are collected, skipping ``Ok``/``Some``/``Err``,
   control-flow keywords, the function's own name, tuple-variant
   constructors like ``Some((a, b))`` and every line that goes through
   ``self.`` or ``Self::``.
3. Each name maps to every function entity with that exact name. No match
   makes it an external dependency.

Newly discovered internal targets without a cached record are resolved
from a worklist with a visited set, so shared callees are parsed once.
"""

from __future__ import annotations

import re
from collections import deque

import structlog

from anchorscan.index._internal.parsing.functions import function_body
from anchorscan.index._internal.parsing.traits import base_type_name
from anchorscan.index._internal.scanning.lexer import mask_text
from anchorscan.index._internal.store.entity_store import EntityStore
from anchorscan.index._internal.store.source import SourceReader
from anchorscan.index.models import EntityKind, FunctionDependencyRecord, SourceEntity

log = structlog.get_logger(__name__)

_QUALIFIED_CALL_RE = re.compile(
    r"\b(?P<type>[A-Za-z_][A-Za-z0-9_]*)(?:::<[^>]*>)?::(?P<method>[A-Za-z_][A-Za-z0-9_]*)\s*\("
)
_CALL_RE = re.compile(r"(?<![A-Za-z0-9_])(?P<name>[A-Za-z_][A-Za-z0-9_]*)\s*\(")
_SELF_MARKERS = ("self.", "Self::")
_WRAPPERS = frozenset({"Ok", "Some", "Err"})
_KEYWORDS = frozenset(
    {"if", "else", "while", "for", "in", "match", "return", "loop", "let", "move", "as", "fn"}
)


class DependencyResolver:
    """Lazily computes and caches ``FunctionDependencyRecord`` per function id.

    ``parse_count`` counts bodies actually parsed, for instrumentation.
    """

    def __init__(self, store: EntityStore, source: SourceReader) -> None:
        self.store = store
        self.source = source
        self.parse_count = 0
        self._impl_members: dict[tuple[str, str], list[str]] | None = None

    def resolve(self, function_id: str) -> FunctionDependencyRecord:
        """Dependency record of a function, computing it on first request.

        Raises:
            EntityLookupError: if ``function_id`` or a discovered edge target
                has no entity.
        """
        cached = self.store.get_dependency_record(function_id)
        if cached is not None:
            return cached

        root = self.store.read_by_id(function_id)
        worklist: deque[SourceEntity] = deque([root])
        visited = {root.id}
        computed: dict[str, FunctionDependencyRecord] = {}

        while worklist:
            function = worklist.popleft()
            record = self._compute(function)
            computed[function.id] = record
            for dep_id in sorted(record.internal_dependencies):
                if dep_id in visited or self.store.get_dependency_record(dep_id) is not None:
                    continue
                visited.add(dep_id)
                worklist.append(self.store.read_by_id(dep_id))

        self.store.put_dependency_records(computed.values())
        log.debug(
            "dependency_resolved",
            function=root.name,
            id=root.id,
            parsed=len(computed),
        )
        return computed[root.id]

    def resolve_all(self) -> list[FunctionDependencyRecord]:
        """Resolve every function entity in the store."""
        return [self.resolve(f.id) for f in self.store.all(EntityKind.FUNCTION)]

    # -------------------------------------------------------------------------

    def _member_index(self) -> dict[tuple[str, str], list[str]]:
        """``(implemented type, method name) -> [function ids]``."""
        if self._impl_members is None:
            index: dict[tuple[str, str], list[str]] = {}
            for record in self.store.trait_implementation_records():
                if record.external:
                    continue
                type_name = base_type_name(record.impl_to)
                for member_id in record.member_function_ids:
                    member = self.store.read_by_id(member_id)
                    index.setdefault((type_name, member.name), []).append(member_id)
            self._impl_members = index
        return self._impl_members

    def _compute(self, function: SourceEntity) -> FunctionDependencyRecord:
        self.parse_count += 1
        body = mask_text(function_body(self.source.content(function)))
        internal: set[str] = set()
        external: set[str] = set()
        members = self._member_index()

        def _take_qualified(m: re.Match[str]) -> str:
            ids = members.get((m.group("type"), m.group("method")))
            if not ids:
                return m.group(0)
            internal.update(ids)
            return " " * len(m.group(0))

        body = _QUALIFIED_CALL_RE.sub(_take_qualified, body)

        candidates: dict[str, None] = {}
        for line in body.split("\n"):
            if any(marker in line for marker in _SELF_MARKERS):
                continue
            for m in _CALL_RE.finditer(line):
                name = m.group("name")
                if name in _WRAPPERS or name in _KEYWORDS or name == function.name:
                    continue
                if name[0].isupper() and line[m.end() :].lstrip().startswith("("):
                    continue
                candidates[name] = None

        for name in candidates:
            matches = self.store.query(EntityKind.FUNCTION, name=name)
            if matches:
                internal.update(match.id for match in matches)
            else:
                external.add(name)

        log.debug(
            "function_parsed",
            function=function.name,
            internal=len(internal),
            external=len(external),
        )
        return FunctionDependencyRecord(
            owner_id=function.id,
            function_name=function.name,
            internal_dependencies=frozenset(internal),
            external_dependencies=frozenset(external),
        )
