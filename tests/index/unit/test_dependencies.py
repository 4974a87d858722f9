"""Unit tests for DependencyResolver (dependencies.py).

Each test scans a tiny program into a fresh workspace, then resolves call
edges from the stored entities.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from anchorscan.core.errors import EntityLookupError
from anchorscan.index.models import EntityKind
from anchorscan.index.ops import IndexCoordinator

LIB = "programs/p/src/lib.rs"


@pytest.fixture
def scanned(
    make_workspace: Callable[[dict[str, str]], Path],
) -> Callable[..., IndexCoordinator]:
    def _scan(source: str, **extra_files: str) -> IndexCoordinator:
        files = {LIB: source}
        files.update({f"programs/p/src/{name}.rs": text for name, text in extra_files.items()})
        coordinator = IndexCoordinator(make_workspace(files))
        coordinator.scan()
        return coordinator

    return _scan


def _function_id(coordinator: IndexCoordinator, name: str) -> str:
    [function] = coordinator.query(EntityKind.FUNCTION, name=name)
    return function.id


class TestCallCollection:
    """Tests for which call sites become edges."""

    def test_undefined_callee_is_external(self, scanned: Callable[..., IndexCoordinator]) -> None:
        """Should record a call to an unknown function as external."""
        coordinator = scanned("pub fn a() { b(); }\n")

        record = coordinator.resolve_dependencies(_function_id(coordinator, "a"))

        assert record.function_name == "a"
        assert record.internal_dependencies == frozenset()
        assert record.external_dependencies == frozenset({"b"})

    def test_internal_and_external(self, scanned: Callable[..., IndexCoordinator]) -> None:
        """Should split known and unknown callees."""
        coordinator = scanned(
            "pub fn helper() -> u64 {\n"
            "    7\n"
            "}\n"
            "\n"
            "pub fn caller() -> u64 {\n"
            "    let x = helper();\n"
            "    unknown_call(x)\n"
            "}\n"
        )

        record = coordinator.resolve_dependencies(_function_id(coordinator, "caller"))

        assert record.internal_dependencies == frozenset({_function_id(coordinator, "helper")})
        assert record.external_dependencies == frozenset({"unknown_call"})

    def test_wrappers_and_keywords_are_skipped(
        self, scanned: Callable[..., IndexCoordinator]
    ) -> None:
        """Should ignore Ok/Some/Err, keywords and macros."""
        coordinator = scanned(
            "pub fn wrap(v: u64) -> Result<Option<u64>> {\n"
            "    if check(v) {\n"
            "        return Ok(Some(v));\n"
            "    }\n"
            "    while (v > 0) {}\n"
            "    Err(error!(E::Bad))\n"
            "}\n"
        )

        record = coordinator.resolve_dependencies(_function_id(coordinator, "wrap"))

        assert record.external_dependencies == frozenset({"check"})
        assert record.internal_dependencies == frozenset()

    def test_tuple_variant_constructor_is_skipped(
        self, scanned: Callable[..., IndexCoordinator]
    ) -> None:
        """Should not treat `Pair((a, b))` as a call."""
        coordinator = scanned("pub fn make(a: u8, b: u8) -> Pair {\n    Pair((a, b))\n}\n")

        record = coordinator.resolve_dependencies(_function_id(coordinator, "make"))

        assert record.external_dependencies == frozenset()

    def test_recursion_is_not_an_edge(self, scanned: Callable[..., IndexCoordinator]) -> None:
        """Should skip calls to the function's own name."""
        coordinator = scanned(
            "fn fact(n: u64) -> u64 {\n    if n == 0 { 1 } else { n * fact(n - 1) }\n}\n"
        )

        record = coordinator.resolve_dependencies(_function_id(coordinator, "fact"))

        assert record.internal_dependencies == frozenset()
        assert record.external_dependencies == frozenset()

    def test_self_lines_are_skipped(self, scanned: Callable[..., IndexCoordinator]) -> None:
        """Should ignore every call on a line that goes through self."""
        coordinator = scanned(
            "pub struct Pool {\n"
            "    pub n: u64,\n"
            "}\n"
            "\n"
            "impl Pool {\n"
            "    pub fn bump(&mut self) {\n"
            "        self.n = compute(self.n);\n"
            "        log_it();\n"
            "    }\n"
            "}\n"
        )

        record = coordinator.resolve_dependencies(_function_id(coordinator, "bump"))

        assert record.external_dependencies == frozenset({"log_it"})

    def test_calls_in_strings_and_comments_are_ignored(
        self, scanned: Callable[..., IndexCoordinator]
    ) -> None:
        """Should only look at code."""
        coordinator = scanned(
            "pub fn quiet() {\n"
            '    let s = "fake(1)";\n'
            "    // commented(2)\n"
            "    real(s);\n"
            "}\n"
        )

        record = coordinator.resolve_dependencies(_function_id(coordinator, "quiet"))

        assert record.external_dependencies == frozenset({"real"})


class TestNameMatching:
    """Tests for mapping names to function entities."""

    def test_every_same_name_function_is_internal(
        self, scanned: Callable[..., IndexCoordinator]
    ) -> None:
        """Should link all functions sharing the called name."""
        coordinator = scanned(
            "pub fn run() {\n    init();\n}\n",
            alpha="pub fn init() {\n}\n",
            beta="pub fn init() {\n}\n",
        )

        record = coordinator.resolve_dependencies(_function_id(coordinator, "run"))

        init_ids = {f.id for f in coordinator.query(EntityKind.FUNCTION, name="init")}
        assert len(init_ids) == 2
        assert record.internal_dependencies == frozenset(init_ids)

    def test_same_name_in_sibling_modules(self, scanned: Callable[..., IndexCoordinator]) -> None:
        """Should resolve each module's helper from its own body."""
        coordinator = scanned(
            "mod a {\n"
            "    pub fn helper() {\n"
            "        one();\n"
            "    }\n"
            "}\n"
            "\n"
            "mod b {\n"
            "    pub fn helper() {\n"
            "        other();\n"
            "    }\n"
            "}\n"
            "\n"
            "pub fn run() {\n"
            "    helper();\n"
            "}\n"
        )
        helpers = sorted(
            coordinator.query(EntityKind.FUNCTION, name="helper"), key=lambda f: f.start_line
        )

        records = [coordinator.resolve_dependencies(h.id) for h in helpers]
        run = coordinator.resolve_dependencies(_function_id(coordinator, "run"))

        assert len({h.id for h in helpers}) == 2
        assert [r.external_dependencies for r in records] == [
            frozenset({"one"}),
            frozenset({"other"}),
        ]
        assert run.internal_dependencies == frozenset(h.id for h in helpers)

    def test_qualified_call_resolves_to_impl_member(
        self, scanned: Callable[..., IndexCoordinator]
    ) -> None:
        """Should match `Type::method(...)` against the type's impl blocks."""
        coordinator = scanned(
            "pub struct Pool {\n"
            "    pub n: u64,\n"
            "}\n"
            "\n"
            "impl Pool {\n"
            "    pub fn create() -> Self {\n"
            "        Pool { n: 0 }\n"
            "    }\n"
            "}\n"
            "\n"
            "pub fn build() -> Pool {\n"
            "    Pool::create()\n"
            "}\n"
        )

        record = coordinator.resolve_dependencies(_function_id(coordinator, "build"))

        assert record.internal_dependencies == frozenset({_function_id(coordinator, "create")})
        assert record.external_dependencies == frozenset()

    def test_qualified_call_skips_foreign_trait_impl(
        self, scanned: Callable[..., IndexCoordinator]
    ) -> None:
        """Should match `Pool::method(...)` only against non-external impls."""
        coordinator = scanned(
            "pub struct Pool {\n"
            "    pub n: u64,\n"
            "}\n"
            "\n"
            "impl Pool {\n"
            "    pub fn method() {\n"
            "    }\n"
            "}\n"
            "\n"
            "impl ForeignTrait for Pool {\n"
            "    fn method() {\n"
            "    }\n"
            "}\n"
            "\n"
            "pub fn use_it() {\n"
            "    Pool::method();\n"
            "}\n"
        )
        inherent, foreign = sorted(
            coordinator.query(EntityKind.FUNCTION, name="method"), key=lambda f: f.start_line
        )

        record = coordinator.resolve_dependencies(_function_id(coordinator, "use_it"))

        impls = coordinator.store.trait_implementation_records()
        assert sorted(r.external for r in impls) == [False, True]
        assert record.internal_dependencies == frozenset({inherent.id})
        assert foreign.id not in record.internal_dependencies

    def test_foreign_trait_member_still_links_by_name(
        self, scanned: Callable[..., IndexCoordinator]
    ) -> None:
        """Should fall back to the bare-name pass when no local impl matches."""
        coordinator = scanned(
            "pub struct Pool {\n"
            "    pub n: u64,\n"
            "}\n"
            "\n"
            "impl ForeignTrait for Pool {\n"
            "    fn method() {\n"
            "    }\n"
            "}\n"
            "\n"
            "pub fn use_it() {\n"
            "    Pool::method();\n"
            "}\n"
        )
        [impl_record] = coordinator.store.trait_implementation_records()

        record = coordinator.resolve_dependencies(_function_id(coordinator, "use_it"))

        assert impl_record.external
        assert record.internal_dependencies == frozenset({_function_id(coordinator, "method")})
        assert record.external_dependencies == frozenset()


class TestResolution:
    """Tests for caching and traversal."""

    def test_records_are_cached(self, scanned: Callable[..., IndexCoordinator]) -> None:
        """Should parse each body once and reuse stored records."""
        coordinator = scanned(
            "pub fn leaf() {\n}\n\n"
            "pub fn mid() {\n    leaf();\n}\n\n"
            "pub fn top() {\n    mid();\n}\n"
        )
        resolver = coordinator.resolver

        first = resolver.resolve(_function_id(coordinator, "top"))
        assert resolver.parse_count == 3

        again = resolver.resolve(_function_id(coordinator, "top"))
        resolver.resolve(_function_id(coordinator, "leaf"))

        assert again == first
        assert resolver.parse_count == 3

    def test_records_persist(self, scanned: Callable[..., IndexCoordinator]) -> None:
        """Should write resolved records to the dependency document."""
        coordinator = scanned("pub fn a() { b(); }\n")
        function_id = _function_id(coordinator, "a")

        coordinator.resolve_dependencies(function_id)

        fresh = IndexCoordinator(coordinator.repo_root)
        assert fresh.store.get_dependency_record(function_id) is not None
        assert fresh.resolver.parse_count == 0

    def test_rescan_clears_records(self, scanned: Callable[..., IndexCoordinator]) -> None:
        """Should drop cached records on a full scan."""
        coordinator = scanned("pub fn a() { b(); }\n")
        coordinator.resolve_dependencies(_function_id(coordinator, "a"))

        coordinator.scan()

        assert coordinator.store.dependency_records() == []

    def test_resolve_all(self, scanned: Callable[..., IndexCoordinator]) -> None:
        """Should return one record per function."""
        coordinator = scanned("pub fn a() { b(); }\n\npub fn b() {\n}\n")

        records = coordinator.resolver.resolve_all()

        assert sorted(r.function_name for r in records) == ["a", "b"]

    def test_unknown_id_raises(self, scanned: Callable[..., IndexCoordinator]) -> None:
        """Should raise EntityLookupError for an id not in the store."""
        coordinator = scanned("pub fn a() {}\n")

        with pytest.raises(EntityLookupError):
            coordinator.resolve_dependencies("missing")


class TestSampleProgram:
    """Edges of the vault sample program."""

    @pytest.fixture
    def coordinator(self, anchor_workspace: Path) -> IndexCoordinator:
        coordinator = IndexCoordinator(anchor_workspace)
        coordinator.scan()
        return coordinator

    def _names(self, coordinator: IndexCoordinator, ids: frozenset[str]) -> set[str]:
        return {coordinator.read_by_id(i).name for i in ids}

    @pytest.mark.parametrize(
        ("function", "internal", "external"),
        [
            ("deposit", {"process_deposit"}, set()),
            ("process_deposit", {"credit"}, set()),
            ("credit", {"checked_add"}, set()),
            ("checked_add", set(), {"ok_or"}),
            ("process_initialize", {"space"}, {"key"}),
        ],
    )
    def test_edges(
        self,
        coordinator: IndexCoordinator,
        function: str,
        internal: set[str],
        external: set[str],
    ) -> None:
        """Should resolve the expected call graph."""
        record = coordinator.resolve_dependencies(_function_id(coordinator, function))

        assert self._names(coordinator, record.internal_dependencies) == internal
        assert record.external_dependencies == external

    def test_transitive_parse_count(self, coordinator: IndexCoordinator) -> None:
        """Should parse the entrypoint and every reachable callee once."""
        coordinator.resolve_dependencies(_function_id(coordinator, "deposit"))

        assert coordinator.resolver.parse_count == 4
