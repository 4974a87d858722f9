"""Data model for the audit index.

Kinds and subtypes form a closed set: every ``EntityKind`` has exactly one
subtype enum, and ``SourceEntity`` refuses a subtype from another kind.

Line numbers on every persisted type are 1-based and inclusive.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum

# ============================================================================
# ENUMS
# ============================================================================


class EntityKind(str, Enum):
    """Construct kinds located by the boundary scanner."""

    FUNCTION = "Function"
    STRUCT = "Struct"
    TRAIT = "Trait"
    TRAIT_IMPLEMENTATION = "TraitImplementation"
    ENUM = "Enum"

    @property
    def subtype_enum(self) -> type[Subtype]:
        return _SUBTYPES_BY_KIND[self]

    def parse_subtype(self, value: str) -> Subtype:
        """Subtype of this kind from its persisted value. Raises ValueError."""
        return self.subtype_enum(value)


class FunctionSubtype(str, Enum):
    ENTRYPOINT = "EntryPoint"
    HANDLER = "Handler"
    OTHER = "Other"


class StructSubtype(str, Enum):
    CONTEXT_ACCOUNTS = "ContextAccounts"
    SOLANA_ACCOUNT = "SolanaAccount"
    OTHER = "Other"


class TraitSubtype(str, Enum):
    DEFINITION = "Definition"


class TraitImplementationSubtype(str, Enum):
    TRAIT_IMPL = "TraitImpl"  # impl Trait for Type
    INHERENT = "Inherent"  # impl Type


class EnumSubtype(str, Enum):
    ERROR_CODE = "ErrorCode"
    OTHER = "Other"


Subtype = FunctionSubtype | StructSubtype | TraitSubtype | TraitImplementationSubtype | EnumSubtype

_SUBTYPES_BY_KIND: dict[EntityKind, type[Subtype]] = {
    EntityKind.FUNCTION: FunctionSubtype,
    EntityKind.STRUCT: StructSubtype,
    EntityKind.TRAIT: TraitSubtype,
    EntityKind.TRAIT_IMPLEMENTATION: TraitImplementationSubtype,
    EntityKind.ENUM: EnumSubtype,
}


# ============================================================================
# SCAN OUTPUT
# ============================================================================


@dataclass(frozen=True, slots=True)
class ScanRange:
    """One construct located in a text buffer (1-based, inclusive)."""

    name: str
    start_line: int
    end_line: int
    content: str


# ============================================================================
# ENTITIES
# ============================================================================


@dataclass(frozen=True, slots=True)
class SourceEntity:
    """A discovered construct with stable identity.

    ``id`` is empty until the entity store assigns one. ``enclosing_range`` is
    set for constructs nested in an impl or trait block of the same file.
    """

    kind: EntityKind
    subtype: Subtype
    path: str
    name: str
    start_line: int
    end_line: int
    id: str = ""
    enclosing_range: tuple[int, int] | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.subtype, self.kind.subtype_enum):
            raise ValueError(f"{self.subtype!r} is not a {self.kind.value} subtype")
        if self.start_line < 1 or self.end_line < self.start_line:
            raise ValueError(f"Invalid line range {self.start_line}-{self.end_line}")

    @property
    def logical_key(self) -> tuple[object, ...]:
        """Identity-preserving key: path+name, plus the enclosing range when nested."""
        if self.enclosing_range is None:
            return (self.kind, self.path, self.name)
        return (self.kind, self.path, self.name, self.enclosing_range)

    def contains(self, other: SourceEntity) -> bool:
        """True when ``other`` lies strictly inside this entity in the same file."""
        return (
            self.path == other.path
            and self.start_line < other.start_line
            and other.end_line < self.end_line
        )

    def with_id(self, entity_id: str) -> SourceEntity:
        return replace(self, id=entity_id)


# ============================================================================
# RECORDS
# ============================================================================


@dataclass(frozen=True, slots=True)
class ContextAccountField:
    """One field of an account-holding struct, decoded from its attributes."""

    account_name: str
    wrapper_type: str
    inner_type: str
    lifetime_marker: str | None = None
    is_pda: bool = False
    is_init: bool = False
    is_mut: bool = False
    is_close: bool = False
    seeds: tuple[str, ...] = ()
    rent_payer: str | None = None
    validations: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ContextAccountsRecord:
    """Decoded fields of one ContextAccounts struct, keyed by the struct's id."""

    struct_entity_id: str
    name: str
    accounts: tuple[ContextAccountField, ...] = ()


@dataclass(frozen=True, slots=True)
class FunctionDependencyRecord:
    """Call edges of one function.

    Multiple same-named targets all appear in ``internal_dependencies``.
    """

    owner_id: str
    function_name: str
    internal_dependencies: frozenset[str] = field(default_factory=frozenset)
    external_dependencies: frozenset[str] = field(default_factory=frozenset)


@dataclass(frozen=True, slots=True)
class TraitImplementationRecord:
    """Resolved view of one impl block."""

    trait_entity_id: str
    name: str
    impl_from: str
    impl_to: str
    external: bool
    member_function_ids: tuple[str, ...] = ()
    trait_definition_id: str | None = None


@dataclass(frozen=True, slots=True)
class EntrypointView:
    """An entrypoint with its handler and accounts struct."""

    name: str
    entrypoint: SourceEntity
    context_accounts: SourceEntity
    accounts: ContextAccountsRecord | None
    handler: SourceEntity | None = None
