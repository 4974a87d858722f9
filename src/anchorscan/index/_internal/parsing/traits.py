"""Implementation-block parsing.

Entity names of TraitImplementation constructs are normalized impl headers
(``Accounts<'info> for Deposit<'info>`` or ``Vault`` for inherent blocks).
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from anchorscan.index.models import (
    EntityKind,
    SourceEntity,
    TraitImplementationRecord,
    TraitImplementationSubtype,
)

_FOR = " for "


def base_type_name(type_text: str) -> str:
    """``token::Mint<'info>`` -> ``Mint``."""
    head = type_text.split("<", 1)[0].strip()
    head = head.lstrip("&").removeprefix("mut ").strip()
    return head.rsplit("::", 1)[-1]


def split_impl_header(header: str) -> tuple[str, str]:
    """``(impl_from, impl_to)`` from a normalized impl header.

    Inherent blocks have an empty ``impl_from``.
    """
    if _FOR in header:
        impl_from, impl_to = header.split(_FOR, 1)
        return impl_from.strip(), impl_to.strip()
    return "", header.strip()


def impl_subtype(header: str) -> TraitImplementationSubtype:
    if split_impl_header(header)[0]:
        return TraitImplementationSubtype.TRAIT_IMPL
    return TraitImplementationSubtype.INHERENT


def member_functions(impl: SourceEntity, functions: Iterable[SourceEntity]) -> list[SourceEntity]:
    """Functions of the same file strictly inside the block, by start line."""
    return sorted(
        (f for f in functions if impl.contains(f)),
        key=lambda f: f.start_line,
    )


def build_trait_implementation_record(
    impl: SourceEntity,
    functions: Iterable[SourceEntity],
    definitions: Mapping[str, SourceEntity],
) -> TraitImplementationRecord:
    """Resolve one impl block against known functions and trait definitions.

    ``definitions`` maps a trait's base name to its Definition entity. A trait
    implementation whose trait has no definition there is external.
    """
    if impl.kind is not EntityKind.TRAIT_IMPLEMENTATION:
        raise ValueError(f"{impl.name} is a {impl.kind.value}, not an implementation")
    impl_from, impl_to = split_impl_header(impl.name)
    definition = definitions.get(base_type_name(impl_from)) if impl_from else None
    return TraitImplementationRecord(
        trait_entity_id=impl.id,
        name=impl.name,
        impl_from=impl_from,
        impl_to=impl_to,
        external=bool(impl_from) and definition is None,
        member_function_ids=tuple(f.id for f in member_functions(impl, functions)),
        trait_definition_id=definition.id if definition else None,
    )
