"""Section schemas for every persisted kind, and record <-> value conversion."""

from __future__ import annotations

from typing import Any

from anchorscan.index._internal.store.sections import FieldSpec, FieldType, SectionSchema
from anchorscan.index.models import (
    ContextAccountField,
    ContextAccountsRecord,
    EntityKind,
    FunctionDependencyRecord,
    SourceEntity,
    TraitImplementationRecord,
)

ENTITY_DOCUMENTS: dict[EntityKind, str] = {
    EntityKind.FUNCTION: "functions.md",
    EntityKind.STRUCT: "structs.md",
    EntityKind.TRAIT: "traits.md",
    EntityKind.TRAIT_IMPLEMENTATION: "trait_implementations.md",
    EntityKind.ENUM: "enums.md",
}

_ENTITY_FIELDS = (
    FieldSpec("id"),
    FieldSpec("type"),
    FieldSpec("path"),
    FieldSpec("start_line_index", FieldType.INTEGER),
    FieldSpec("end_line_index", FieldType.INTEGER),
    FieldSpec("enclosing_range", FieldType.RANGE),
)

ENTITY_SCHEMAS: dict[EntityKind, SectionSchema] = {
    kind: SectionSchema(document=document, title_key="name", fields=_ENTITY_FIELDS)
    for kind, document in ENTITY_DOCUMENTS.items()
}

DEPENDENCY_SCHEMA = SectionSchema(
    document="function_dependencies.md",
    title_key="function_name",
    fields=(
        FieldSpec("owner_id"),
        FieldSpec("internal_dependencies", FieldType.TEXT_LIST),
        FieldSpec("external_dependencies", FieldType.TEXT_LIST),
    ),
)

TRAIT_IMPLEMENTATION_SCHEMA = SectionSchema(
    document="trait_implementation_records.md",
    title_key="name",
    fields=(
        FieldSpec("trait_entity_id"),
        FieldSpec("impl_from"),
        FieldSpec("impl_to"),
        FieldSpec("external", FieldType.BOOLEAN),
        FieldSpec("trait_definition_id", FieldType.OPTIONAL_TEXT),
        FieldSpec("member_function_ids", FieldType.TEXT_LIST),
    ),
)

_ACCOUNT_FIELD_SCHEMA = SectionSchema(
    document="context_accounts.md",
    title_key="account_name",
    fields=(
        FieldSpec("wrapper_type"),
        FieldSpec("inner_type"),
        FieldSpec("lifetime_marker", FieldType.OPTIONAL_TEXT),
        FieldSpec("is_pda", FieldType.BOOLEAN),
        FieldSpec("is_init", FieldType.BOOLEAN),
        FieldSpec("is_mut", FieldType.BOOLEAN),
        FieldSpec("is_close", FieldType.BOOLEAN),
        FieldSpec("seeds", FieldType.TEXT_LIST),
        FieldSpec("rent_payer", FieldType.OPTIONAL_TEXT),
        FieldSpec("validations", FieldType.TEXT_LIST),
    ),
)

CONTEXT_ACCOUNTS_SCHEMA = SectionSchema(
    document="context_accounts.md",
    title_key="name",
    fields=(FieldSpec("struct_entity_id"),),
    children_key="accounts",
    child=_ACCOUNT_FIELD_SCHEMA,
)


# =============================================================================
# Entities
# =============================================================================


def entity_to_values(entity: SourceEntity) -> dict[str, Any]:
    return {
        "name": entity.name,
        "id": entity.id,
        "type": entity.subtype.value,
        "path": entity.path,
        "start_line_index": entity.start_line,
        "end_line_index": entity.end_line,
        "enclosing_range": entity.enclosing_range,
    }


def entity_from_values(kind: EntityKind, values: dict[str, Any]) -> SourceEntity:
    """Raises ValueError on an unknown subtype or an invalid line range."""
    return SourceEntity(
        kind=kind,
        subtype=kind.parse_subtype(values["type"]),
        path=values["path"],
        name=values["name"],
        start_line=values["start_line_index"],
        end_line=values["end_line_index"],
        id=values["id"],
        enclosing_range=values["enclosing_range"],
    )


# =============================================================================
# Records
# =============================================================================


def dependency_to_values(record: FunctionDependencyRecord) -> dict[str, Any]:
    return {
        "function_name": record.function_name,
        "owner_id": record.owner_id,
        "internal_dependencies": sorted(record.internal_dependencies),
        "external_dependencies": sorted(record.external_dependencies),
    }


def dependency_from_values(values: dict[str, Any]) -> FunctionDependencyRecord:
    return FunctionDependencyRecord(
        owner_id=values["owner_id"],
        function_name=values["function_name"],
        internal_dependencies=frozenset(values["internal_dependencies"]),
        external_dependencies=frozenset(values["external_dependencies"]),
    )


def trait_implementation_to_values(record: TraitImplementationRecord) -> dict[str, Any]:
    return {
        "name": record.name,
        "trait_entity_id": record.trait_entity_id,
        "impl_from": record.impl_from,
        "impl_to": record.impl_to,
        "external": record.external,
        "trait_definition_id": record.trait_definition_id,
        "member_function_ids": list(record.member_function_ids),
    }


def trait_implementation_from_values(values: dict[str, Any]) -> TraitImplementationRecord:
    return TraitImplementationRecord(
        trait_entity_id=values["trait_entity_id"],
        name=values["name"],
        impl_from=values["impl_from"],
        impl_to=values["impl_to"],
        external=values["external"],
        member_function_ids=tuple(values["member_function_ids"]),
        trait_definition_id=values["trait_definition_id"],
    )


def context_accounts_to_values(record: ContextAccountsRecord) -> dict[str, Any]:
    return {
        "name": record.name,
        "struct_entity_id": record.struct_entity_id,
        "accounts": [
            {
                "account_name": account.account_name,
                "wrapper_type": account.wrapper_type,
                "inner_type": account.inner_type,
                "lifetime_marker": account.lifetime_marker,
                "is_pda": account.is_pda,
                "is_init": account.is_init,
                "is_mut": account.is_mut,
                "is_close": account.is_close,
                "seeds": list(account.seeds),
                "rent_payer": account.rent_payer,
                "validations": list(account.validations),
            }
            for account in record.accounts
        ],
    }


def context_accounts_from_values(values: dict[str, Any]) -> ContextAccountsRecord:
    return ContextAccountsRecord(
        struct_entity_id=values["struct_entity_id"],
        name=values["name"],
        accounts=tuple(
            ContextAccountField(
                account_name=account["account_name"],
                wrapper_type=account["wrapper_type"],
                inner_type=account["inner_type"],
                lifetime_marker=account["lifetime_marker"],
                is_pda=account["is_pda"],
                is_init=account["is_init"],
                is_mut=account["is_mut"],
                is_close=account["is_close"],
                seeds=tuple(account["seeds"]),
                rent_payer=account["rent_payer"],
                validations=tuple(account["validations"]),
            )
            for account in values["accounts"]
        ),
    )
