"""Unit tests for the section document codec (sections.py, schemas.py).

Tests cover:
- Field encodings (text, optional, integer, boolean, list, range)
- Nested child sections
- Malformed documents
"""

from __future__ import annotations

import pytest

from anchorscan.core.errors import DocumentFormatError, ErrorCode
from anchorscan.index._internal.store.schemas import (
    CONTEXT_ACCOUNTS_SCHEMA,
    DEPENDENCY_SCHEMA,
    ENTITY_SCHEMAS,
    TRAIT_IMPLEMENTATION_SCHEMA,
    context_accounts_from_values,
    context_accounts_to_values,
    entity_from_values,
    entity_to_values,
    trait_implementation_from_values,
    trait_implementation_to_values,
)
from anchorscan.index._internal.store.sections import (
    decode_document,
    encode_document,
    encode_section,
)
from anchorscan.index.models import (
    ContextAccountField,
    ContextAccountsRecord,
    EntityKind,
    FunctionSubtype,
    SourceEntity,
    TraitImplementationRecord,
)

FUNCTIONS = ENTITY_SCHEMAS[EntityKind.FUNCTION]


def _function(**overrides: object) -> SourceEntity:
    values: dict[str, object] = {
        "kind": EntityKind.FUNCTION,
        "subtype": FunctionSubtype.ENTRYPOINT,
        "path": "programs/vault/src/lib.rs",
        "name": "deposit",
        "start_line": 19,
        "end_line": 21,
        "id": "3f1c",
    }
    values.update(overrides)
    return SourceEntity(**values)  # type: ignore[arg-type]


class TestEncoding:
    """Tests for the rendered layout."""

    def test_entity_section_layout(self) -> None:
        """Should render a titled section with fields in schema order."""
        text = encode_section(FUNCTIONS, entity_to_values(_function()))

        assert text == (
            "# deposit\n"
            "\n"
            "- id: 3f1c\n"
            "- type: EntryPoint\n"
            "- path: programs/vault/src/lib.rs\n"
            "- start_line_index: 19\n"
            "- end_line_index: 21\n"
            "- enclosing_range:"
        )

    def test_list_fields(self) -> None:
        """Should put each list element on its own indented line."""
        values = {
            "function_name": "credit",
            "owner_id": "f-1",
            "internal_dependencies": ["f-2", "f-3"],
            "external_dependencies": [],
        }

        text = encode_section(DEPENDENCY_SCHEMA, values)

        assert text.split("\n")[3:] == [
            "- internal_dependencies:",
            "  - f-2",
            "  - f-3",
            "- external_dependencies:",
        ]

    def test_empty_document(self) -> None:
        """Should render no records as an empty document."""
        assert encode_document(FUNCTIONS, []) == ""
        assert decode_document(FUNCTIONS, "") == []


class TestDecoding:
    """Tests for parsing documents back into values."""

    def test_entities_survive_a_document(self) -> None:
        """Should decode what was encoded, including enclosing ranges."""
        entities = [
            _function(),
            _function(
                name="credit",
                subtype=FunctionSubtype.OTHER,
                path="programs/vault/src/state.rs",
                start_line=17,
                end_line=22,
                id="9a0b",
                enclosing_range=(10, 23),
            ),
        ]
        text = encode_document(FUNCTIONS, [entity_to_values(e) for e in entities])

        decoded = [
            entity_from_values(EntityKind.FUNCTION, v) for v in decode_document(FUNCTIONS, text)
        ]

        assert decoded == entities

    def test_inner_whitespace_in_paths_is_kept(self) -> None:
        """Should not collapse repeated spaces inside a value."""
        entity = _function(path="programs/my  vault/src/lib.rs")
        text = encode_document(FUNCTIONS, [entity_to_values(entity)])

        [values] = decode_document(FUNCTIONS, text)

        assert "- path: programs/my  vault/src/lib.rs" in text.split("\n")
        assert entity_from_values(EntityKind.FUNCTION, values) == entity

    def test_trait_implementation_record_with_empty_impl_from(self) -> None:
        """Should keep an empty impl_from for inherent blocks."""
        record = TraitImplementationRecord(
            trait_entity_id="i-1",
            name="Vault",
            impl_from="",
            impl_to="Vault",
            external=False,
            member_function_ids=("f-1", "f-2"),
        )
        text = encode_document(
            TRAIT_IMPLEMENTATION_SCHEMA, [trait_implementation_to_values(record)]
        )

        [values] = decode_document(TRAIT_IMPLEMENTATION_SCHEMA, text)

        assert trait_implementation_from_values(values) == record

    def test_child_sections(self) -> None:
        """Should decode nested account fields as subsections."""
        record = ContextAccountsRecord(
            struct_entity_id="s-1",
            name="Deposit",
            accounts=(
                ContextAccountField(
                    account_name="vault",
                    wrapper_type="Account",
                    inner_type="Vault",
                    lifetime_marker="'info",
                    is_mut=True,
                    validations=("has_one = authority",),
                ),
                ContextAccountField(
                    account_name="authority",
                    wrapper_type="Signer",
                    inner_type="Signer",
                    lifetime_marker="'info",
                ),
            ),
        )
        text = encode_document(CONTEXT_ACCOUNTS_SCHEMA, [context_accounts_to_values(record)])

        assert "## vault" in text
        assert "## authority" in text
        [values] = decode_document(CONTEXT_ACCOUNTS_SCHEMA, text)
        assert context_accounts_from_values(values) == record

    def test_blank_lines_between_fields_are_ignored(self) -> None:
        """Should tolerate extra blank lines inside a section."""
        text = "# f\n\n- owner_id: f-1\n\n- internal_dependencies:\n\n- external_dependencies:\n"

        [values] = decode_document(DEPENDENCY_SCHEMA, text)

        assert values == {
            "function_name": "f",
            "owner_id": "f-1",
            "internal_dependencies": [],
            "external_dependencies": [],
        }


class TestMalformedDocuments:
    """Tests for DocumentFormatError cases."""

    @pytest.mark.parametrize(
        "text",
        [
            "stray text\n# f\n- owner_id: f-1\n",
            "# f\n- owner_id: f-1\n- unknown_key: 1\n",
            "# f\n- owner_id: f-1\n- owner_id: f-2\n",
            "# f\n  - orphan item\n- owner_id: f-1\n",
            "# f\n- owner_id: f-1\n- internal_dependencies: inline\n",
            "# f\nnot a field line\n",
        ],
    )
    def test_malformed_lines(self, text: str) -> None:
        """Should reject lines that do not fit the schema."""
        with pytest.raises(DocumentFormatError) as exc_info:
            decode_document(DEPENDENCY_SCHEMA, text)

        assert exc_info.value.code == ErrorCode.DOCUMENT_FORMAT_ERROR

    def test_missing_required_field(self) -> None:
        """Should name the missing key."""
        with pytest.raises(DocumentFormatError, match="owner_id"):
            decode_document(DEPENDENCY_SCHEMA, "# f\n- internal_dependencies:\n")

    def test_invalid_integer(self) -> None:
        """Should report a non-numeric line index."""
        text = (
            "# deposit\n- id: x\n- type: Other\n- path: a.rs\n"
            "- start_line_index: first\n- end_line_index: 2\n"
        )

        with pytest.raises(DocumentFormatError, match="start_line_index"):
            decode_document(FUNCTIONS, text)

    def test_invalid_boolean(self) -> None:
        """Should only accept true or false."""
        text = (
            "# Vault\n- trait_entity_id: i-1\n- impl_from:\n- impl_to: Vault\n"
            "- external: maybe\n- member_function_ids:\n"
        )

        with pytest.raises(DocumentFormatError, match="external"):
            decode_document(TRAIT_IMPLEMENTATION_SCHEMA, text)

    def test_subsection_without_child_schema(self) -> None:
        """Should reject nested sections where the schema has none."""
        text = "# f\n- owner_id: f-1\n\n## nested\n- owner_id: f-2\n"

        with pytest.raises(DocumentFormatError):
            decode_document(DEPENDENCY_SCHEMA, text)
