"""Text-level parsers for functions, account structs and impl blocks."""

from anchorscan.index._internal.parsing.accounts import (
    classify_account_type,
    parse_account_field,
    parse_context_accounts,
    split_account_fields,
)
from anchorscan.index._internal.parsing.classify import ProgramContext, classify
from anchorscan.index._internal.parsing.functions import (
    Entrypoint,
    context_name_from_text,
    find_entrypoints,
    function_body,
    function_parameters,
    function_signature,
    split_top_level,
)
from anchorscan.index._internal.parsing.traits import (
    base_type_name,
    build_trait_implementation_record,
    member_functions,
    split_impl_header,
)

__all__ = [
    # Accounts
    "classify_account_type",
    "parse_account_field",
    "parse_context_accounts",
    "split_account_fields",
    # Classification
    "ProgramContext",
    "classify",
    # Functions
    "Entrypoint",
    "context_name_from_text",
    "find_entrypoints",
    "function_body",
    "function_parameters",
    "function_signature",
    "split_top_level",
    # Impl blocks
    "base_type_name",
    "build_trait_implementation_record",
    "member_functions",
    "split_impl_header",
]
