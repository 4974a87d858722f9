"""Subtype classification for scanned constructs.

Everything a classifier needs arrives through ``ProgramContext``; nothing is
looked up from global configuration.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from anchorscan.config.constants import ATTRIBUTE_LOOKBEHIND_LINES
from anchorscan.index._internal.parsing.functions import (
    Entrypoint,
    context_name_from_text,
    function_parameters,
)
from anchorscan.index._internal.parsing.traits import impl_subtype
from anchorscan.index.models import (
    EntityKind,
    EnumSubtype,
    FunctionSubtype,
    ScanRange,
    StructSubtype,
    Subtype,
    TraitSubtype,
)

_ACCOUNT_MARKERS = ("Signer<", "AccountLoader<", "UncheckedAccount<", "#[account(")


@dataclass(frozen=True)
class ProgramContext:
    """What classification knows about the audited program."""

    program_lib_path: str | None = None
    entrypoints: tuple[Entrypoint, ...] = ()
    context_names: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def from_entrypoints(
        cls, program_lib_path: str | None, entrypoints: list[Entrypoint]
    ) -> ProgramContext:
        return cls(
            program_lib_path=program_lib_path,
            entrypoints=tuple(entrypoints),
            context_names=frozenset(ep.context_name for ep in entrypoints if ep.context_name),
        )

    def is_entrypoint(self, path: str, found: ScanRange) -> bool:
        if path != self.program_lib_path:
            return False
        return any(
            ep.name == found.name and ep.start_line == found.start_line for ep in self.entrypoints
        )


def _lookbehind(lines: list[str], start_line: int) -> str:
    first = max(0, start_line - 1 - ATTRIBUTE_LOOKBEHIND_LINES)
    return "\n".join(lines[first : start_line - 1])


def classify_function(path: str, found: ScanRange, program: ProgramContext) -> FunctionSubtype:
    if program.is_entrypoint(path, found):
        return FunctionSubtype.ENTRYPOINT
    params = function_parameters(found.content)
    if params and "Context<" in params[0]:
        if context_name_from_text(params[0]) in program.context_names:
            return FunctionSubtype.HANDLER
    return FunctionSubtype.OTHER


def classify_struct(found: ScanRange, lines: list[str], program: ProgramContext) -> StructSubtype:
    above = _lookbehind(lines, found.start_line)
    if "#[account" in above:
        return StructSubtype.SOLANA_ACCOUNT
    if "derive(Accounts)" in above.replace(" ", ""):
        return StructSubtype.CONTEXT_ACCOUNTS
    if found.name in program.context_names:
        return StructSubtype.CONTEXT_ACCOUNTS
    if any(marker in found.content for marker in _ACCOUNT_MARKERS):
        return StructSubtype.CONTEXT_ACCOUNTS
    return StructSubtype.OTHER


def classify_enum(found: ScanRange, lines: list[str]) -> EnumSubtype:
    if "#[error_code" in _lookbehind(lines, found.start_line):
        return EnumSubtype.ERROR_CODE
    return EnumSubtype.OTHER


def classify(
    kind: EntityKind,
    path: str,
    found: ScanRange,
    lines: list[str],
    program: ProgramContext,
) -> Subtype:
    """Subtype for one scanned range. ``lines`` is the whole file."""
    if kind is EntityKind.FUNCTION:
        return classify_function(path, found, program)
    if kind is EntityKind.STRUCT:
        return classify_struct(found, lines, program)
    if kind is EntityKind.TRAIT_IMPLEMENTATION:
        return impl_subtype(found.name)
    if kind is EntityKind.ENUM:
        return classify_enum(found, lines)
    return TraitSubtype.DEFINITION
