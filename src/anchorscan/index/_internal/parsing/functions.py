"""Text helpers for function constructs: signature, body, parameters.

Also extracts program entrypoints: the functions declared in the
``#[program]`` module and the ``Context<...>`` accounts struct each one takes.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from anchorscan.config.constants import CONTEXT_LOOKAHEAD_LINES
from anchorscan.index._internal.scanning.boundaries import (
    program_module_range,
    scan_boundaries,
)
from anchorscan.index.models import EntityKind


def function_signature(content: str) -> str:
    """Text before the body's opening brace, cut at the return arrow."""
    head = content.split("{", 1)[0]
    return head.split("->", 1)[0].strip()


def function_body(content: str) -> str:
    """Text inside the outer braces, trimmed."""
    if "{" not in content:
        return ""
    body = content.split("{", 1)[1].rstrip()
    if body.endswith("}"):
        body = body[:-1]
    return body.strip()


def split_top_level(text: str, sep: str = ",", *, angles: bool = True) -> list[str]:
    """Split on ``sep`` outside nesting and string literals. Empty parts dropped.

    ``angles`` counts ``<``/``>`` as nesting, which suits type lists but not
    expressions holding comparisons.
    """
    parts: list[str] = []
    depth = 0
    in_string = False
    current: list[str] = []
    prev = ""
    for ch in text:
        if in_string:
            current.append(ch)
            if ch == '"' and prev != "\\":
                in_string = False
            prev = ch
            continue
        if ch == '"':
            in_string = True
        elif ch in "([{":
            depth += 1
        elif ch in ")]}":
            depth -= 1
        elif angles and ch == "<":
            depth += 1
        elif angles and ch == ">" and prev != "-" and prev != "=":
            depth -= 1
        if ch == sep and depth == 0:
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(ch)
        prev = ch
    parts.append("".join(current).strip())
    return [p for p in parts if p]


def function_parameters(content: str) -> list[str]:
    """Parameters as ``name: Type`` strings, receiver (``&self``) included.

    Works for single-line and multi-line signatures.
    """
    signature = function_signature(content)
    start = signature.find("(")
    if start == -1:
        return []
    depth = 0
    for i in range(start, len(signature)):
        if signature[i] == "(":
            depth += 1
        elif signature[i] == ")":
            depth -= 1
            if depth == 0:
                inner = signature[start + 1 : i]
                return [" ".join(p.split()) for p in split_top_level(inner)]
    return []


_CONTEXT_RE = re.compile(r"\bContext\s*<")


def _angle_args(text: str, open_idx: int) -> str | None:
    """Text between the ``<`` at ``open_idx`` and its matching ``>``."""
    depth = 0
    for i in range(open_idx, len(text)):
        if text[i] == "<":
            depth += 1
        elif text[i] == ">":
            depth -= 1
            if depth == 0:
                return text[open_idx + 1 : i]
    return None


def context_name_from_text(text: str) -> str | None:
    """Accounts struct named by the first ``Context<...>`` in ``text``.

    ``Context<'_, '_, '_, 'info, Deposit<'info>>`` gives ``Deposit``.
    """
    m = _CONTEXT_RE.search(text)
    if not m:
        return None
    inner = _angle_args(text, m.end() - 1)
    if inner is None:
        return None
    args = split_top_level(inner)
    for arg in reversed(args):
        if arg.startswith("'"):
            continue
        return arg.split("<", 1)[0].strip()
    return None


@dataclass(frozen=True, slots=True)
class Entrypoint:
    """A function of the ``#[program]`` module (1-based lines)."""

    name: str
    start_line: int
    end_line: int
    context_name: str | None


def find_entrypoints(lib_text: str) -> list[Entrypoint]:
    """Entrypoints declared in a program lib file, in source order."""
    module = program_module_range(lib_text)
    if module is None:
        return []
    mod_start, mod_end = module
    lines = lib_text.split("\n")
    entrypoints: list[Entrypoint] = []
    for found in scan_boundaries(EntityKind.FUNCTION, lib_text):
        if not (mod_start < found.start_line and found.end_line < mod_end):
            continue
        lookahead = "\n".join(
            lines[found.start_line - 1 : found.start_line - 1 + CONTEXT_LOOKAHEAD_LINES]
        )
        entrypoints.append(
            Entrypoint(
                name=found.name,
                start_line=found.start_line,
                end_line=found.end_line,
                context_name=context_name_from_text(lookahead),
            )
        )
    return entrypoints
