"""Best-effort lexical masking for brace counting.

Blanks out the contents of comments, string literals and char literals so
that braces inside them are not counted. Delimiting quotes are kept, which
lets header patterns still see ``extern "C"`` shaped text. This is not a
tokenizer: lifetimes (``'info``) and char literals (``'{'``) are told apart
by looking for the closing quote, and raw strings support ``r"..."``,
``r#"..."#`` and their ``br`` byte forms.

State carries across lines, so block comments and multi-line strings are
masked on every line they span.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass


@dataclass
class _LexState:
    block_comment_depth: int = 0
    in_string: bool = False
    raw_hashes: int | None = None  # set while inside a raw string


def _char_literal_end(line: str, i: int) -> int | None:
    """Index of the closing quote if ``line[i]`` opens a char literal."""
    n = len(line)
    if i + 1 >= n:
        return None
    if line[i + 1] == "\\":
        j = line.find("'", i + 3)
        return j if j != -1 and j - i <= 10 else None
    if i + 2 < n and line[i + 2] == "'":
        return i + 2
    return None


def _is_ident_char(ch: str) -> bool:
    return ch.isalnum() or ch == "_"


def _raw_prefix_ok(line: str, i: int) -> bool:
    """True when the ``r`` at ``i`` opens ``r"`` or ``br"`` rather than ending a name."""
    if i == 0 or not _is_ident_char(line[i - 1]):
        return True
    return line[i - 1] == "b" and (i < 2 or not _is_ident_char(line[i - 2]))


def _mask_line(line: str, state: _LexState) -> str:
    out: list[str] = []
    i = 0
    n = len(line)
    while i < n:
        ch = line[i]
        nxt = line[i + 1] if i + 1 < n else ""

        if state.block_comment_depth:
            if ch == "*" and nxt == "/":
                state.block_comment_depth -= 1
                out.append("  ")
                i += 2
            elif ch == "/" and nxt == "*":
                state.block_comment_depth += 1
                out.append("  ")
                i += 2
            else:
                out.append(" ")
                i += 1
            continue

        if state.raw_hashes is not None:
            closing = '"' + "#" * state.raw_hashes
            if line.startswith(closing, i):
                out.append(closing)
                i += len(closing)
                state.raw_hashes = None
            else:
                out.append(" ")
                i += 1
            continue

        if state.in_string:
            if ch == "\\" and i + 1 < n:
                out.append("  ")
                i += 2
            elif ch == '"':
                out.append('"')
                state.in_string = False
                i += 1
            else:
                out.append(" ")
                i += 1
            continue

        if ch == "/" and nxt == "/":
            out.append(" " * (n - i))
            break
        if ch == "/" and nxt == "*":
            state.block_comment_depth = 1
            out.append("  ")
            i += 2
            continue
        if ch == "r" and (nxt == '"' or nxt == "#") and _raw_prefix_ok(line, i):
            j = i + 1
            while j < n and line[j] == "#":
                j += 1
            if j < n and line[j] == '"':
                state.raw_hashes = j - i - 1
                out.append(line[i : j + 1])
                i = j + 1
                continue
        if ch == '"':
            state.in_string = True
            out.append('"')
            i += 1
            continue
        if ch == "'":
            end = _char_literal_end(line, i)
            if end is not None:
                out.append("'" + " " * (end - i - 1) + "'")
                i = end + 1
                continue

        out.append(ch)
        i += 1

    return "".join(out)


def mask_lines(lines: Iterable[str]) -> Iterator[str]:
    """Yield each line with comment and literal contents blanked.

    Masked lines keep the original length, so column positions still line up.
    """
    state = _LexState()
    for line in lines:
        yield _mask_line(line, state)


def mask_text(text: str) -> str:
    """Mask a whole buffer, preserving line breaks."""
    return "\n".join(mask_lines(text.split("\n")))
