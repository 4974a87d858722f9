"""Boundary scanner: locate construct line ranges in raw source text.

The scanner walks a buffer line by line keeping a brace-depth counter over
lexically masked text (see lexer.py). A kind-specific header pattern opens a
candidate; the depth before the header line is its baseline. The candidate
closes on the line where depth returns to the baseline after the body's
opening brace. A header line that opens and closes its body is a single-line
construct.

While a construct is open, further headers of the same kind are part of its
content and are not reported separately. Headers of one kind nested inside a
construct of another kind (methods inside ``impl`` blocks) are reported by
that kind's own pass.

Unclosed candidates are dropped, never raised.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterator
from dataclasses import dataclass

import structlog

from anchorscan.index._internal.scanning.lexer import mask_lines
from anchorscan.index.models import EntityKind, ScanRange

log = structlog.get_logger(__name__)

_IDENT = r"[A-Za-z_][A-Za-z0-9_]*"
_VIS = r"(?:pub(?:\s*\([^)]*\))?\s+)?"

_FUNCTION_RE = re.compile(
    rf"^{_VIS}(?:(?:default|const|async|unsafe)\s+)*(?:extern\s+(?:\"[^\"]*\"\s+)?)?"
    rf"fn\s+(?P<name>{_IDENT})"
)
_STRUCT_RE = re.compile(rf"^{_VIS}struct\s+(?P<name>{_IDENT})")
_ENUM_RE = re.compile(rf"^{_VIS}enum\s+(?P<name>{_IDENT})")
_TRAIT_RE = re.compile(rf"^{_VIS}(?:unsafe\s+)?(?:auto\s+)?trait\s+(?P<name>{_IDENT})")
_IMPL_RE = re.compile(r"^(?:unsafe\s+)?impl\b(?P<rest>.*)$")
_MOD_RE = re.compile(rf"^{_VIS}mod\s+(?P<name>{_IDENT})")

_PROGRAM_ATTRIBUTE = "#[program]"


def _strip_leading_generics(text: str) -> str:
    """Drop a leading ``<...>`` parameter list, honoring nesting."""
    text = text.lstrip()
    if not text.startswith("<"):
        return text
    depth = 0
    for i, ch in enumerate(text):
        if ch == "<":
            depth += 1
        elif ch == ">":
            depth -= 1
            if depth == 0:
                return text[i + 1 :].lstrip()
    return ""


def impl_header_name(rest: str) -> str | None:
    """Normalized impl header (``Trait<'a> for Type``) from the text after ``impl``."""
    head = _strip_leading_generics(rest)
    head = head.split("{", 1)[0]
    head = re.split(r"\bwhere\b", head, maxsplit=1)[0]
    head = " ".join(head.split())
    return head or None


def _match_named(pattern: re.Pattern[str]) -> Callable[[str], str | None]:
    def matcher(line: str) -> str | None:
        m = pattern.match(line)
        return m.group("name") if m else None

    return matcher


def _match_impl(line: str) -> str | None:
    m = _IMPL_RE.match(line)
    if not m:
        return None
    return impl_header_name(m.group("rest"))


@dataclass(frozen=True, slots=True)
class _HeaderSpec:
    match: Callable[[str], str | None]
    allows_bodiless: bool = False


_HEADERS: dict[EntityKind, _HeaderSpec] = {
    EntityKind.FUNCTION: _HeaderSpec(_match_named(_FUNCTION_RE)),
    EntityKind.STRUCT: _HeaderSpec(_match_named(_STRUCT_RE), allows_bodiless=True),
    EntityKind.TRAIT: _HeaderSpec(_match_named(_TRAIT_RE)),
    EntityKind.TRAIT_IMPLEMENTATION: _HeaderSpec(_match_impl),
    EntityKind.ENUM: _HeaderSpec(_match_named(_ENUM_RE)),
}


@dataclass
class _OpenConstruct:
    name: str
    start: int
    baseline: int
    opened: bool = False
    nesting: int = 0  # ( and [ depth before the body opens


def _scan_blocks(
    lines: list[str],
    spec: _HeaderSpec,
    *,
    label: str,
) -> Iterator[tuple[str, int, int]]:
    """Yield ``(name, start_idx, end_idx)`` with 0-based line indexes."""
    depth = 0
    current: _OpenConstruct | None = None

    for idx, masked in enumerate(mask_lines(lines)):
        if current is None:
            name = spec.match(masked.strip())
            if name is not None:
                current = _OpenConstruct(name=name, start=idx, baseline=depth)

        for ch in masked:
            if ch == "{":
                depth += 1
                if current is not None and not current.opened:
                    current.opened = True
            elif ch == "}":
                depth -= 1
                if current is None:
                    continue
                if current.opened and depth == current.baseline:
                    yield current.name, current.start, idx
                    current = None
                elif depth < current.baseline:
                    log.debug("scan_gap", kind=label, name=current.name, line=current.start + 1)
                    current = None
            elif current is not None and not current.opened:
                if ch in "([":
                    current.nesting += 1
                elif ch in ")]":
                    current.nesting -= 1
                elif ch == ";" and current.nesting <= 0:
                    if spec.allows_bodiless:
                        yield current.name, current.start, idx
                    current = None

    if current is not None:
        log.debug("scan_gap", kind=label, name=current.name, line=current.start + 1)


class BoundaryScanner:
    """Lazy, restartable scan of one buffer for one construct kind.

    Iterating yields ``ScanRange`` items with 1-based inclusive lines; every
    new iteration rescans from the top.

    Usage::

        for found in BoundaryScanner(EntityKind.FUNCTION, text):
            print(found.name, found.start_line, found.end_line)
    """

    def __init__(self, kind: EntityKind, text: str) -> None:
        self.kind = kind
        self._text = text

    def __iter__(self) -> Iterator[ScanRange]:
        lines = self._text.split("\n")
        for name, start, end in _scan_blocks(lines, _HEADERS[self.kind], label=self.kind.value):
            yield ScanRange(
                name=name,
                start_line=start + 1,
                end_line=end + 1,
                content="\n".join(lines[start : end + 1]),
            )


def scan_boundaries(kind: EntityKind, text: str) -> BoundaryScanner:
    return BoundaryScanner(kind, text)


def program_module_range(text: str) -> tuple[int, int] | None:
    """1-based range of the ``mod`` block annotated with ``#[program]``."""
    lines = text.split("\n")
    attr_idx = next(
        (i for i, line in enumerate(lines) if line.strip().startswith(_PROGRAM_ATTRIBUTE)),
        None,
    )
    if attr_idx is None:
        return None
    spec = _HeaderSpec(_match_named(_MOD_RE))
    for _name, start, end in _scan_blocks(lines[attr_idx:], spec, label="Module"):
        return attr_idx + start + 1, attr_idx + end + 1
    return None
