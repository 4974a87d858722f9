"""Account attribute parser for Anchor ``#[derive(Accounts)]`` structs.

``parse_account_field`` decodes one field: the ``#[account(...)]`` block(s)
immediately above it and its type signature. ``split_account_fields`` cuts a
whole struct into per-field chunks for it.

Constraint items are split on top-level commas; an item is either a bare flag
(``mut``, ``init``, ``bump``, ...) or ``key = value``, optionally followed by
``@ CustomError``. Values stay opaque.
"""

from __future__ import annotations

import re

from anchorscan.index._internal.parsing.functions import split_top_level
from anchorscan.index._internal.scanning.lexer import mask_lines
from anchorscan.index.models import ContextAccountField

_ACCOUNT_ATTR = "#[account"
_INIT_FLAGS = frozenset({"init", "init_if_needed", "init_if_necessary"})
_VALIDATION_KEYS = ("constraint", "has_one", "address")
_FIELD_RE = re.compile(r"^(?:pub(?:\s*\([^)]*\))?\s+)?(?P<name>[A-Za-z_][A-Za-z0-9_]*)\s*:(?!:)")
_KEY_VALUE_RE = re.compile(r"^(?P<key>[A-Za-z_][A-Za-z0-9_:]*)\s*=(?!=)\s*(?P<value>.*)$", re.S)


def _attribute_bodies(text: str) -> list[str]:
    """Contents of every ``#[account(...)]`` attribute in ``text``."""
    bodies: list[str] = []
    start = text.find(_ACCOUNT_ATTR)
    while start != -1:
        open_idx = text.find("(", start)
        bracket_close = text.find("]", start)
        if open_idx == -1 or (bracket_close != -1 and bracket_close < open_idx):
            # bare #[account] carries no constraints
            start = text.find(_ACCOUNT_ATTR, start + len(_ACCOUNT_ATTR))
            continue
        depth = 0
        end = -1
        for i in range(open_idx, len(text)):
            if text[i] == "(":
                depth += 1
            elif text[i] == ")":
                depth -= 1
                if depth == 0:
                    end = i
                    break
        if end == -1:
            break
        bodies.append(text[open_idx + 1 : end])
        start = text.find(_ACCOUNT_ATTR, end)
    return bodies


def _without_error(text: str) -> str:
    """Drop a trailing custom error, as in ``mut @ VaultError::NotMutable``."""
    return text.split("@", 1)[0].strip()


def _seed_list(value: str) -> list[str]:
    value = value.strip()
    if not (value.startswith("[") and value.endswith("]")):
        return []
    return [" ".join(seed.split()) for seed in split_top_level(value[1:-1], angles=False)]


def _split_field(text: str) -> tuple[str, str] | None:
    """``(name, type)`` of the field declaration that ends the chunk."""
    lines = text.split("\n")
    masked = list(mask_lines(lines))
    depth = 0
    for i, line in enumerate(masked):
        stripped = line.strip()
        if depth == 0 and not stripped.startswith("#"):
            m = _FIELD_RE.match(stripped)
            if m:
                decl = " ".join(masked[i:])
                type_text = decl.split(":", 1)[1]
                return m.group("name"), type_text.strip().rstrip(",").strip()
        depth += line.count("[") + line.count("(") - line.count("]") - line.count(")")
    return None


def _unwrap_box(type_text: str) -> str:
    if type_text.startswith("Box<") and type_text.endswith(">"):
        return type_text[len("Box<") : -1].strip()
    return type_text


def classify_account_type(type_text: str) -> tuple[str, str | None, str]:
    """Split a field type into ``(wrapper_type, lifetime_marker, inner_type)``.

    ``Box<Account<'info, Vault>>`` gives ``("Account", "'info", "Vault")``;
    ``Signer<'info>`` gives ``("Signer", "'info", "Signer")``.
    """
    type_text = _unwrap_box(" ".join(type_text.split()))
    if "<" not in type_text or not type_text.endswith(">"):
        return type_text, None, type_text
    wrapper, _, rest = type_text.partition("<")
    wrapper = wrapper.strip()
    args = split_top_level(rest[:-1])
    lifetime = args[0] if args and args[0].startswith("'") else None
    generic = [arg for arg in args if not arg.startswith("'")]
    inner = generic[0] if generic else wrapper
    return wrapper, lifetime, inner


def parse_account_field(text: str) -> ContextAccountField:
    """Decode one account field with its preceding attribute block.

    A field with no ``#[account(...)]`` block yields all flags false and
    empty lists.
    """
    split = _split_field(text)
    if split is None:
        raise ValueError(f"No field declaration in {text!r}")
    account_name, type_text = split
    wrapper, lifetime, inner = classify_account_type(type_text)

    flags: set[str] = set()
    seeds: list[str] = []
    payer: str | None = None
    close: str | None = None
    validations: list[str] = []

    for body in _attribute_bodies(text):
        for item in split_top_level(body, angles=False):
            item = " ".join(item.split())
            m = _KEY_VALUE_RE.match(item)
            if m is None:
                flags.add(_without_error(item))
                continue
            key, value = m.group("key"), m.group("value").strip()
            if key == "seeds":
                seeds.extend(_seed_list(value))
            elif key == "payer":
                payer = _without_error(value)
            elif key == "close":
                close = _without_error(value)
            elif key in _VALIDATION_KEYS:
                validations.append(item)

    return ContextAccountField(
        account_name=account_name,
        wrapper_type=wrapper,
        inner_type=inner,
        lifetime_marker=lifetime,
        is_pda=bool(seeds),
        is_init=bool(flags & _INIT_FLAGS),
        is_mut="mut" in flags,
        is_close=close is not None,
        seeds=tuple(seeds),
        rent_payer=payer if payer is not None else close,
        validations=tuple(validations),
    )


def split_account_fields(struct_content: str) -> list[str]:
    """Cut a struct's body into one chunk per field.

    Each chunk holds the field's attribute and comment lines followed by the
    declaration itself.
    """
    lines = struct_content.split("\n")
    masked = list(mask_lines(lines))
    chunks: list[str] = []
    pending: list[str] = []
    depth = 0  # brace depth; fields live at depth 1
    nesting = 0  # ( and [ depth inside attributes
    in_decl = False

    for raw, line in zip(lines, masked, strict=True):
        before = depth
        depth += line.count("{") - line.count("}")
        if before == 0:
            # header line (may also hold the first field on one-liners)
            continue
        if before == 1 and depth < 1 and not line.strip().rstrip("}").strip():
            break
        stripped = line.strip()
        if not stripped and not pending:
            continue
        pending.append(raw)
        nesting += line.count("(") + line.count("[") - line.count(")") - line.count("]")
        if nesting > 0 or stripped.startswith(("#", "//")) or not stripped:
            continue
        if _FIELD_RE.match(stripped):
            in_decl = True
        if in_decl and (stripped.endswith(",") or depth < 1):
            chunk = "\n".join(pending).rstrip()
            if depth < 1:
                chunk = chunk.rstrip().removesuffix("}").rstrip()
            chunks.append(chunk)
            pending = []
            in_decl = False
        if depth < 1:
            break

    if pending and in_decl:
        chunks.append("\n".join(pending).rstrip())
    return chunks


def parse_context_accounts(struct_content: str) -> list[ContextAccountField]:
    """Decode every field of an accounts struct, in declaration order."""
    return [parse_account_field(chunk) for chunk in split_account_fields(struct_content)]
