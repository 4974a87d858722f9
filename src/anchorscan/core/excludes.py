"""Directories never walked when collecting program sources.

HARDCODED_DIRS are VCS internals and anchorscan's own data directory.
DEFAULT_PRUNABLE_DIRS are build outputs and dependency caches of the
Rust/Anchor and JS toolchains that sit next to on-chain programs.
"""

from __future__ import annotations

HARDCODED_DIRS: frozenset[str] = frozenset(
    (
        ".git",
        ".svn",
        ".hg",
        ".anchorscan",
    )
)

DEFAULT_PRUNABLE_DIRS: frozenset[str] = frozenset(
    (
        # Rust / Cargo
        "target",
        ".cargo",
        # Anchor workspace artifacts
        ".anchor",
        "test-ledger",
        # JS client / test harness
        "node_modules",
        ".yarn",
        ".pnpm-store",
        "dist",
        # Editors and caches
        ".idea",
        ".vscode",
        "__pycache__",
    )
)

PRUNABLE_DIRS: frozenset[str] = HARDCODED_DIRS | DEFAULT_PRUNABLE_DIRS


def is_prunable(dirname: str) -> bool:
    """True when a directory name should not be descended into."""
    return dirname in PRUNABLE_DIRS
