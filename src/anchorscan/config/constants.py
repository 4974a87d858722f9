"""Configuration constants.

Values here are not user-configurable. For configurable values, see
models.py.
"""

# =============================================================================
# Workspace Layout
# =============================================================================

ANCHORSCAN_DIR = ".anchorscan"
"""Per-repo data directory (config.yaml, metadata/)."""

DEFAULT_PROGRAM_DIR = "programs"
"""Anchor workspaces keep one crate per program under programs/."""

DEFAULT_METADATA_DIR = ".anchorscan/metadata"
"""Default location of the section documents."""

PROGRAM_LIB_GLOB = "*/src/lib.rs"
"""Pattern (relative to program_dir) used to auto-detect the program lib file."""

# =============================================================================
# Scanner Heuristics
# =============================================================================

ATTRIBUTE_LOOKBEHIND_LINES = 3
"""Lines above a struct/enum header searched for #[account], #[derive(Accounts)]
and #[error_code]."""

CONTEXT_LOOKAHEAD_LINES = 2
"""Lines from an entrypoint header searched for its Context<...> parameter."""
