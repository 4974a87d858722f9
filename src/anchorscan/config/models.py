"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (ANCHORSCAN__SECTION__KEY)
3. Repo YAML (.anchorscan/config.yaml)
4. Global YAML (~/.config/anchorscan/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    ANCHORSCAN__<SECTION>__<KEY>=<VALUE>

Examples:
    ANCHORSCAN__LOGGING__LEVEL=DEBUG
    ANCHORSCAN__PROGRAM__PROGRAM_DIR=programs
    ANCHORSCAN__METADATA__METADATA_DIR=.anchorscan/metadata
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from anchorscan.config.constants import DEFAULT_METADATA_DIR, DEFAULT_PROGRAM_DIR

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
KindName = Literal["Function", "Struct", "Trait", "TraitImplementation", "Enum"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration.

    Env vars: Not directly configurable via env (use YAML for multi-output).
    """

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        ANCHORSCAN__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every dropped construct and resolved edge.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class ProgramConfig(BaseModel):
    """Location of the audited program sources.

    Env vars:
        ANCHORSCAN__PROGRAM__PROGRAM_DIR: Directory walked for sources (repo-relative)
        ANCHORSCAN__PROGRAM__PROGRAM_LIB_PATH: File holding the #[program] module
    """

    program_dir: str = Field(
        default=DEFAULT_PROGRAM_DIR,
        description="Directory walked for source files, relative to the repo root.",
    )
    program_lib_path: str | None = Field(
        default=None,
        description="Repo-relative path of the file declaring the #[program] module. "
        "Auto-detected when exactly one <program_dir>/*/src/lib.rs exists.",
    )

    @field_validator("program_dir")
    @classmethod
    def validate_program_dir(cls, v: str) -> str:
        if Path(v).is_absolute():
            raise ValueError(f"program_dir must be relative to the repo root: {v}")
        return v


class MetadataConfig(BaseModel):
    """Where section documents are written.

    Env vars:
        ANCHORSCAN__METADATA__METADATA_DIR: Document directory (repo-relative)
    """

    metadata_dir: str = Field(
        default=DEFAULT_METADATA_DIR,
        description="Directory for the per-kind section documents, relative to the repo root.",
    )


class ScanConfig(BaseModel):
    """Boundary scan configuration.

    Env vars:
        ANCHORSCAN__SCAN__MAX_FILE_SIZE_MB: Skip files larger than this
    """

    extensions: list[str] = Field(
        default_factory=lambda: [".rs"],
        description="File extensions handed to the boundary scanner.",
    )
    max_file_size_mb: int = Field(
        default=5,
        description="Skip files larger than this (MB). Generated bindings can be huge.",
    )
    kinds: list[KindName] = Field(
        default_factory=lambda: ["Function", "Struct", "Trait", "TraitImplementation", "Enum"],
        description="Entity kinds scanned. One worker thread per kind.",
    )

    @field_validator("max_file_size_mb")
    @classmethod
    def validate_max_file_size(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"max_file_size_mb must be positive, got {v}")
        return v

    @field_validator("extensions")
    @classmethod
    def validate_extensions(cls, v: list[str]) -> list[str]:
        return [ext if ext.startswith(".") else f".{ext}" for ext in v]


class AnchorScanConfig(BaseModel):
    """Root configuration for anchorscan.

    All settings can be configured via:
    1. Environment variables: ANCHORSCAN__SECTION__KEY
    2. YAML config files (repo or global)
    3. Direct kwargs to load_config()
    """

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    program: ProgramConfig = Field(default_factory=ProgramConfig)
    metadata: MetadataConfig = Field(default_factory=MetadataConfig)
    scan: ScanConfig = Field(default_factory=ScanConfig)
