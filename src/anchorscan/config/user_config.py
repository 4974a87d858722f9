"""Minimal user-facing configuration.

Only the fields an auditor should reasonably touch live here. Everything
else uses defaults from models.py.

User config is stored in .anchorscan/config.yaml
"""

from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from anchorscan.config.constants import DEFAULT_PROGRAM_DIR
from anchorscan.config.models import LogLevel
from anchorscan.core.errors import ConfigError

DEFAULT_LOG_LEVEL: LogLevel = "INFO"


class UserConfig(BaseModel):
    """User-facing configuration options."""

    program_dir: str = Field(
        default=DEFAULT_PROGRAM_DIR,
        description="Directory holding the audited program crates.",
    )
    program_lib_path: str | None = Field(
        default=None,
        description="File declaring the #[program] module. Auto-detected if unset.",
    )
    log_level: LogLevel = Field(
        default=DEFAULT_LOG_LEVEL,
        description="Log level. DEBUG is very verbose.",
    )


def write_user_config(path: Path, config: UserConfig | None = None) -> None:
    """Write user config file with helpful comments.

    Args:
        path: Path to write config.yaml
        config: Config values (uses defaults if None)
    """
    cfg = config or UserConfig()

    lines = [
        "# anchorscan configuration",
        "",
        "# Directory walked for program sources (relative to the repo root)",
        f"program_dir: {cfg.program_dir}",
        "",
        "# File that declares the #[program] module. Leave unset to auto-detect",
        "# <program_dir>/*/src/lib.rs when the workspace has a single program.",
    ]
    if cfg.program_lib_path:
        lines.append(f"program_lib_path: {cfg.program_lib_path}")
    else:
        lines.append("# program_lib_path: programs/<name>/src/lib.rs")
    lines.append("")

    lines.append("# Log level: DEBUG, INFO, WARNING, ERROR, CRITICAL")
    if cfg.log_level != DEFAULT_LOG_LEVEL:
        lines.append(f"log_level: {cfg.log_level}")
    else:
        lines.append(f"# log_level: {cfg.log_level}")
    lines.append("")

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(lines))


def load_user_config(path: Path) -> UserConfig:
    """Load user config from YAML file. Missing file means defaults."""
    if not path.exists():
        return UserConfig()
    try:
        with path.open() as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError.parse_error(str(path), str(e)) from e
    if not isinstance(data, dict):
        raise ConfigError.parse_error(str(path), "top level must be a mapping")
    try:
        return UserConfig(**data)
    except ValidationError as e:
        err = e.errors()[0]
        field = ".".join(str(loc) for loc in err["loc"])
        raise ConfigError.invalid_value(field, err.get("input"), err["msg"]) from e
