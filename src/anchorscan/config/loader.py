"""Configuration loading with pydantic-settings.

Supports loading configuration from multiple sources with precedence:
1. Direct kwargs (highest priority)
2. Environment variables (ANCHORSCAN__SECTION__KEY)
3. User config (.anchorscan/config.yaml) - minimal user-facing options
4. Global config (~/.config/anchorscan/config.yaml)
5. Built-in defaults (lowest priority)
"""

from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from anchorscan.config.constants import ANCHORSCAN_DIR, PROGRAM_LIB_GLOB
from anchorscan.config.models import (
    AnchorScanConfig,
    LoggingConfig,
    MetadataConfig,
    ProgramConfig,
    ScanConfig,
)
from anchorscan.config.user_config import load_user_config
from anchorscan.core.errors import ConfigError

log = structlog.get_logger(__name__)

GLOBAL_CONFIG_PATH = Path("~/.config/anchorscan/config.yaml").expanduser()


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with path.open() as f:
            return yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError.parse_error(str(path), str(e)) from e


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


class _MergedYamlSource(PydanticBaseSettingsSource):
    """Feeds the merged global and repo YAML into pydantic-settings."""

    def __init__(self, settings_cls: type[BaseSettings], yaml_config: dict[str, Any]) -> None:
        super().__init__(settings_cls)
        self._yaml_config = yaml_config

    def get_field_value(
        self,
        field: Any,  # noqa: ARG002
        field_name: str,
    ) -> tuple[Any, str, bool]:
        value = self._yaml_config.get(field_name)
        return value, field_name, value is not None

    def __call__(self) -> dict[str, Any]:
        return self._yaml_config


def _make_settings_class(yaml_config: dict[str, Any]) -> type[BaseSettings]:
    """Build a settings class bound to one repo's YAML values."""

    class AnchorScanSettings(BaseSettings):
        """Env vars: ANCHORSCAN__LOGGING__LEVEL, ANCHORSCAN__PROGRAM__PROGRAM_DIR, ..."""

        model_config = SettingsConfigDict(
            env_prefix="ANCHORSCAN__",
            env_nested_delimiter="__",
            case_sensitive=False,
        )

        logging: LoggingConfig = LoggingConfig()
        program: ProgramConfig = ProgramConfig()
        metadata: MetadataConfig = MetadataConfig()
        scan: ScanConfig = ScanConfig()

        @classmethod
        def settings_customise_sources(
            cls,
            settings_cls: type[BaseSettings],
            init_settings: PydanticBaseSettingsSource,
            env_settings: PydanticBaseSettingsSource,
            dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
            file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        ) -> tuple[PydanticBaseSettingsSource, ...]:
            # First source wins
            return (init_settings, env_settings, _MergedYamlSource(settings_cls, yaml_config))

    return AnchorScanSettings


AnchorScanSettings = _make_settings_class({})


def load_config(repo_root: Path | None = None, **kwargs: Any) -> AnchorScanConfig:
    """Load config: defaults < global yaml < repo yaml < env vars < kwargs.

    Args:
        repo_root: Repository root to load config from.
                   Defaults to current working directory.
        **kwargs: Override values (highest precedence).

    Returns:
        Fully resolved configuration object.

    Raises:
        ConfigError: On invalid YAML syntax or validation errors.
    """
    repo_root = repo_root or Path.cwd()
    user_config = load_user_config(repo_root / ANCHORSCAN_DIR / "config.yaml")

    # Only keys the user actually wrote, so global config can fill the rest
    explicit = user_config.model_fields_set
    yaml_config: dict[str, Any] = {"program": {}, "logging": {}}
    if "program_dir" in explicit:
        yaml_config["program"]["program_dir"] = user_config.program_dir
    if "program_lib_path" in explicit and user_config.program_lib_path:
        yaml_config["program"]["program_lib_path"] = user_config.program_lib_path
    if "log_level" in explicit:
        yaml_config["logging"]["level"] = user_config.log_level

    global_config = _load_yaml(GLOBAL_CONFIG_PATH)
    if global_config:
        yaml_config = _deep_merge(global_config, yaml_config)

    settings_cls = _make_settings_class(yaml_config)
    try:
        settings = settings_cls(**kwargs)
    except ValidationError as e:
        err = e.errors()[0]
        field = ".".join(str(loc) for loc in err["loc"])
        raise ConfigError.invalid_value(field, err.get("input"), err["msg"]) from e
    return AnchorScanConfig.model_validate(settings.model_dump())


def resolve_program_lib_path(repo_root: Path, config: AnchorScanConfig) -> str | None:
    """Repo-relative path of the #[program] file, configured or auto-detected.

    Returns None when nothing is configured and auto-detection finds zero or
    several candidates; entrypoint classification is then skipped.
    """
    if config.program.program_lib_path:
        lib_path = repo_root / config.program.program_lib_path
        if not lib_path.is_file():
            raise ConfigError.file_not_found(str(lib_path))
        return Path(config.program.program_lib_path).as_posix()

    program_dir = repo_root / config.program.program_dir
    candidates = sorted(program_dir.glob(PROGRAM_LIB_GLOB)) if program_dir.is_dir() else []
    if len(candidates) != 1:
        log.info(
            "program_lib_not_detected",
            program_dir=config.program.program_dir,
            candidates=len(candidates),
        )
        return None
    return candidates[0].relative_to(repo_root).as_posix()


def get_metadata_dir(repo_root: Path, config: AnchorScanConfig) -> Path:
    """Absolute metadata directory for a repo."""
    return repo_root / config.metadata.metadata_dir
