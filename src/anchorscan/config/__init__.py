"""Config module exports."""

from anchorscan.config.loader import (
    AnchorScanSettings,
    get_metadata_dir,
    load_config,
    resolve_program_lib_path,
)
from anchorscan.config.models import (
    AnchorScanConfig,
    LoggingConfig,
    MetadataConfig,
    ProgramConfig,
    ScanConfig,
)

__all__ = [
    "load_config",
    "get_metadata_dir",
    "resolve_program_lib_path",
    "AnchorScanConfig",
    "AnchorScanSettings",
    "LoggingConfig",
    "MetadataConfig",
    "ProgramConfig",
    "ScanConfig",
]
