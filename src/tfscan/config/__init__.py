"""Configuration loading, schema, and defaults."""

from tfscan.config.loader import ConfigError, load_config
from tfscan.config.schema import (
    NAMING_MODES,
    OUTPUT_FORMATS,
    OutputConfig,
    PathsConfig,
    ReportConfig,
    TfScanConfig,
    ToolsConfig,
)

__all__ = [
    "ConfigError",
    "NAMING_MODES",
    "OUTPUT_FORMATS",
    "OutputConfig",
    "PathsConfig",
    "ReportConfig",
    "TfScanConfig",
    "ToolsConfig",
    "load_config",
]
