"""Load and merge configuration from .tfscan.toml and env vars."""

from __future__ import annotations

import dataclasses
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from tfscan.config.schema import (
    NAMING_MODES,
    OUTPUT_FORMATS,
    OutputConfig,
    PathsConfig,
    ReportConfig,
    TfScanConfig,
    ToolsConfig,
)

CONFIG_FILE_NAME = ".tfscan.toml"

# env var -> (section, field)
_PATH_OVERRIDES = {
    "TRIVY_BIN_PATH": ("tools", "trivy_path"),
    "PARSER_BIN_PATH": ("tools", "parser_path"),
    "CUSTOM_POLICIES_PATH": ("tools", "custom_policies"),
    "STORAGE_PATH": ("paths", "storage"),
    "SCAN_RESULTS_PATH": ("paths", "scan_results"),
}


class ConfigError(Exception):
    """Raised when config is malformed or unreadable."""


def find_config_file(base_dir: Path, override: Optional[str] = None) -> Optional[Path]:
    """Locate the config file. *override* takes precedence."""
    if override:
        p = Path(override)
        if not p.is_file():
            raise ConfigError(f"Config file not found: {override}")
        return p
    candidate = base_dir / CONFIG_FILE_NAME
    return candidate if candidate.is_file() else None


def _parse_toml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"Failed to parse {path}: {exc}") from exc


def _build_section(data: Dict[str, Any], cls: type, section: str):
    """Build a dataclass from a TOML section dict, ignoring unknown keys."""
    raw = data.get(section, {})
    if not isinstance(raw, dict):
        raise ConfigError(f"[{section}] must be a table")
    valid_fields = {f.name for f in dataclasses.fields(cls)}
    filtered = {k: v for k, v in raw.items() if k in valid_fields}
    return cls(**filtered)


def _merge_env_overrides(cfg: TfScanConfig) -> None:
    """Apply tool/path env vars and TFSCAN_* overrides."""
    for env_name, (section, attr) in _PATH_OVERRIDES.items():
        if val := os.environ.get(env_name):
            setattr(getattr(cfg, section), attr, val)
    if val := os.environ.get("TFSCAN_NAMING"):
        if val in NAMING_MODES:
            cfg.report.naming = val  # type: ignore[assignment]
    if val := os.environ.get("TFSCAN_FORMAT"):
        if val in OUTPUT_FORMATS:
            cfg.output.format = val  # type: ignore[assignment]


def _validate(cfg: TfScanConfig) -> None:
    if cfg.report.naming not in NAMING_MODES:
        raise ConfigError(
            f"Invalid report.naming {cfg.report.naming!r} "
            f"(expected one of: {', '.join(NAMING_MODES)})"
        )
    if cfg.output.format not in OUTPUT_FORMATS:
        raise ConfigError(
            f"Invalid output.format {cfg.output.format!r} "
            f"(expected one of: {', '.join(OUTPUT_FORMATS)})"
        )
    if not isinstance(cfg.tools.timeout, int) or cfg.tools.timeout < 0:
        raise ConfigError("tools.timeout must be a non-negative integer")


def load_config(
    base_dir: Path,
    config_override: Optional[str] = None,
) -> TfScanConfig:
    """Load, validate, and return a TfScanConfig."""
    config_path = find_config_file(base_dir, config_override)

    if config_path is None:
        cfg = TfScanConfig()
    else:
        raw = _parse_toml(config_path)
        try:
            cfg = TfScanConfig(
                version=raw.get("version", "1.0"),
                tools=_build_section(raw, ToolsConfig, "tools"),
                paths=_build_section(raw, PathsConfig, "paths"),
                report=_build_section(raw, ReportConfig, "report"),
                output=_build_section(raw, OutputConfig, "output"),
            )
        except TypeError as exc:
            raise ConfigError(f"Invalid config in {config_path}: {exc}") from exc

    _merge_env_overrides(cfg)
    _validate(cfg)
    return cfg
