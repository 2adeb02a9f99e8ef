"""Configuration dataclasses, one per .tfscan.toml section."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Optional

NamingMode = Literal["auto", "prefix", "bracket"]
OutputFormat = Literal["markdown", "json", "terminal"]

NAMING_MODES = ("auto", "prefix", "bracket")
OUTPUT_FORMATS = ("markdown", "json", "terminal")


@dataclass
class ToolsConfig:
    trivy_path: str = "./bin/trivy"
    parser_path: str = "./bin/trivy-parser"
    custom_policies: str = "./custom-policies"
    check_namespace: str = "user"
    timeout: int = 0  # seconds; 0 waits for the tool to exit

    @property
    def timeout_seconds(self) -> Optional[int]:
        return self.timeout if self.timeout > 0 else None


@dataclass
class PathsConfig:
    storage: str = "./storage"
    scan_results: str = "./scan-results"


@dataclass
class ReportConfig:
    naming: NamingMode = "auto"
    source_extension: str = ".tf"


@dataclass
class OutputConfig:
    format: OutputFormat = "markdown"


@dataclass
class TfScanConfig:
    version: str = "1.0"
    tools: ToolsConfig = field(default_factory=ToolsConfig)
    paths: PathsConfig = field(default_factory=PathsConfig)
    report: ReportConfig = field(default_factory=ReportConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
