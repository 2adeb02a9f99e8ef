"""Path layout, presence probe, external tools and scan orchestration."""

from tfscan.scanner.models import ScanOutcome, ScanPaths, ScanRequest, load_request
from tfscan.scanner.orchestrator import (
    ScanError,
    Scanner,
    ScanReport,
    build_comment,
    build_report,
    build_scanner,
)
from tfscan.scanner.paths import PathLayout, TargetNotFoundError
from tfscan.scanner.presence import check_raw_artifact, has_findings
from tfscan.scanner.tools import ParserExecutor, ToolError, TrivyExecutor

__all__ = [
    "ParserExecutor",
    "PathLayout",
    "ScanError",
    "ScanOutcome",
    "ScanPaths",
    "ScanReport",
    "ScanRequest",
    "Scanner",
    "TargetNotFoundError",
    "ToolError",
    "TrivyExecutor",
    "build_comment",
    "build_report",
    "build_scanner",
    "check_raw_artifact",
    "has_findings",
    "load_request",
]
