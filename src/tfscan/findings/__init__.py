"""Result models, split filename encodings, and aggregation."""

from tfscan.findings.aggregator import Aggregation, AggregationError, aggregate
from tfscan.findings.models import (
    FileScanResult,
    PolicySource,
    PolicyViolation,
    ScanResultFile,
    SeveritySummary,
    SplitFileError,
)

__all__ = [
    "Aggregation",
    "AggregationError",
    "FileScanResult",
    "PolicySource",
    "PolicyViolation",
    "ScanResultFile",
    "SeveritySummary",
    "SplitFileError",
    "aggregate",
]
