"""Aggregate split result files into per-file pass/fail and severity totals."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from tfscan.findings import naming
from tfscan.findings.models import (
    FileScanResult,
    PolicySource,
    PolicyViolation,
    ScanResultFile,
    SeveritySummary,
    SplitFileError,
)

logger = logging.getLogger(__name__)


class AggregationError(Exception):
    """Raised when the split result directory cannot be read at all."""


@dataclass
class Aggregation:
    """Everything the report needs, collected from one split directory."""

    files: Dict[str, FileScanResult] = field(default_factory=dict)
    builtin_total: SeveritySummary = field(default_factory=SeveritySummary)
    custom_total: SeveritySummary = field(default_factory=SeveritySummary)
    convention: Optional[str] = None
    skipped: List[str] = field(default_factory=list)

    @property
    def combined_total(self) -> SeveritySummary:
        return self.custom_total + self.builtin_total

    def sorted_files(self) -> List[str]:
        return sorted(self.files)

    def failed_files(self) -> List[FileScanResult]:
        return [self.files[name] for name in self.sorted_files() if not self.files[name].passed]

    def add(self, source: PolicySource, original_file: str, result: ScanResultFile) -> None:
        """Fold one parsed split file into the totals and its file entry."""
        summary = result.severity_summary
        if source is PolicySource.BUILTIN:
            self.builtin_total = self.builtin_total + summary
        else:
            self.custom_total = self.custom_total + summary

        if summary.has_violations:
            self.files[original_file].mark_failed(
                source,
                [PolicyViolation(m.title, m.severity) for m in result.misconfigurations()],
            )


def load_result_file(path: Path) -> ScanResultFile:
    """Read and parse one Trivy JSON document."""
    try:
        data = json.loads(path.read_bytes())
    except (ValueError, RecursionError) as exc:  # bad JSON, bad encoding, too deeply nested
        raise SplitFileError(f"invalid JSON in {path.name}: {exc}") from exc
    return ScanResultFile.from_dict(data)


def aggregate(
    split_dir: Path,
    naming_mode: str = "auto",
    extension: str = ".tf",
) -> Aggregation:
    """Aggregate every recognizable split result file in *split_dir*.

    Unrecognized names and unparseable files are logged and skipped. A file
    whose name decodes still gets an entry even if its body fails to parse.
    """
    try:
        entries = sorted(p for p in split_dir.iterdir() if p.is_file())
    except OSError as exc:
        raise AggregationError(f"failed to read directory {split_dir}: {exc}") from exc

    json_files = [p for p in entries if p.name.endswith(naming.SPLIT_SUFFIX)]
    if naming_mode == "auto":
        convention = naming.detect_convention((p.name for p in json_files), extension)
    else:
        convention = naming_mode

    agg = Aggregation(convention=convention)
    if convention is None:
        logger.info("No recognizable split result files in %s", split_dir)
        agg.skipped.extend(p.name for p in json_files)
        return agg

    for path in json_files:
        decoded = naming.decode(path.name, convention, extension)
        if decoded is None:
            logger.info("Skipping %s: not a %s-style split result name", path.name, convention)
            agg.skipped.append(path.name)
            continue

        original = decoded.original_file
        if original not in agg.files:
            agg.files[original] = FileScanResult(file_name=original)

        try:
            result = load_result_file(path)
        except (OSError, SplitFileError) as exc:
            logger.warning("Skipping split result %s: %s", path.name, exc)
            agg.skipped.append(path.name)
            continue

        agg.add(decoded.source, original, result)

    logger.debug(
        "Aggregated %d file(s) from %s (convention=%s, skipped=%d)",
        len(agg.files), split_dir, convention, len(agg.skipped),
    )
    return agg
