"""Scan orchestration: drives one scan run from paths to report text.

Step failures are graded:

- path preparation or the trivy scan failing is fatal (``ScanError``);
- the presence probe failing is treated as "no findings";
- the split step failing leaves ``parser_success=False``;
- the Excel step failing is logged only.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from tfscan.config.schema import TfScanConfig
from tfscan.findings.aggregator import Aggregation, AggregationError, aggregate
from tfscan.output.markdown import (
    NO_FINDINGS_MESSAGE,
    PARSE_FAILED_MESSAGE,
    SUMMARY_FAILED_MESSAGE,
    render,
)
from tfscan.scanner.models import ScanOutcome, ScanRequest
from tfscan.scanner.paths import PathLayout, TargetNotFoundError
from tfscan.scanner.presence import check_raw_artifact
from tfscan.scanner.tools import ParserExecutor, ToolError, TrivyExecutor

logger = logging.getLogger(__name__)


class ScanError(Exception):
    """Raised when a scan run cannot produce an outcome."""


@dataclass(frozen=True)
class ScanReport:
    """Outcome plus the text to post on the merge request."""

    outcome: ScanOutcome
    message: str
    aggregation: Optional[Aggregation] = None

    @property
    def summary_ok(self) -> bool:
        return self.aggregation is not None


def build_report(
    outcome: ScanOutcome,
    naming_mode: str = "auto",
    extension: str = ".tf",
) -> ScanReport:
    """Pick the comment for *outcome*.

    No findings wins over any parser failure; a failed split or an
    unreadable split directory falls back to pointing at the raw artifact.
    """
    if not outcome.has_findings:
        return ScanReport(outcome, NO_FINDINGS_MESSAGE)
    if not outcome.parser_success:
        return ScanReport(outcome, PARSE_FAILED_MESSAGE)
    try:
        agg = aggregate(outcome.split_dir, naming_mode, extension)
    except AggregationError as exc:
        logger.warning("Failed to build scan summary: %s", exc)
        return ScanReport(outcome, SUMMARY_FAILED_MESSAGE)
    return ScanReport(outcome, render(agg), agg)


def build_comment(outcome: ScanOutcome, naming_mode: str = "auto", extension: str = ".tf") -> str:
    return build_report(outcome, naming_mode, extension).message


class Scanner:
    """Sequences path layout, trivy, the presence probe, and trivy-parser."""

    def __init__(
        self,
        layout: PathLayout,
        trivy: TrivyExecutor,
        parser: ParserExecutor,
        naming_mode: str = "auto",
        extension: str = ".tf",
    ) -> None:
        self.layout = layout
        self.trivy = trivy
        self.parser = parser
        self.naming_mode = naming_mode
        self.extension = extension

    @classmethod
    def from_config(cls, cfg: TfScanConfig) -> "Scanner":
        timeout = cfg.tools.timeout_seconds
        return cls(
            layout=PathLayout(Path(cfg.paths.storage), Path(cfg.paths.scan_results)),
            trivy=TrivyExecutor(
                cfg.tools.trivy_path,
                cfg.tools.custom_policies,
                namespace=cfg.tools.check_namespace,
                timeout=timeout,
            ),
            parser=ParserExecutor(cfg.tools.parser_path, timeout=timeout),
            naming_mode=cfg.report.naming,
            extension=cfg.report.source_extension,
        )

    def validate_setup(self) -> None:
        """Raise ToolError naming the first missing executable or directory."""
        self.trivy.validate()
        self.parser.validate()
        logger.info("Scanner setup validated")

    def scan(self, request: ScanRequest) -> ScanOutcome:
        logger.info("Starting Trivy scan for project %s, MR #%d", request.project_path, request.mr_iid)

        try:
            paths = self.layout.prepare(request)
        except TargetNotFoundError as exc:
            raise ScanError(str(exc)) from exc
        except OSError as exc:
            raise ScanError(f"failed to create result directories: {exc}") from exc

        try:
            self.trivy.run_scan(paths.target_path, paths.raw_result_path)
        except ToolError as exc:
            raise ScanError(f"trivy scan failed: {exc}") from exc

        try:
            has_findings = check_raw_artifact(paths.raw_result_path)
        except OSError as exc:
            logger.warning("Could not read raw artifact %s: %s", paths.raw_result_path, exc)
            has_findings = False

        parser_success = True
        try:
            self.parser.split(paths.raw_result_path, paths.split_result_dir)
        except ToolError as exc:
            logger.warning("Parser splitting failed: %s", exc)
            logger.warning("Raw scan results are still available at: %s", paths.raw_result_path)
            parser_success = False

        summary_path: Optional[Path] = paths.summary_artifact_path
        try:
            self.parser.generate_summary_artifact(paths.raw_result_path, paths.summary_artifact_path)
        except ToolError as exc:
            logger.warning("Excel generation failed: %s", exc)
            summary_path = None

        return ScanOutcome(
            success=True,
            split_dir=paths.split_result_dir,
            raw_path=paths.raw_result_path,
            has_findings=has_findings,
            parser_success=parser_success,
            summary_artifact_path=summary_path,
        )

    def run(self, request: ScanRequest) -> ScanReport:
        """Scan *request* and build the merge-request comment."""
        outcome = self.scan(request)
        return build_report(outcome, self.naming_mode, self.extension)


def build_scanner(cfg: TfScanConfig) -> Optional[Scanner]:
    """Return a validated Scanner, or None when the tool setup is incomplete.

    Callers treat None as "scanning disabled".
    """
    scanner = Scanner.from_config(cfg)
    try:
        scanner.validate_setup()
    except ToolError as exc:
        logger.warning("Trivy scanner validation failed: %s", exc)
        logger.warning("Scanner will be disabled, file scanning will be skipped")
        return None
    return scanner
