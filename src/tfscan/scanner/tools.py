"""Subprocess wrappers for trivy and trivy-parser.

Each invocation inherits this process's stdout/stderr and blocks until the
tool exits. No timeout unless one is configured.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import List, Optional, Sequence

logger = logging.getLogger(__name__)


class ToolError(Exception):
    """Raised when an external tool is missing or exits non-zero."""


def _run_tool(name: str, args: Sequence[str], timeout: Optional[int] = None) -> None:
    """Run *args*, raising ToolError on spawn failure, timeout, or non-zero exit."""
    logger.info("Executing %s: %s", name, " ".join(str(a) for a in args))
    try:
        result = subprocess.run(list(args), timeout=timeout, check=False)
    except FileNotFoundError as exc:
        raise ToolError(f"{name} executable not found: {args[0]}") from exc
    except subprocess.TimeoutExpired as exc:
        raise ToolError(f"{name} timed out after {timeout}s") from exc
    except OSError as exc:
        raise ToolError(f"{name} could not be started: {exc}") from exc

    if result.returncode != 0:
        raise ToolError(f"{name} failed with exit code {result.returncode}")


class TrivyExecutor:
    """Runs ``trivy config`` with the organisation's custom policies."""

    def __init__(
        self,
        trivy_path: str,
        custom_policies: str,
        namespace: str = "user",
        timeout: Optional[int] = None,
    ) -> None:
        self.trivy_path = trivy_path
        self.custom_policies = custom_policies
        self.namespace = namespace
        self.timeout = timeout

    def build_args(self, target_path: Path, output_path: Path) -> List[str]:
        return [
            self.trivy_path,
            "config",
            "--config-check", self.custom_policies,
            "--check-namespaces", self.namespace,
            "--format", "json",
            "-o", str(output_path),
            str(target_path),
        ]

    def run_scan(self, target_path: Path, output_path: Path) -> None:
        _run_tool("trivy scan", self.build_args(target_path, output_path), self.timeout)
        logger.info("Trivy scan completed, raw results saved to %s", output_path)

    def validate(self) -> None:
        if not Path(self.trivy_path).is_file():
            raise ToolError(f"trivy executable not found at: {self.trivy_path}")
        if not Path(self.custom_policies).is_dir():
            raise ToolError(f"custom policies directory not found at: {self.custom_policies}")


class ParserExecutor:
    """Runs trivy-parser to split the raw artifact and render the Excel summary."""

    def __init__(self, parser_path: str, timeout: Optional[int] = None) -> None:
        self.parser_path = parser_path
        self.timeout = timeout

    def split_args(self, input_path: Path, output_dir: Path) -> List[str]:
        # trivy-parser wants the trailing separator on directories
        return [
            self.parser_path,
            "-input", str(input_path),
            "-output", str(output_dir).rstrip("/") + "/",
            "-preprocess",
            "-pretty",
        ]

    def summary_args(self, input_path: Path, output_path: Path) -> List[str]:
        return [
            self.parser_path,
            "-input", str(input_path),
            "-output", str(output_path),
            "-excel",
        ]

    def split(self, input_path: Path, output_dir: Path) -> None:
        _run_tool("trivy-parser split", self.split_args(input_path, output_dir), self.timeout)
        logger.info("Split results saved to %s", output_dir)

    def generate_summary_artifact(self, input_path: Path, output_path: Path) -> None:
        _run_tool("trivy-parser excel", self.summary_args(input_path, output_path), self.timeout)
        logger.info("Excel summary saved to %s", output_path)

    def validate(self) -> None:
        if not Path(self.parser_path).is_file():
            raise ToolError(f"trivy-parser executable not found at: {self.parser_path}")
