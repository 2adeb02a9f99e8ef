"""On-disk layout of one scan run."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from tfscan.scanner.models import ScanPaths, ScanRequest

logger = logging.getLogger(__name__)

ORIGINAL_DIR = "original"


class TargetNotFoundError(FileNotFoundError):
    """Raised when the downloaded-files directory for a request is missing."""


def project_name(project_path: str) -> str:
    """Last path segment of *project_path*, safe to use in file names."""
    name = project_path.rstrip("/").rsplit("/", 1)[-1]
    name = re.sub(r"[^A-Za-z0-9._-]+", "_", name).strip(".")
    return name or "project"


class PathLayout:
    """Derives and creates the directories a scan run writes to.

    Result names are keyed by project name and MR number only, so two
    in-flight scans of the same MR share files.
    """

    def __init__(self, storage_root: Path, results_root: Path) -> None:
        self.storage_root = Path(storage_root)
        self.results_root = Path(results_root)

    def target_path(self, request: ScanRequest) -> Path:
        return self.storage_root / str(request.project_id) / f"mr-{request.mr_iid}"

    def raw_result_path(self, request: ScanRequest) -> Path:
        name = f"{project_name(request.project_path)}-{request.mr_iid}.json"
        return self.results_root / ORIGINAL_DIR / name

    def split_result_dir(self, request: ScanRequest) -> Path:
        return self.results_root / project_name(request.project_path) / f"mr-{request.mr_iid}"

    def prepare(self, request: ScanRequest) -> ScanPaths:
        """Validate the target and create the result directories."""
        target = self.target_path(request)
        if not target.is_dir():
            raise TargetNotFoundError(f"target path does not exist: {target}")

        raw_path = self.raw_result_path(request)
        split_dir = self.split_result_dir(request)
        raw_path.parent.mkdir(parents=True, exist_ok=True)
        split_dir.mkdir(parents=True, exist_ok=True)

        name = project_name(request.project_path)
        summary_path = split_dir / f"{name}_#{request.mr_iid}.xlsx"

        logger.debug("Prepared scan paths: target=%s raw=%s split=%s", target, raw_path, split_dir)
        return ScanPaths(
            target_path=target,
            raw_result_path=raw_path,
            split_result_dir=split_dir,
            summary_artifact_path=summary_path,
        )
