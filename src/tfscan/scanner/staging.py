"""Stage requested files into the scan target directory, and clean up after."""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import List, Optional, Protocol

from tfscan.scanner.models import ScanRequest
from tfscan.scanner.paths import PathLayout

logger = logging.getLogger(__name__)


class FetchError(Exception):
    """Raised by a FileSource when a file cannot be retrieved."""


class FileSource(Protocol):
    def fetch(self, project_path: str, file_path: str, ref: str) -> bytes:
        """Return the file's bytes at *ref*, or raise FetchError."""
        ...


class DirectoryFileSource:
    """Reads files from a local checkout; *ref* is ignored."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def fetch(self, project_path: str, file_path: str, ref: str) -> bytes:
        try:
            return (self.root / file_path).read_bytes()
        except OSError as exc:
            raise FetchError(f"cannot read {file_path}: {exc.strerror or exc}") from exc


@dataclass
class StageResult:
    saved: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


def _safe_destination(target: Path, file_path: str) -> Optional[Path]:
    rel = PurePosixPath(file_path)
    if rel.is_absolute() or ".." in rel.parts or not rel.parts:
        return None
    return target.joinpath(*rel.parts)


def stage_files(request: ScanRequest, layout: PathLayout, source: FileSource) -> StageResult:
    """Fetch every requested file into ``storage/<project id>/mr-<iid>/``."""
    target = layout.target_path(request)
    outcome = StageResult()

    for file_path in request.file_paths:
        dest = _safe_destination(target, file_path)
        if dest is None:
            logger.warning("Refusing to stage %s: path escapes the target directory", file_path)
            outcome.failed.append(file_path)
            continue

        try:
            content = source.fetch(request.project_path, file_path, request.source_branch)
        except FetchError as exc:
            logger.warning("Failed to fetch %s: %s", file_path, exc)
            outcome.failed.append(file_path)
            continue

        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            dest.write_bytes(content)
        except OSError as exc:
            logger.warning("Failed to save %s: %s", file_path, exc)
            outcome.failed.append(file_path)
            continue

        logger.info("Staged %s (%d bytes)", file_path, len(content))
        outcome.saved.append(file_path)

    logger.info(
        "Staging completed: %d/%d files succeeded",
        len(outcome.saved), len(request.file_paths),
    )
    return outcome


def cleanup_request(request: ScanRequest, layout: PathLayout, keep_raw: bool = False) -> None:
    """Remove staged files, the project dir if empty, and the raw artifact.

    Split results and the Excel summary are kept. *keep_raw* leaves the raw
    artifact in place for runs whose report points at it.
    """
    target = layout.target_path(request)
    if target.exists():
        shutil.rmtree(target)
        logger.info("Cleaned up MR directory: %s", target)

    project_dir = target.parent
    try:
        project_dir.rmdir()
        logger.info("Cleaned up project directory: %s", project_dir)
    except FileNotFoundError:
        pass
    except OSError:
        logger.debug("Project directory %s not empty, keeping it", project_dir)

    if keep_raw:
        logger.info("Keeping raw scan result for recovery: %s", layout.raw_result_path(request))
        return

    raw_path = layout.raw_result_path(request)
    try:
        raw_path.unlink()
        logger.info("Cleaned up raw scan result: %s", raw_path)
    except FileNotFoundError:
        pass
