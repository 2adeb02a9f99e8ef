"""Scan request, derived paths, and outcome models."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml


class RequestError(ValueError):
    """Raised when a scan request is missing required fields."""


@dataclass(frozen=True)
class ScanRequest:
    """One merge request's worth of files to scan."""

    project_id: int
    project_path: str
    mr_iid: int
    source_branch: str = ""
    file_paths: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if self.project_id <= 0 or self.mr_iid <= 0:
            raise RequestError("project_id and mr_iid must be positive integers")
        if not self.project_path.strip("/"):
            raise RequestError("project_path must not be empty")
        # frozen: normalise lists passed by callers
        object.__setattr__(self, "file_paths", tuple(self.file_paths))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScanRequest":
        missing = [k for k in ("project_id", "project_path", "mr_iid") if not data.get(k)]
        if missing:
            raise RequestError(f"missing required fields: {', '.join(missing)}")
        file_paths = data.get("file_paths") or []
        if not isinstance(file_paths, list) or not all(isinstance(p, str) for p in file_paths):
            raise RequestError("file_paths must be a list of strings")
        try:
            project_id = int(data["project_id"])
            mr_iid = int(data["mr_iid"])
        except (TypeError, ValueError) as exc:
            raise RequestError(f"project_id and mr_iid must be integers: {exc}") from exc
        return cls(
            project_id=project_id,
            project_path=str(data["project_path"]),
            mr_iid=mr_iid,
            source_branch=str(data.get("source_branch") or ""),
            file_paths=tuple(file_paths),
        )


def load_request(path: Path) -> ScanRequest:
    """Load a request manifest. YAML, so JSON webhook payloads load too."""
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        raise RequestError(f"Failed to read request {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise RequestError(f"Request {path} must be a mapping")
    return ScanRequest.from_dict(data)


@dataclass(frozen=True)
class ScanPaths:
    target_path: Path            # storage/12345/mr-42
    raw_result_path: Path        # scan-results/original/project-42.json
    split_result_dir: Path       # scan-results/project/mr-42
    summary_artifact_path: Path  # scan-results/project/mr-42/project_#42.xlsx


@dataclass(frozen=True)
class ScanOutcome:
    """Terminal value of one orchestration run."""

    success: bool
    split_dir: Path
    raw_path: Path
    has_findings: bool
    parser_success: bool
    summary_artifact_path: Optional[Path] = None  # None when the excel step degraded
