"""Shared test fixtures: Trivy documents, split directories, fake tools."""

from __future__ import annotations

import json
import subprocess
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

import pytest

from tfscan.config.schema import TfScanConfig
from tfscan.scanner.models import ScanRequest
from tfscan.scanner.orchestrator import Scanner

SEVERITIES = ("CRITICAL", "HIGH", "MEDIUM", "LOW")

_ENV_OVERRIDES = (
    "TRIVY_BIN_PATH",
    "PARSER_BIN_PATH",
    "CUSTOM_POLICIES_PATH",
    "STORAGE_PATH",
    "SCAN_RESULTS_PATH",
    "TFSCAN_NAMING",
    "TFSCAN_FORMAT",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in _ENV_OVERRIDES:
        monkeypatch.delenv(name, raising=False)


def build_doc(findings: Optional[List[Tuple[str, str]]] = None, target: str = "main.tf") -> dict:
    """A Trivy config-scan document with *findings* as (title, severity) pairs."""
    findings = findings or []
    counts = {sev: 0 for sev in SEVERITIES}
    for _, sev in findings:
        counts[sev] += 1
    return {
        "SchemaVersion": 2,
        "CreatedAt": "2026-10-19T09:00:00Z",
        "ArtifactName": ".",
        "ArtifactType": "filesystem",
        "SeveritySummary": counts,
        "Results": [
            {
                "Target": target,
                "Class": "config",
                "Type": "terraform",
                "MisconfSummary": {"Successes": 4, "Failures": len(findings)},
                "Misconfigurations": [
                    {
                        "ID": f"USR-{i:03d}",
                        "Title": title,
                        "Description": f"{title} description",
                        "Namespace": "user.terraform",
                        "Severity": sev,
                        "Status": "FAIL",
                        "Violations": [
                            {
                                "Resource": "aws_s3_bucket.logs",
                                "Provider": "AWS",
                                "Service": "s3",
                                "StartLine": 1,
                                "EndLine": 9,
                                "Message": title,
                            }
                        ],
                    }
                    for i, (title, sev) in enumerate(findings, start=1)
                ],
            }
        ],
    }


@pytest.fixture
def trivy_doc() -> Callable[..., dict]:
    return build_doc


@pytest.fixture
def write_split() -> Callable[[Path, str, dict], Path]:
    """Write one split result file into a directory."""

    def _write(directory: Path, name: str, doc: dict) -> Path:
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / name
        path.write_text(json.dumps(doc, indent=2), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def scan_request() -> ScanRequest:
    return ScanRequest(
        project_id=12345,
        project_path="platform/infra-live",
        mr_iid=42,
        source_branch="feature/s3",
        file_paths=("main.tf", "modules/vpc/network.tf"),
    )


def _script(path: Path, body: str) -> Path:
    path.write_text("#!/bin/sh\n" + body, encoding="utf-8")
    path.chmod(0o755)
    return path


class FakeTools:
    """Builds shell-script stand-ins for trivy and trivy-parser under tmp_path."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self.bin_dir = root / "bin"
        self.bin_dir.mkdir()
        self.policies = root / "custom-policies"
        self.policies.mkdir()
        self.split_source = root / "split-fixtures"
        self.split_source.mkdir()
        self.log = root / "calls.log"
        self.storage = root / "storage"
        self.results = root / "scan-results"

    def trivy(self, raw_doc: Optional[dict] = None, exit_code: int = 0) -> Path:
        raw = json.dumps(raw_doc if raw_doc is not None else build_doc(), indent=2)
        return _script(self.bin_dir / "trivy", f"""\
printf 'trivy %s\\n' "$*" >> "{self.log}"
if [ {exit_code} -ne 0 ]; then exit {exit_code}; fi
out=""
while [ $# -gt 0 ]; do
  case "$1" in
    -o) out="$2"; shift ;;
  esac
  shift
done
cat > "$out" <<'JSON'
{raw}
JSON
""")

    def parser(
        self,
        split_files: Optional[Dict[str, dict]] = None,
        split_exit: int = 0,
        excel_exit: int = 0,
    ) -> Path:
        for name, doc in (split_files or {}).items():
            (self.split_source / name).write_text(json.dumps(doc), encoding="utf-8")
        return _script(self.bin_dir / "trivy-parser", f"""\
printf 'trivy-parser %s\\n' "$*" >> "{self.log}"
out=""
mode=""
while [ $# -gt 0 ]; do
  case "$1" in
    -output) out="$2"; shift ;;
    -excel) mode="excel" ;;
    -preprocess) mode="split" ;;
  esac
  shift
done
if [ "$mode" = "excel" ]; then
  if [ {excel_exit} -ne 0 ]; then exit {excel_exit}; fi
  printf 'xlsx' > "$out"
else
  if [ {split_exit} -ne 0 ]; then exit {split_exit}; fi
  for f in "{self.split_source}"/*; do
    [ -e "$f" ] && cp "$f" "$out"
  done
fi
exit 0
""")

    def config(self) -> TfScanConfig:
        cfg = TfScanConfig()
        cfg.tools.trivy_path = str(self.bin_dir / "trivy")
        cfg.tools.parser_path = str(self.bin_dir / "trivy-parser")
        cfg.tools.custom_policies = str(self.policies)
        cfg.paths.storage = str(self.storage)
        cfg.paths.scan_results = str(self.results)
        return cfg

    def scanner(self) -> Scanner:
        return Scanner.from_config(self.config())

    def calls(self) -> List[str]:
        if not self.log.exists():
            return []
        return self.log.read_text(encoding="utf-8").splitlines()

    def stage_target(self, request: ScanRequest) -> Path:
        """Create the downloaded-files directory the scan step expects."""
        target = self.storage / str(request.project_id) / f"mr-{request.mr_iid}"
        target.mkdir(parents=True)
        for rel in request.file_paths:
            path = target / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text('resource "aws_s3_bucket" "logs" {}\n', encoding="utf-8")
        return target


@pytest.fixture
def fake_tools(tmp_path: Path) -> FakeTools:
    return FakeTools(tmp_path)


@pytest.fixture
def tmp_git_repo(tmp_path: Path) -> Path:
    """Create a temporary git repository with one committed Terraform file."""
    repo = tmp_path / "repo"
    repo.mkdir()
    subprocess.run(["git", "init", str(repo)], capture_output=True, check=True)
    subprocess.run(
        ["git", "config", "user.email", "test@test.com"],
        cwd=repo, capture_output=True, check=True,
    )
    subprocess.run(
        ["git", "config", "user.name", "Test"],
        cwd=repo, capture_output=True, check=True,
    )
    (repo / "modules" / "vpc").mkdir(parents=True)
    (repo / "main.tf").write_text('resource "aws_s3_bucket" "logs" {}\n')
    (repo / "modules" / "vpc" / "network.tf").write_text('resource "aws_vpc" "main" {}\n')
    subprocess.run(["git", "add", "."], cwd=repo, capture_output=True, check=True)
    subprocess.run(
        ["git", "commit", "-m", "init"],
        cwd=repo, capture_output=True, check=True,
    )
    return repo
