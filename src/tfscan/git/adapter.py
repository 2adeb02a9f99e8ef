"""Git subprocess wrapper: repo root and file contents at a ref."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Optional

from tfscan.scanner.staging import FetchError


class GitError(FetchError):
    """Raised when git is unavailable or returns an unexpected error."""


def _run_git(args: list[str], cwd: Path, timeout: int = 30) -> bytes:
    """Run a git command and return raw stdout. Raises GitError on failure."""
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=cwd,
            capture_output=True,
            timeout=timeout,
        )
    except FileNotFoundError:
        raise GitError("git is not installed or not on PATH")
    except subprocess.TimeoutExpired:
        raise GitError(f"git command timed out after {timeout}s: git {' '.join(args)}")

    if result.returncode != 0:
        stderr = result.stderr.decode("utf-8", errors="replace").strip()
        raise GitError(f"git error: {stderr or f'exit code {result.returncode}'}")
    return result.stdout


def get_repo_root(cwd: Optional[Path] = None) -> Path:
    """Return the root of the git repository containing *cwd*."""
    cwd = cwd or Path.cwd()
    out = _run_git(["rev-parse", "--show-toplevel"], cwd=cwd)
    return Path(out.decode("utf-8").strip())


def show_file(repo_root: Path, ref: str, file_path: str) -> bytes:
    """Return the contents of *file_path* at *ref* (``git show ref:path``)."""
    return _run_git(["show", f"{ref}:{file_path}"], cwd=repo_root)


class GitFileSource:
    """FileSource backed by a local clone; *ref* is usually the MR source branch."""

    def __init__(self, repo_root: Path, default_ref: str = "HEAD") -> None:
        self.repo_root = Path(repo_root)
        self.default_ref = default_ref

    def fetch(self, project_path: str, file_path: str, ref: str) -> bytes:
        return show_file(self.repo_root, ref or self.default_ref, file_path)
