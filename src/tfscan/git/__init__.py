"""Git-backed file source for staging merge request files."""

from tfscan.git.adapter import GitError, GitFileSource, get_repo_root, show_file

__all__ = [
    "GitError",
    "GitFileSource",
    "get_repo_root",
    "show_file",
]
