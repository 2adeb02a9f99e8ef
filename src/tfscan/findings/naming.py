"""Split result filename encodings.

trivy-parser writes one file per (source file, policy source) pair. The
source path is stored in the filename with ``/`` replaced by ``%`` and the
``.tf`` extension dropped. Two conventions mark the policy source:

- ``prefix``:  ``builtin-modules%vpc%main.json`` / ``custom-main.json``
- ``bracket``: ``[TV]modules%vpc%main.json`` / ``[KB]main.json``

A directory only ever holds one convention; ``auto`` locks onto whichever
one it sees first.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from tfscan.findings.models import PolicySource

PATH_SEPARATOR_TOKEN = "%"
SPLIT_SUFFIX = ".json"

_TOKENS = {
    "prefix": {
        PolicySource.BUILTIN: "builtin-",
        PolicySource.CUSTOM: "custom-",
    },
    "bracket": {
        PolicySource.BUILTIN: "[TV]",
        PolicySource.CUSTOM: "[KB]",
    },
}

CONVENTIONS = tuple(_TOKENS)


@dataclass(frozen=True)
class SplitName:
    convention: str
    source: PolicySource
    original_file: str


def decode(file_name: str, convention: str, extension: str = ".tf") -> Optional[SplitName]:
    """Decode *file_name* under one convention. ``None`` if it does not match."""
    if not file_name.endswith(SPLIT_SUFFIX):
        return None
    for source, token in _TOKENS[convention].items():
        if file_name.startswith(token):
            stem = file_name[len(token):-len(SPLIT_SUFFIX)]
            if not stem:
                return None
            original = stem.replace(PATH_SEPARATOR_TOKEN, "/") + extension
            return SplitName(convention, source, original)
    return None


def decode_any(file_name: str, extension: str = ".tf") -> Optional[SplitName]:
    for convention in CONVENTIONS:
        decoded = decode(file_name, convention, extension)
        if decoded is not None:
            return decoded
    return None


def encode(original_file: str, source: PolicySource, convention: str, extension: str = ".tf") -> str:
    """Inverse of :func:`decode`, as trivy-parser names its output."""
    stem = original_file
    if extension and stem.endswith(extension):
        stem = stem[: -len(extension)]
    return _TOKENS[convention][source] + stem.replace("/", PATH_SEPARATOR_TOKEN) + SPLIT_SUFFIX


def detect_convention(file_names: Iterable[str], extension: str = ".tf") -> Optional[str]:
    """Convention of the first recognizable name in sorted order."""
    for name in sorted(file_names):
        decoded = decode_any(name, extension)
        if decoded is not None:
            return decoded.convention
    return None
