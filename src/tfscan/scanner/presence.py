"""Cheap "does this Trivy artifact contain any finding?" probe.

Looks at raw bytes instead of parsing: the artifact can be large and the
answer is a single boolean. Counts always come from the aggregator.
"""

from __future__ import annotations

from pathlib import Path

FINDINGS_KEY = b'"Misconfigurations"'
MIN_ARTIFACT_BYTES = 50

_WHITESPACE = b" \t\r\n"


def has_findings(content: bytes) -> bool:
    """True if the first ``"Misconfigurations"`` list is non-empty."""
    if len(content) < MIN_ARTIFACT_BYTES:
        return False

    idx = content.find(FINDINGS_KEY)
    if idx == -1:
        return False

    bracket = content.find(b"[", idx + len(FINDINGS_KEY))
    if bracket == -1:
        return False

    rest = content[bracket + 1:].lstrip(_WHITESPACE)
    return not rest.startswith(b"]")


def check_raw_artifact(path: Path) -> bool:
    """Run :func:`has_findings` on a file. Raises ``OSError`` if unreadable."""
    return has_findings(Path(path).read_bytes())
