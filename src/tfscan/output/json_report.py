"""JSON reporter for CI pipelines and webhook callers."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from tfscan.findings.aggregator import Aggregation
from tfscan.scanner.models import ScanOutcome


def aggregation_to_dict(agg: Aggregation) -> Dict[str, Any]:
    files_list: List[Dict[str, Any]] = []
    for name in agg.sorted_files():
        f = agg.files[name]
        files_list.append({
            "file": f.file_name,
            "passed": f.passed,
            "builtin_passed": f.builtin_passed,
            "custom_passed": f.custom_passed,
            "custom_violations": [
                {"title": v.title, "severity": v.severity} for v in f.custom_violations
            ],
            "builtin_violations": [
                {"title": v.title, "severity": v.severity} for v in f.builtin_violations
            ],
        })

    return {
        "severity_summary": agg.combined_total.to_dict(),
        "policy_summary": {
            "builtin": agg.builtin_total.total,
            "custom": agg.custom_total.total,
        },
        "files": files_list,
        **({"skipped": agg.skipped} if agg.skipped else {}),
    }


def outcome_to_dict(outcome: ScanOutcome) -> Dict[str, Any]:
    return {
        "success": outcome.success,
        "has_findings": outcome.has_findings,
        "parser_success": outcome.parser_success,
        "raw_path": str(outcome.raw_path),
        "split_dir": str(outcome.split_dir),
        "summary_artifact": (
            str(outcome.summary_artifact_path) if outcome.summary_artifact_path else None
        ),
    }


def to_dict(
    message: str,
    outcome: Optional[ScanOutcome] = None,
    agg: Optional[Aggregation] = None,
) -> Dict[str, Any]:
    """Convert a report into a JSON-serialisable dict."""
    return {
        "version": "1.0",
        **({"outcome": outcome_to_dict(outcome)} if outcome else {}),
        "summary": aggregation_to_dict(agg) if agg else None,
        "comment": message,
    }


def render(
    message: str,
    outcome: Optional[ScanOutcome] = None,
    agg: Optional[Aggregation] = None,
) -> str:
    """Return formatted JSON string."""
    return json.dumps(to_dict(message, outcome, agg), indent=2, ensure_ascii=False)
