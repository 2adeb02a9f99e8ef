"""Markdown merge-request comment."""

from __future__ import annotations

from typing import List

from tfscan.findings.aggregator import Aggregation
from tfscan.findings.models import FileScanResult, SeveritySummary

NO_FINDINGS_MESSAGE = (
    "## 🎉 Vulnerability scan complete\n\n"
    "**No security issues found.** All scanned files passed every security policy."
)
PARSE_FAILED_MESSAGE = (
    "File scan completed.\n\n"
    "⚠️ Failed to parse the scan results. Please check the raw scan result file."
)
SUMMARY_FAILED_MESSAGE = (
    "File scan completed.\n\n"
    "⚠️ Failed to generate the scan summary. "
    "Please check the scan result files for details."
)

FENCE = "```"


def _file_list_section(sorted_files: List[str]) -> List[str]:
    lines = ["**[ Scanned files ]**"]
    lines.extend(f"- `{name}`" for name in sorted_files)
    lines.append("")
    return lines


def _summary_section(builtin: SeveritySummary, custom: SeveritySummary) -> List[str]:
    combined = custom + builtin
    return [
        "---",
        "**[ Scan Summary ]**",
        FENCE,
        "Severity Summary:",
        f"- CRITICAL: {combined.critical}, HIGH: {combined.high}, "
        f"MEDIUM: {combined.medium}, LOW: {combined.low}",
        "",
        "Policy Summary:",
        f"- Trivy Built-in Policy: {builtin.total}, Custom Policy: {custom.total}",
        "",
        FENCE,
        "",
    ]


def _violation_block(result: FileScanResult) -> List[str]:
    lines = [f"**`{result.file_name}`:**", FENCE, "Violated Policies:"]
    # custom policies first
    lines.extend(f"- {v.title}" for v in result.custom_violations)
    lines.extend(f"- {v.title}" for v in result.builtin_violations)
    lines.extend([FENCE, ""])
    return lines


def render(agg: Aggregation) -> str:
    """Render the full comment: file list, summary, then one block per failing file."""
    sorted_files = agg.sorted_files()
    lines: List[str] = []
    lines.extend(_file_list_section(sorted_files))
    lines.extend(_summary_section(agg.builtin_total, agg.custom_total))
    for name in sorted_files:
        result = agg.files[name]
        if not result.passed:
            lines.extend(_violation_block(result))
    return "\n".join(lines) + "\n"
