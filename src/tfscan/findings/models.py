"""Trivy result documents and per-file aggregation models.

The ``from_dict`` constructors accept Trivy's PascalCase JSON keys. Every
field is optional on input; a value of the wrong shape raises
:class:`SplitFileError`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping

SEVERITIES = ("CRITICAL", "HIGH", "MEDIUM", "LOW")


class SplitFileError(ValueError):
    """Raised when a result document does not match the expected schema."""


class PolicySource(str, Enum):
    BUILTIN = "builtin"
    CUSTOM = "custom"


def _mapping(value: Any, what: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise SplitFileError(f"{what} must be an object, got {type(value).__name__}")
    return value


def _list(value: Any, what: str) -> List[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise SplitFileError(f"{what} must be a list, got {type(value).__name__}")
    return value


def _int(value: Any, what: str) -> int:
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise SplitFileError(f"{what} must be an integer, got {value!r}")
    return value


def _str(value: Any) -> str:
    return "" if value is None else str(value)


@dataclass(frozen=True)
class SeveritySummary:
    """Finding counts per severity bucket. Summaries add pairwise."""

    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0

    def __post_init__(self) -> None:
        for name in ("critical", "high", "medium", "low"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} count must be non-negative")

    def __add__(self, other: "SeveritySummary") -> "SeveritySummary":
        if not isinstance(other, SeveritySummary):
            return NotImplemented
        return SeveritySummary(
            critical=self.critical + other.critical,
            high=self.high + other.high,
            medium=self.medium + other.medium,
            low=self.low + other.low,
        )

    @property
    def total(self) -> int:
        return self.critical + self.high + self.medium + self.low

    @property
    def has_violations(self) -> bool:
        return self.total > 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "CRITICAL": self.critical,
            "HIGH": self.high,
            "MEDIUM": self.medium,
            "LOW": self.low,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "SeveritySummary":
        raw = _mapping(data, "SeveritySummary")
        counts = [_int(raw.get(sev), f"SeveritySummary.{sev}") for sev in SEVERITIES]
        if any(c < 0 for c in counts):
            raise SplitFileError("SeveritySummary counts must be non-negative")
        return cls(*counts)


@dataclass(frozen=True)
class Violation:
    """One occurrence of a misconfiguration in a resource."""

    resource: str = ""
    provider: str = ""
    service: str = ""
    start_line: int = 0
    end_line: int = 0
    message: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> "Violation":
        raw = _mapping(data, "Violation")
        return cls(
            resource=_str(raw.get("Resource")),
            provider=_str(raw.get("Provider")),
            service=_str(raw.get("Service")),
            start_line=_int(raw.get("StartLine"), "Violation.StartLine"),
            end_line=_int(raw.get("EndLine"), "Violation.EndLine"),
            message=_str(raw.get("Message")),
        )


@dataclass(frozen=True)
class Misconfiguration:
    id: str = ""
    title: str = ""
    description: str = ""
    namespace: str = ""
    resolution: str = ""
    severity: str = ""
    primary_url: str = ""
    status: str = ""
    violations: List[Violation] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> "Misconfiguration":
        raw = _mapping(data, "Misconfiguration")
        return cls(
            id=_str(raw.get("ID")),
            title=_str(raw.get("Title")),
            description=_str(raw.get("Description")),
            namespace=_str(raw.get("Namespace")),
            resolution=_str(raw.get("Resolution")),
            severity=_str(raw.get("Severity")),
            primary_url=_str(raw.get("PrimaryURL")),
            status=_str(raw.get("Status")),
            violations=[
                Violation.from_dict(v)
                for v in _list(raw.get("Violations"), "Violations")
            ],
        )


@dataclass(frozen=True)
class MisconfSummary:
    successes: int = 0
    failures: int = 0


@dataclass(frozen=True)
class TargetResult:
    """Trivy's per-target entry in ``Results``."""

    target: str = ""
    klass: str = ""
    type: str = ""
    misconf_summary: MisconfSummary = field(default_factory=MisconfSummary)
    misconfigurations: List[Misconfiguration] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> "TargetResult":
        raw = _mapping(data, "Result")
        summary = _mapping(raw.get("MisconfSummary"), "MisconfSummary")
        return cls(
            target=_str(raw.get("Target")),
            klass=_str(raw.get("Class")),
            type=_str(raw.get("Type")),
            misconf_summary=MisconfSummary(
                successes=_int(summary.get("Successes"), "MisconfSummary.Successes"),
                failures=_int(summary.get("Failures"), "MisconfSummary.Failures"),
            ),
            misconfigurations=[
                Misconfiguration.from_dict(m)
                for m in _list(raw.get("Misconfigurations"), "Misconfigurations")
            ],
        )


@dataclass(frozen=True)
class ScanResultFile:
    """A raw Trivy artifact or one split result file."""

    schema_version: int = 0
    created_at: str = ""
    artifact_name: str = ""
    artifact_type: str = ""
    severity_summary: SeveritySummary = field(default_factory=SeveritySummary)
    results: List[TargetResult] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> "ScanResultFile":
        if not isinstance(data, Mapping):
            raise SplitFileError("result document must be a JSON object")
        return cls(
            schema_version=_int(data.get("SchemaVersion"), "SchemaVersion"),
            created_at=_str(data.get("CreatedAt")),
            artifact_name=_str(data.get("ArtifactName")),
            artifact_type=_str(data.get("ArtifactType")),
            severity_summary=SeveritySummary.from_dict(data.get("SeveritySummary")),
            results=[
                TargetResult.from_dict(r) for r in _list(data.get("Results"), "Results")
            ],
        )

    def misconfigurations(self) -> List[Misconfiguration]:
        """All misconfigurations across results, in document order."""
        return [m for r in self.results for m in r.misconfigurations]


@dataclass(frozen=True)
class PolicyViolation:
    title: str
    severity: str


@dataclass
class FileScanResult:
    """Aggregated outcome for one original source file."""

    file_name: str
    builtin_passed: bool = True
    custom_passed: bool = True
    builtin_violations: List[PolicyViolation] = field(default_factory=list)
    custom_violations: List[PolicyViolation] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return self.builtin_passed and self.custom_passed

    def mark_failed(self, source: PolicySource, violations: List[PolicyViolation]) -> None:
        if source is PolicySource.BUILTIN:
            self.builtin_passed = False
            self.builtin_violations.extend(violations)
        else:
            self.custom_passed = False
            self.custom_violations.extend(violations)
