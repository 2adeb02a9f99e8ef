"""Trivy IaC scan orchestration and merge-request report aggregation."""

__version__ = "1.0.0"
