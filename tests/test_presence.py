"""Tests for the raw-artifact findings probe."""

import json
from pathlib import Path

import pytest

from tfscan.scanner.presence import MIN_ARTIFACT_BYTES, check_raw_artifact, has_findings


def _padded(body: str) -> bytes:
    padding = " " * MIN_ARTIFACT_BYTES
    return ('{"ArtifactName":"' + padding + '",' + body + "}").encode()


class TestHasFindings:
    def test_empty_list(self):
        assert has_findings(_padded('"Misconfigurations":[]')) is False

    def test_non_empty_list(self):
        assert has_findings(_padded('"Misconfigurations":[{"ID":"x"}]')) is True

    def test_whitespace_inside_empty_list(self):
        assert has_findings(_padded('"Misconfigurations": [ \n\t\r ]')) is False

    def test_key_absent(self):
        assert has_findings(_padded('"Results":[{"Target":"main.tf"}]')) is False

    def test_no_bracket_after_key(self):
        assert has_findings(_padded('"Misconfigurations": null')) is False

    def test_short_content_is_clean(self):
        short = b'{"Misconfigurations":[{"ID":"x"}]}'
        assert len(short) < MIN_ARTIFACT_BYTES
        assert has_findings(short) is False

    def test_empty_bytes(self):
        assert has_findings(b"") is False

    def test_only_first_occurrence_counts(self):
        body = '"Misconfigurations":[], "Other": {"Misconfigurations":[{"ID":"y"}]}'
        assert has_findings(_padded(body)) is False

    def test_truncated_after_bracket(self):
        content = _padded('"Misconfigurations":[')[:-1]
        assert has_findings(content) is True

    @pytest.mark.parametrize("body", ['"Misconfigurations":[]', '"Misconfigurations":[{"ID":"x"}]'])
    def test_idempotent(self, body):
        content = _padded(body)
        assert has_findings(content) == has_findings(content)

    def test_pretty_printed_trivy_document(self, trivy_doc):
        clean = json.dumps(trivy_doc([]), indent=2).encode()
        dirty = json.dumps(trivy_doc([("Bucket public", "HIGH")]), indent=2).encode()
        assert has_findings(clean) is False
        assert has_findings(dirty) is True


class TestCheckRawArtifact:
    def test_reads_file(self, tmp_path: Path):
        raw = tmp_path / "raw.json"
        raw.write_bytes(_padded('"Misconfigurations":[{"ID":"x"}]'))
        assert check_raw_artifact(raw) is True

    def test_missing_file_raises(self, tmp_path: Path):
        with pytest.raises(OSError):
            check_raw_artifact(tmp_path / "missing.json")
