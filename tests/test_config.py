"""Tests for config loading, validation, and env var overrides."""

from pathlib import Path

import pytest

from tfscan.config.loader import ConfigError, load_config


class TestConfigLoading:
    def test_default_config(self, tmp_path: Path):
        cfg = load_config(tmp_path)
        assert cfg.tools.trivy_path == "./bin/trivy"
        assert cfg.tools.check_namespace == "user"
        assert cfg.tools.timeout_seconds is None
        assert cfg.paths.scan_results == "./scan-results"
        assert cfg.report.naming == "auto"
        assert cfg.output.format == "markdown"

    def test_custom_toml(self, tmp_path: Path):
        (tmp_path / ".tfscan.toml").write_text(
            'version = "1.0"\n'
            '[tools]\n'
            'trivy_path = "/opt/trivy/trivy"\n'
            'timeout = 300\n'
            '[report]\n'
            'naming = "bracket"\n'
        )
        cfg = load_config(tmp_path)
        assert cfg.tools.trivy_path == "/opt/trivy/trivy"
        assert cfg.tools.timeout_seconds == 300
        assert cfg.report.naming == "bracket"

    def test_unknown_keys_ignored(self, tmp_path: Path):
        (tmp_path / ".tfscan.toml").write_text('[paths]\nstorage = "/data"\ncolour = "blue"\n')
        cfg = load_config(tmp_path)
        assert cfg.paths.storage == "/data"

    def test_config_override_path(self, tmp_path: Path):
        custom = tmp_path / "custom.toml"
        custom.write_text('[output]\nformat = "json"\n')
        cfg = load_config(tmp_path, config_override=str(custom))
        assert cfg.output.format == "json"

    def test_missing_override_raises(self, tmp_path: Path):
        with pytest.raises(ConfigError):
            load_config(tmp_path, config_override="/nonexistent/config.toml")

    def test_invalid_toml_raises(self, tmp_path: Path):
        (tmp_path / ".tfscan.toml").write_text("this is not valid [toml")
        with pytest.raises(ConfigError):
            load_config(tmp_path)

    def test_invalid_naming_raises(self, tmp_path: Path):
        (tmp_path / ".tfscan.toml").write_text('[report]\nnaming = "suffix"\n')
        with pytest.raises(ConfigError):
            load_config(tmp_path)

    def test_negative_timeout_raises(self, tmp_path: Path):
        (tmp_path / ".tfscan.toml").write_text("[tools]\ntimeout = -1\n")
        with pytest.raises(ConfigError):
            load_config(tmp_path)

    def test_section_must_be_table(self, tmp_path: Path):
        (tmp_path / ".tfscan.toml").write_text('tools = "trivy"\n')
        with pytest.raises(ConfigError):
            load_config(tmp_path)


class TestEnvVarOverrides:
    def test_tool_paths(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("TRIVY_BIN_PATH", "/usr/local/bin/trivy")
        monkeypatch.setenv("PARSER_BIN_PATH", "/usr/local/bin/trivy-parser")
        monkeypatch.setenv("CUSTOM_POLICIES_PATH", "/etc/policies")
        cfg = load_config(tmp_path)
        assert cfg.tools.trivy_path == "/usr/local/bin/trivy"
        assert cfg.tools.parser_path == "/usr/local/bin/trivy-parser"
        assert cfg.tools.custom_policies == "/etc/policies"

    def test_storage_paths(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("STORAGE_PATH", "/srv/storage")
        monkeypatch.setenv("SCAN_RESULTS_PATH", "/srv/results")
        cfg = load_config(tmp_path)
        assert cfg.paths.storage == "/srv/storage"
        assert cfg.paths.scan_results == "/srv/results"

    def test_env_beats_file(self, tmp_path: Path, monkeypatch):
        (tmp_path / ".tfscan.toml").write_text('[paths]\nstorage = "/from-file"\n')
        monkeypatch.setenv("STORAGE_PATH", "/from-env")
        assert load_config(tmp_path).paths.storage == "/from-env"

    def test_format_override(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("TFSCAN_FORMAT", "json")
        assert load_config(tmp_path).output.format == "json"

    def test_invalid_env_ignored(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("TFSCAN_NAMING", "not_a_mode")
        assert load_config(tmp_path).report.naming == "auto"
