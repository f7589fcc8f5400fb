"""Tests for configuration loading."""

from pathlib import Path

import pytest
from cscan.config import ScanConfig, get_config_file_path, load_config


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Keep the user's environment and home rc file out of the tests."""
    for name in ("CSCAN_MODE", "CSCAN_FLOW_SENSITIVE", "CSCAN_STRICT_PARSE", "CSCAN_VERBOSE",
                 "CSCAN_DEFAULT_DIRECTORY", "CSCAN_SUPPRESSIONS_FILE"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(Path, "home", lambda: tmp_path / "home")
    monkeypatch.chdir(tmp_path)


class TestScanConfig:
    """Test ScanConfig defaults and sources."""

    def test_defaults(self):
        config = ScanConfig()
        assert config.mode == "auto"
        assert config.flow_sensitive is False
        assert config.strict_parse is True
        assert config.verbose is False
        assert config.default_directory == Path("samples")
        assert config.suppressions_file is None

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("CSCAN_MODE", "heuristic")
        monkeypatch.setenv("CSCAN_FLOW_SENSITIVE", "true")
        config = ScanConfig()
        assert config.mode == "heuristic"
        assert config.flow_sensitive is True

    def test_invalid_mode_rejected(self, monkeypatch):
        monkeypatch.setenv("CSCAN_MODE", "fast")
        with pytest.raises(ValueError):
            ScanConfig()


class TestLoadConfig:
    """Test rc file lookup."""

    def test_config_file_path(self, tmp_path):
        assert get_config_file_path(tmp_path) == tmp_path / ".cscanrc"

    def test_directory_rc_file(self, tmp_path):
        project = tmp_path / "project"
        project.mkdir()
        (project / ".cscanrc").write_text("CSCAN_MODE=heuristic\nCSCAN_VERBOSE=true\n")
        config = load_config(directory=project)
        assert config.mode == "heuristic"
        assert config.verbose is True

    def test_explicit_config_path(self, tmp_path):
        rc = tmp_path / "custom.env"
        rc.write_text("CSCAN_DEFAULT_DIRECTORY=src\n")
        config = load_config(config_path=rc)
        assert config.default_directory == Path("src")

    def test_home_rc_file(self, tmp_path):
        home = tmp_path / "home"
        home.mkdir()
        (home / ".cscanrc").write_text("CSCAN_STRICT_PARSE=false\n")
        assert load_config().strict_parse is False

    def test_no_rc_file(self, tmp_path):
        assert load_config(directory=tmp_path / "nowhere").mode == "auto"
