"""Tests for application configuration."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from docshelf.config import DEFAULT_MANIFEST_URL, AppConfig, load_config
from docshelf.errors import ConfigError


class TestAppConfig:
    """Test AppConfig dataclass."""

    def test_default_config(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        """Should use ~/.docshelf when no override is set."""
        monkeypatch.delenv("DOCSHELF_HOME", raising=False)
        monkeypatch.setenv("HOME", str(tmp_path))

        config = AppConfig()

        assert config.base_dir == tmp_path / ".docshelf"
        assert config.manifest_url == DEFAULT_MANIFEST_URL
        assert config.manifest_max_age_minutes == 60
        assert config.timeout == 30.0
        assert config.max_retries == 3
        assert config.retry_delay == 2.0
        assert config.concurrency == 5

    def test_home_override(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("DOCSHELF_HOME", str(tmp_path / "data"))

        assert AppConfig().base_dir == tmp_path / "data"

    def test_derived_paths(self, tmp_path: Path) -> None:
        config = AppConfig(base_dir=tmp_path)

        assert config.docs_dir == tmp_path / "docs"
        assert config.pending_dir == tmp_path / ".pending"
        assert config.manifest_cache_path == tmp_path / "cache" / "manifest.json"
        assert config.changelog_path == tmp_path / "changelog.jsonl"
        assert config.last_update_path == tmp_path / ".last-update"
        assert config.missing_docs_path == tmp_path / ".missing-docs"

    def test_tilde_expanded(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("HOME", str(tmp_path))

        config = AppConfig(base_dir=Path("~/shelf"), log_file=Path("~/shelf.log"))

        assert config.base_dir == tmp_path / "shelf"
        assert config.log_file == tmp_path / "shelf.log"

    def test_relative_log_file_under_logs(self, tmp_path: Path) -> None:
        config = AppConfig(base_dir=tmp_path, log_file=Path("docshelf.log"))

        assert config.log_file == tmp_path / "logs" / "docshelf.log"


class TestLoadConfig:
    """Test load_config."""

    def test_missing_file_gives_defaults(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DOCSHELF_HOME", str(tmp_path))

        config = load_config(tmp_path / "config.json")

        assert config.base_dir == tmp_path
        assert config.concurrency == 5

    def test_values_applied(self, tmp_path: Path) -> None:
        path = tmp_path / "config.json"
        path.write_text(
            json.dumps(
                {
                    "baseDir": str(tmp_path / "shelf"),
                    "concurrency": 2,
                    "maxRetries": 1,
                    "retryDelay": 0.5,
                    "logLevel": "debug",
                }
            )
        )

        config = load_config(path)

        assert config.base_dir == tmp_path / "shelf"
        assert config.concurrency == 2
        assert config.max_retries == 1
        assert config.retry_delay == 0.5
        assert config.log_level == "debug"

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "config.json"
        path.write_text("{not json")

        with pytest.raises(ConfigError, match="Invalid JSON"):
            load_config(path)

    def test_invalid_values(self, tmp_path: Path) -> None:
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"concurrency": 0}))

        with pytest.raises(ConfigError, match="concurrency"):
            load_config(path)

    def test_unknown_key_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"colour": "blue"}))

        with pytest.raises(ConfigError, match="Invalid configuration"):
            load_config(path)
