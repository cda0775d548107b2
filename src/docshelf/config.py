"""Application configuration defaults."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from docshelf.errors import ConfigError

DEFAULT_MANIFEST_URL = "https://code.claude.com/docs/llms.txt"
CONFIG_FILENAME = "config.json"


def _get_default_base_dir() -> Path:
    """Data directory, honouring ``DOCSHELF_HOME`` when set."""
    override = os.environ.get("DOCSHELF_HOME")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".docshelf"


def expand_path(path: str | Path) -> Path:
    return Path(path).expanduser()


@dataclass(slots=True)
class AppConfig:
    base_dir: Path | None = None
    manifest_url: str = DEFAULT_MANIFEST_URL
    manifest_max_age_minutes: int = 60
    timeout: float = 30.0
    max_retries: int = 3
    retry_delay: float = 2.0
    concurrency: int = 5
    log_level: str = "info"
    log_file: Path | None = None
    max_log_size: int = 10 * 1024 * 1024
    max_log_files: int = 5

    def __post_init__(self) -> None:
        if self.base_dir is None:
            self.base_dir = _get_default_base_dir()
        self.base_dir = expand_path(self.base_dir)
        if self.log_file is not None:
            # Bare names live under logs/.
            self.log_file = expand_path(self.log_file)
            if not self.log_file.is_absolute():
                self.log_file = self.logs_dir / self.log_file

    @property
    def docs_dir(self) -> Path:
        return self.base_dir / "docs"

    @property
    def pending_dir(self) -> Path:
        return self.base_dir / ".pending"

    @property
    def cache_dir(self) -> Path:
        return self.base_dir / "cache"

    @property
    def logs_dir(self) -> Path:
        return self.base_dir / "logs"

    @property
    def manifest_cache_path(self) -> Path:
        return self.cache_dir / "manifest.json"

    @property
    def changelog_path(self) -> Path:
        return self.base_dir / "changelog.jsonl"

    @property
    def last_update_path(self) -> Path:
        return self.base_dir / ".last-update"

    @property
    def missing_docs_path(self) -> Path:
        return self.base_dir / ".missing-docs"


class ConfigFile(BaseModel):
    """Schema of ``config.json``; every key is optional."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    base_dir: Optional[str] = Field(default=None, alias="baseDir")
    manifest_url: str = Field(default=DEFAULT_MANIFEST_URL, alias="manifestUrl")
    manifest_max_age_minutes: int = Field(default=60, gt=0, alias="manifestMaxAgeMinutes")
    timeout: float = Field(default=30.0, gt=0)
    max_retries: int = Field(default=3, ge=0, alias="maxRetries")
    retry_delay: float = Field(default=2.0, ge=0, alias="retryDelay")
    concurrency: int = Field(default=5, gt=0)
    log_level: Literal["error", "warn", "info", "debug"] = Field(default="info", alias="logLevel")
    log_file: Optional[str] = Field(default=None, alias="logFile")
    max_log_size: int = Field(default=10 * 1024 * 1024, gt=0, alias="maxLogSize")
    max_log_files: int = Field(default=5, gt=0, alias="maxLogFiles")


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load ``config.json`` and merge it with defaults.

    A missing file yields the defaults. Invalid JSON or values that fail
    validation raise :class:`ConfigError`.
    """
    path = config_path if config_path is not None else _get_default_base_dir() / CONFIG_FILENAME
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except FileNotFoundError:
        return AppConfig()
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in config file {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Unable to read config file {path}: {exc}") from exc

    try:
        parsed = ConfigFile.model_validate(raw)
    except ValidationError as exc:
        issues = ", ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
        )
        raise ConfigError(f"Invalid configuration: {issues}") from exc

    return AppConfig(
        base_dir=Path(parsed.base_dir) if parsed.base_dir else None,
        manifest_url=parsed.manifest_url,
        manifest_max_age_minutes=parsed.manifest_max_age_minutes,
        timeout=parsed.timeout,
        max_retries=parsed.max_retries,
        retry_delay=parsed.retry_delay,
        concurrency=parsed.concurrency,
        log_level=parsed.log_level,
        log_file=Path(parsed.log_file) if parsed.log_file else None,
        max_log_size=parsed.max_log_size,
        max_log_files=parsed.max_log_files,
    )
