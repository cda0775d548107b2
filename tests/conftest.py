"""Shared fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from docshelf.config import AppConfig
from docshelf.models import Category, DocumentSection, ResourceConfiguration

BASE_URL = "https://docs.example.com/en"


def make_doc(slug: str) -> DocumentSection:
    return DocumentSection(
        title=slug.replace("-", " ").title(),
        url=f"{BASE_URL}/{slug}",
        filename=f"{slug}.md",
        description=f"About {slug}",
    )


def make_manifest(*slugs: str) -> ResourceConfiguration:
    return ResourceConfiguration(
        categories=[Category("Docs", "docs", "All documents", [make_doc(slug) for slug in slugs])]
    )


@pytest.fixture
def config(tmp_path: Path) -> AppConfig:
    return AppConfig(base_dir=tmp_path / "shelf", retry_delay=0, max_retries=1, concurrency=2)
