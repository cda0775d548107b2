"""Loading of the documentation manifest.

The manifest is built from the upstream ``llms.txt`` index (one
``- [Title](URL): Description`` line per page) grouped through the bundled
``categories.json`` mapping. Sources are tried in order:

1. the remote ``llms.txt``; a valid result is cached with its fetch time
2. the cached manifest, if it is younger than the freshness window
3. the snapshot bundled with the package

Only when all three fail is :class:`ManifestError` raised.
"""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

import httpx
from pydantic import BaseModel, StrictStr, ValidationError, model_validator

from docshelf.config import AppConfig
from docshelf.errors import DocshelfError, ManifestError
from docshelf.ingestion.http_client import FetchOptions, create_client, fetch_with_retry
from docshelf.models import Category, DocumentSection, ResourceConfiguration
from docshelf.utils.files import safe_read_file, safe_write_file

LOGGER = logging.getLogger(__name__)

ARTIFACTS_DIR = Path(__file__).resolve().parent.parent / "artifacts"
BUNDLED_LLMS_TXT = ARTIFACTS_DIR / "llms.txt"
BUNDLED_CATEGORIES = ARTIFACTS_DIR / "categories.json"

UNCATEGORIZED = "uncategorized"
REMOTE_FETCH_OPTIONS = FetchOptions(timeout=5.0, max_retries=2, retry_delay=1.0)

_LLMS_LINE = re.compile(r"^-\s+\[([^\]]+)\]\(([^)]+)\):\s+(.+)$")


class _DocModel(BaseModel):
    title: StrictStr
    url: StrictStr
    filename: StrictStr
    description: StrictStr


class _CategoryModel(BaseModel):
    name: StrictStr
    slug: StrictStr
    description: StrictStr
    docs: List[_DocModel]


class _ManifestModel(BaseModel):
    categories: List[_CategoryModel]

    @model_validator(mode="after")
    def _unique_filenames(self) -> "_ManifestModel":
        seen: set[str] = set()
        for category in self.categories:
            for doc in category.docs:
                if doc.filename in seen:
                    raise ValueError(f"duplicate filename {doc.filename!r}")
                seen.add(doc.filename)
        return self


def validate_resource_config(data: Any) -> bool:
    """Return True when ``data`` has the manifest structure."""
    try:
        _ManifestModel.model_validate(data)
    except ValidationError:
        return False
    return True


def _to_configuration(data: Any) -> ResourceConfiguration:
    model = _ManifestModel.model_validate(data)
    return ResourceConfiguration(
        categories=[
            Category(
                name=category.name,
                slug=category.slug,
                description=category.description,
                docs=[DocumentSection(**doc.model_dump()) for doc in category.docs],
            )
            for category in model.categories
        ]
    )


def _strip_markdown_suffix(url: str) -> str:
    return url[: -len(".md")] if url.endswith(".md") else url


def parse_llms_txt(content: str) -> List[DocumentSection]:
    """Parse ``llms.txt`` lines into document sections."""
    documents: List[DocumentSection] = []
    for line in content.splitlines():
        match = _LLMS_LINE.match(line.strip())
        if not match:
            continue
        title, raw_url, description = (part.strip() for part in match.groups())
        url = _strip_markdown_suffix(raw_url)
        slug = urlparse(url).path.rstrip("/").split("/")[-1]
        if not slug:
            continue
        documents.append(
            DocumentSection(title=title, url=url, filename=f"{slug}.md", description=description)
        )
    return documents


def apply_category_mapping(documents: List[DocumentSection], mapping: Dict[str, Any]) -> Dict[str, Any]:
    """Group documents by the ``urlPatterns`` of the category mapping.

    Returns plain data so the result goes through structural validation.
    Unmatched documents land in the ``uncategorized`` category, which must
    exist in the mapping and is always emitted last.
    """
    entries = mapping.get("categories", [])
    uncategorized = next((entry for entry in entries if entry.get("slug") == UNCATEGORIZED), None)
    if uncategorized is None:
        raise ValueError('category mapping is missing the "uncategorized" category')

    url_to_slug: Dict[str, str] = {}
    for entry in entries:
        if entry.get("slug") == UNCATEGORIZED:
            continue
        for pattern in entry.get("urlPatterns", []):
            url_to_slug[_strip_markdown_suffix(pattern)] = entry["slug"]

    grouped: Dict[str, List[Dict[str, str]]] = {}
    leftovers: List[Dict[str, str]] = []
    for doc in documents:
        payload = {
            "title": doc.title,
            "url": doc.url,
            "filename": doc.filename,
            "description": doc.description,
        }
        slug = url_to_slug.get(doc.url)
        if slug is None:
            leftovers.append(payload)
        else:
            grouped.setdefault(slug, []).append(payload)

    categories = []
    for entry in entries:
        if entry.get("slug") == UNCATEGORIZED:
            continue
        docs = grouped.get(entry["slug"])
        if docs:
            categories.append(
                {"name": entry["name"], "slug": entry["slug"], "description": entry["description"], "docs": docs}
            )
    if leftovers:
        categories.append(
            {
                "name": uncategorized["name"],
                "slug": uncategorized["slug"],
                "description": uncategorized["description"],
                "docs": leftovers,
            }
        )
    return {"categories": categories}


def get_total_sections(config: ResourceConfiguration) -> int:
    return sum(len(category.docs) for category in config.categories)


class ManifestLoader:
    """Resolves the manifest from remote, cache or bundled snapshot."""

    def __init__(
        self,
        config: AppConfig,
        *,
        client: httpx.AsyncClient | None = None,
        bundled_llms_txt: Path = BUNDLED_LLMS_TXT,
        bundled_categories: Path = BUNDLED_CATEGORIES,
    ) -> None:
        self.config = config
        self.client = client
        self.bundled_llms_txt = bundled_llms_txt
        self.bundled_categories = bundled_categories

    @property
    def cache_path(self) -> Path:
        return self.config.manifest_cache_path

    @property
    def max_age(self) -> timedelta:
        return timedelta(minutes=self.config.manifest_max_age_minutes)

    async def load(self) -> ResourceConfiguration:
        try:
            return await self._load_remote()
        except (DocshelfError, ValueError, KeyError, TypeError) as remote_error:
            LOGGER.warning("Remote manifest unavailable: %s", remote_error)
            cached = self._load_cache()
            if cached is not None:
                LOGGER.info("Using cached manifest from %s", self.cache_path)
                return cached
            try:
                bundled = self._load_bundled()
            except (DocshelfError, ValueError, KeyError, TypeError) as bundled_error:
                raise ManifestError(
                    "Failed to load resource configuration. "
                    f"Remote: {remote_error}, Bundled: {bundled_error}"
                ) from bundled_error
            LOGGER.info("Using bundled manifest snapshot")
            return bundled

    async def _load_remote(self) -> ResourceConfiguration:
        owns_client = self.client is None
        client = self.client or create_client(timeout=REMOTE_FETCH_OPTIONS.timeout)
        try:
            result = await fetch_with_retry(client, self.config.manifest_url, REMOTE_FETCH_OPTIONS)
        finally:
            if owns_client:
                await client.aclose()

        if not result.success or result.content is None:
            raise DocshelfError(result.error or "Failed to fetch manifest")

        documents = parse_llms_txt(result.content.decode("utf-8", errors="replace"))
        if not documents:
            raise ValueError("remote manifest lists no documents")
        data = apply_category_mapping(documents, self._load_mapping())
        configuration = _to_configuration(data)
        self._write_cache(data)
        return configuration

    def _load_mapping(self) -> Dict[str, Any]:
        try:
            return json.loads(safe_read_file(self.bundled_categories))
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid category mapping: {exc}") from exc

    def _write_cache(self, data: Dict[str, Any]) -> None:
        payload = {"fetched_at": datetime.now(timezone.utc).isoformat(), **data}
        try:
            safe_write_file(self.cache_path, json.dumps(payload, indent=2))
        except DocshelfError as exc:
            LOGGER.warning("Unable to cache manifest: %s", exc)

    def _load_cache(self) -> Optional[ResourceConfiguration]:
        if not self.cache_path.exists():
            return None
        try:
            payload = json.loads(safe_read_file(self.cache_path))
            fetched_at = datetime.fromisoformat(payload["fetched_at"])
            if datetime.now(timezone.utc) - fetched_at > self.max_age:
                LOGGER.debug("Manifest cache is stale (fetched %s)", fetched_at.isoformat())
                return None
            return _to_configuration({"categories": payload.get("categories")})
        except (DocshelfError, ValueError, KeyError, TypeError) as exc:
            LOGGER.warning("Ignoring invalid manifest cache %s: %s", self.cache_path, exc)
            return None

    def _load_bundled(self) -> ResourceConfiguration:
        documents = parse_llms_txt(safe_read_file(self.bundled_llms_txt))
        return _to_configuration(apply_category_mapping(documents, self._load_mapping()))
