"""Concurrent documentation downloads with retries and transformation."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

import httpx

from docshelf.ingestion.http_client import FetchOptions, create_client, fetch_with_retry
from docshelf.ingestion.markdown import transform_markdown
from docshelf.models import (
    DocumentSection,
    DownloadProgress,
    DownloadResult,
    DownloadSummary,
    ResourceConfiguration,
)

LOGGER = logging.getLogger(__name__)

MARKDOWN_SUFFIX = ".md"

ProgressCallback = Callable[[DownloadProgress], None]


@dataclass(slots=True)
class DownloadOptions:
    timeout: float = 30.0
    max_retries: int = 3
    retry_delay: float = 2.0
    concurrency: int = 5
    on_progress: Optional[ProgressCallback] = None

    def fetch_options(self) -> FetchOptions:
        return FetchOptions(
            timeout=self.timeout,
            max_retries=self.max_retries,
            retry_delay=self.retry_delay,
            exponential_backoff=True,
        )


async def download_document(
    client: httpx.AsyncClient,
    doc: DocumentSection,
    options: DownloadOptions | None = None,
) -> DownloadResult:
    """Fetch and transform one document. Failures are returned, not raised."""
    opts = options or DownloadOptions()
    url = f"{doc.url}{MARKDOWN_SUFFIX}"
    result = await fetch_with_retry(client, url, opts.fetch_options())

    if not result.success or result.content is None:
        LOGGER.warning("Failed to download %s: %s", doc.filename, result.error)
        return DownloadResult(
            filename=doc.filename,
            success=False,
            error=result.error or "Download failed",
            retries=result.retries,
        )

    try:
        content = transform_markdown(result.content.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as exc:
        LOGGER.warning("Failed to transform %s: %s", doc.filename, exc)
        return DownloadResult(
            filename=doc.filename,
            success=False,
            error=f"Failed to transform document: {exc}",
            retries=result.retries,
        )

    LOGGER.debug("Downloaded %s (%d retries)", doc.filename, result.retries)
    return DownloadResult(
        filename=doc.filename,
        success=True,
        retries=result.retries,
        content=content,
    )


async def download_all(
    config: ResourceConfiguration,
    options: DownloadOptions | None = None,
    *,
    client: httpx.AsyncClient | None = None,
) -> List[DownloadResult]:
    """Download every document in manifest order, ``concurrency`` at a time.

    Each window is awaited in full before the next one starts, so no more
    than ``concurrency`` fetches are ever in flight.
    """
    opts = options or DownloadOptions()
    window_size = max(opts.concurrency, 1)
    docs = list(config.iter_documents())
    total = len(docs)
    completed = 0
    failed = 0

    def report(current: Optional[str]) -> None:
        if opts.on_progress is not None:
            opts.on_progress(DownloadProgress(total=total, completed=completed, failed=failed, current=current))

    async def run_one(http: httpx.AsyncClient, doc: DocumentSection) -> DownloadResult:
        nonlocal completed, failed
        report(doc.filename)
        result = await download_document(http, doc, opts)
        if result.success:
            completed += 1
        else:
            failed += 1
        report(None)
        return result

    owns_client = client is None
    http = client or create_client(timeout=opts.timeout, max_connections=window_size)
    results: List[DownloadResult] = []
    try:
        for start in range(0, total, window_size):
            window = docs[start : start + window_size]
            results.extend(await asyncio.gather(*(run_one(http, doc) for doc in window)))
    finally:
        if owns_client:
            await http.aclose()

    LOGGER.info("Downloaded %d/%d documents (%d failed)", completed, total, failed)
    return results


def get_download_summary(results: Sequence[DownloadResult]) -> DownloadSummary:
    failed_files = [result.filename for result in results if not result.success]
    return DownloadSummary(
        total=len(results),
        successful=len(results) - len(failed_files),
        failed=len(failed_files),
        failed_files=failed_files,
    )
