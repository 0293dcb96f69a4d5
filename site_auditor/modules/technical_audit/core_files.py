"""Presence checks for robots.txt, the sitemap and AI/LLM policy files."""

import asyncio
import logging
from typing import Optional

from site_auditor.models.audit import CoreFile, Page
from site_auditor.modules.technical_audit.fetcher import PageFetcher

logger = logging.getLogger(__name__)

CORE_FILE_TARGETS: dict[str, tuple[str, ...]] = {
    "robots": ("/robots.txt",),
    "sitemap": ("/sitemap.xml",),
    "llm": ("/llms.txt", "/llm.txt", "/ai.txt", "/ai.json", "/.well-known/ai-plugin.json"),
}


class CoreFilesProbe:
    """Probe the well-known files of an origin concurrently.

    Every candidate path is requested at once.  A target counts as present
    when any of its candidates answers 2xx; the earliest candidate in the
    list wins.
    """

    def __init__(self, fetcher: PageFetcher) -> None:
        self._fetcher = fetcher

    async def probe(self, origin: str) -> dict[str, CoreFile]:
        plan = [(key, origin + path) for key, paths in CORE_FILE_TARGETS.items() for path in paths]
        pages: list[Optional[Page]] = await asyncio.gather(
            *(self._fetcher.fetch_optional(url) for _, url in plan)
        )

        files: dict[str, CoreFile] = {key: CoreFile() for key in CORE_FILE_TARGETS}
        for (key, url), page in zip(plan, pages):
            if page is None or files[key].exists:
                continue
            files[key] = CoreFile(
                exists=True,
                url=url,
                last_modified=page.header("last-modified") or None,
            )

        logger.info(
            "Core files for %s: %s",
            origin,
            ", ".join(f"{k}={'yes' if f.exists else 'no'}" for k, f in files.items()),
        )
        return files
