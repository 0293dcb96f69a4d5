"""HTTP page fetcher used by the audit, the file probes and the contact crawl."""

import asyncio
import logging
from typing import Optional

import aiohttp

from site_auditor.exceptions import FetchError
from site_auditor.models.audit import Page

logger = logging.getLogger(__name__)


class PageFetcher:
    """Fetch documents over HTTP, following redirects."""

    def __init__(
        self,
        user_agent: str = "SiteAuditBot/1.0",
        request_timeout: float = 20,
    ) -> None:
        self._user_agent = user_agent
        self._timeout = aiohttp.ClientTimeout(total=request_timeout)

    async def fetch(self, url: str, headers: Optional[dict[str, str]] = None) -> Page:
        """GET *url* and return the final document.

        Non-2xx responses come back as ``Page(ok=False)``; only failures to
        complete the request raise.

        Raises:
            FetchError: On DNS failure, connection errors or timeout.
        """
        request_headers = {"User-Agent": self._user_agent}
        if headers:
            request_headers.update(headers)
        try:
            async with aiohttp.ClientSession(timeout=self._timeout) as session:
                async with session.get(
                    url, headers=request_headers, ssl=False, allow_redirects=True
                ) as resp:
                    text = await resp.text(errors="replace")
                    return Page(
                        url=str(resp.url),
                        text=text,
                        headers={k.lower(): v for k, v in resp.headers.items()},
                        status=resp.status,
                        ok=200 <= resp.status < 300,
                    )
        except asyncio.TimeoutError as exc:
            raise FetchError(url, "timeout") from exc
        except aiohttp.ClientError as exc:
            raise FetchError(url, str(exc) or exc.__class__.__name__) from exc

    async def fetch_optional(self, url: str) -> Optional[Page]:
        """Like :meth:`fetch`, but returns None for anything other than 2xx."""
        try:
            page = await self.fetch(url)
        except FetchError as exc:
            logger.debug("Optional fetch failed: %s", exc)
            return None
        if not page.ok:
            logger.debug("Optional fetch %s returned HTTP %d", url, page.status)
            return None
        return page
