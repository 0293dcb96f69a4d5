"""Google PageSpeed Insights integration for lab performance scores."""

import asyncio
import logging
from typing import Any, Optional

import httpx

from site_auditor.models.audit import CollaboratorOutcome, PageSpeedReport
from site_auditor.utils.helpers import round_half_up, unique

logger = logging.getLogger(__name__)

PAGESPEED_API_URL = "https://www.googleapis.com/pagespeedonline/v5/runPagespeed"

STRATEGIES = ("mobile", "desktop")
TOP_ACTION_LIMIT = 10


def _failure_reason(exc: BaseException) -> str:
    if isinstance(exc, httpx.HTTPStatusError):
        if exc.response.status_code == 429:
            return "rate_limited"
        return f"http_{exc.response.status_code}"
    if isinstance(exc, httpx.TimeoutException):
        return "timeout"
    if isinstance(exc, httpx.HTTPError):
        return "request_failed"
    return "invalid_response"


class PageSpeedInsights:
    """Client for the Google PageSpeed Insights API.

    Usage::

        psi = PageSpeedInsights(api_key="your-key")
        result = await psi.analyze_url("https://example.com", strategy="desktop")
        report = await psi.collect("https://example.com")
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: float = 60,
        max_retries: int = 2,
        backoff_seconds: float = 5,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._api_key = api_key or ""
        self._timeout = timeout
        self._max_retries = max_retries
        self._backoff = backoff_seconds
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self._api_key)

    async def _request_with_retry(
        self,
        client: httpx.AsyncClient,
        url: str,
        params: dict,
    ) -> dict:
        """Make HTTP request with exponential backoff retry on 429 and timeouts."""
        for attempt in range(self._max_retries + 1):
            try:
                response = await client.get(url, params=params)
                response.raise_for_status()
                return response.json()
            except httpx.HTTPStatusError as exc:
                if exc.response.status_code == 429 and attempt < self._max_retries:
                    wait = self._backoff * (2 ** attempt)
                    logger.warning(
                        "PageSpeed 429 rate limited. Retry %d/%d in %.0fs...",
                        attempt + 1, self._max_retries, wait
                    )
                    await asyncio.sleep(wait)
                    continue
                raise
            except httpx.TimeoutException:
                if attempt < self._max_retries:
                    wait = self._backoff * (2 ** attempt)
                    logger.warning(
                        "PageSpeed timeout. Retry %d/%d in %.0fs...",
                        attempt + 1, self._max_retries, wait
                    )
                    await asyncio.sleep(wait)
                    continue
                raise
        return {}

    async def analyze_url(self, url: str, strategy: str = "mobile") -> dict[str, Any]:
        """Run a PageSpeed performance analysis on a URL.

        Args:
            url: The URL to analyze.
            strategy: 'mobile' or 'desktop'.

        Returns:
            Dict with ``performance_score`` (0-100, or None when Lighthouse
            did not report one) and ``top_actions``.

        Raises:
            httpx.HTTPError: When the API cannot be reached or keeps failing.
        """
        params: dict[str, Any] = {
            "url": url,
            "strategy": strategy,
            "category": "performance",
            "key": self._api_key,
        }
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            data = await self._request_with_retry(client, PAGESPEED_API_URL, params)

        lighthouse = data.get("lighthouseResult") or {}
        raw_score = ((lighthouse.get("categories") or {}).get("performance") or {}).get("score")
        audits = lighthouse.get("audits") or {}
        score = None
        if isinstance(raw_score, (int, float)) and not isinstance(raw_score, bool):
            score = round_half_up(raw_score * 100)

        result = {
            "url": url,
            "strategy": strategy,
            "performance_score": score,
            "top_actions": self._extract_top_actions(audits),
        }
        logger.info("PageSpeed %s analysis for %s: perf=%s", strategy, url, score)
        return result

    async def collect(self, url: str) -> PageSpeedReport:
        """Run both strategies concurrently and fold them into one report.

        Each strategy fails on its own: its score is left out and the
        outcome names the reason.  Nothing is requested without an API key.
        """
        if not self.enabled:
            logger.info("PageSpeed skipped for %s: no API key configured", url)
            return PageSpeedReport(outcome=CollaboratorOutcome.absent("missing_api_key"))

        results = await asyncio.gather(
            *(self.analyze_url(url, strategy) for strategy in STRATEGIES),
            return_exceptions=True,
        )

        report = PageSpeedReport()
        actions: list[str] = []
        failures: list[str] = []
        for strategy, result in zip(STRATEGIES, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                reason = _failure_reason(result)
                logger.warning("PageSpeed %s failed for %s: %s", strategy, url, result)
                failures.append(f"{strategy}_{reason}")
                continue
            if strategy == "mobile":
                report.mobile_score = result["performance_score"]
            else:
                report.desktop_score = result["performance_score"]
            actions.extend(result["top_actions"])

        report.top_actions = unique(actions)[:TOP_ACTION_LIMIT]
        if len(failures) == len(STRATEGIES):
            report.outcome = CollaboratorOutcome.absent(",".join(failures))
        elif failures:
            report.outcome = CollaboratorOutcome("present", ",".join(failures))
        else:
            report.outcome = CollaboratorOutcome.present()
        return report

    @staticmethod
    def _extract_top_actions(audits: dict, limit: int = TOP_ACTION_LIMIT) -> list[str]:
        """Titles of audits that are opportunities or scored below 1."""
        titles = []
        for audit in audits.values():
            if not isinstance(audit, dict):
                continue
            score = audit.get("score")
            failing = isinstance(score, (int, float)) and not isinstance(score, bool) and score < 1
            if (audit.get("details") or {}).get("type") == "opportunity" or failing:
                if audit.get("title"):
                    titles.append(audit["title"])
        return unique(titles)[:limit]
