"""Outbound webhook fired once a batch of audits has finished."""

import logging
from typing import Any, Optional

import httpx

from site_auditor.models.audit import CollaboratorOutcome

logger = logging.getLogger(__name__)


class WebhookNotifier:
    """POST ``{"results": [...]}`` to a configured URL."""

    def __init__(
        self,
        url: Optional[str] = None,
        timeout: float = 10,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.url = url or ""
        self._timeout = timeout
        self._transport = transport

    async def notify(self, results: list[dict[str, Any]]) -> CollaboratorOutcome:
        """Deliver *results*; failures are logged and reported, never raised."""
        if not self.url:
            return CollaboratorOutcome.absent("not_configured")
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(self.url, json={"results": results})
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.warning("Webhook %s rejected payload: %s", self.url, exc)
            return CollaboratorOutcome.absent(f"http_{exc.response.status_code}")
        except httpx.HTTPError as exc:
            logger.warning("Webhook %s unreachable: %s", self.url, exc)
            return CollaboratorOutcome.absent("request_failed")
        logger.info("Webhook delivered %d result(s) to %s", len(results), self.url)
        return CollaboratorOutcome.present()
