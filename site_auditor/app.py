"""Main application object: settings, wiring and the audit request contract."""

import logging
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

from site_auditor.config import DEFAULT_CONFIG_PATH, Settings, load_settings
from site_auditor.exceptions import AuditError, FetchError, InputError
from site_auditor.integrations.companies_house import CompaniesHouseClient
from site_auditor.integrations.google_pagespeed import PageSpeedInsights
from site_auditor.integrations.webhook import WebhookNotifier
from site_auditor.models.audit import AuditFailure
from site_auditor.modules.outreach.contact_discovery import ContactDiscovery
from site_auditor.modules.technical_audit.auditor import AuditOrchestrator, BatchEntry
from site_auditor.modules.technical_audit.fetcher import PageFetcher
from site_auditor.utils.validators import normalize_batch, normalize_origin

logger = logging.getLogger(__name__)


class SiteAuditApp:
    """Central application class that wires together every component.

    Usage::

        app = SiteAuditApp()
        status, payload = await app.handle_request({"url": ["a.com", "b.com"]})
    """

    def __init__(
        self,
        config_path: str = DEFAULT_CONFIG_PATH,
        env_path: str = ".env",
        settings: Optional[Settings] = None,
        orchestrator: Optional[AuditOrchestrator] = None,
        notifier: Optional[WebhookNotifier] = None,
    ):
        self._config_path = config_path
        self._env_path = env_path
        self._settings = settings
        self._orchestrator = orchestrator
        self._notifier = notifier

    # ------------------------------------------------------------------
    # Lazy accessors
    # ------------------------------------------------------------------

    @property
    def settings(self) -> Settings:
        """Load .env and the YAML settings on first use."""
        if self._settings is None:
            env_file = Path(self._env_path)
            if env_file.exists():
                load_dotenv(env_file)
                logger.info("Loaded environment from %s", self._env_path)
            self._settings = load_settings(self._config_path)
        return self._settings

    def _get_orchestrator(self) -> AuditOrchestrator:
        if self._orchestrator is None:
            s = self.settings
            fetcher = PageFetcher(user_agent=s.user_agent, request_timeout=s.request_timeout)
            self._orchestrator = AuditOrchestrator(
                fetcher=fetcher,
                pagespeed=PageSpeedInsights(
                    api_key=s.pagespeed_api_key,
                    timeout=s.pagespeed_timeout,
                    max_retries=s.pagespeed_max_retries,
                    backoff_seconds=s.pagespeed_backoff_seconds,
                ),
                companies_house=CompaniesHouseClient(
                    api_key=s.companies_house_key,
                    timeout=s.companies_house_timeout,
                ),
                weights=s.weights,
                contact_discovery=ContactDiscovery(
                    fetcher, paths=s.contact_paths, max_pages=s.crawl_max_pages
                ),
            )
        return self._orchestrator

    def _get_notifier(self) -> WebhookNotifier:
        if self._notifier is None:
            s = self.settings
            self._notifier = WebhookNotifier(url=s.webhook_url, timeout=s.webhook_timeout)
        return self._notifier

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def audit(self, urls: list[str], enrichment: bool = False) -> list[BatchEntry]:
        """Audit a batch of free-form URLs.

        Returns one entry per distinct origin, in input order, followed by an
        ``invalid_origin`` failure for every input that could not be parsed.

        Raises:
            EmptyBatchError: When no input yields a usable origin.
        """
        batch = normalize_batch(urls, limit=self.settings.max_batch_size)
        entries: list[BatchEntry] = await self._get_orchestrator().audit_batch(
            batch.origins, enrichment=enrichment
        )
        entries.extend(
            AuditFailure(value, "invalid_origin", reason) for value, reason in batch.rejected
        )
        await self._notify([e.to_dict() for e in entries])
        return entries

    async def handle_request(self, body: Any) -> tuple[int, Any]:
        """Serve one audit request.

        ``body`` is ``{"url": str | [str], "options": {"enrichment": bool}}``.
        A single URL, or a list that comes down to one entry, yields one
        object; otherwise a list of result or failure objects.  Errors come
        back as ``{"error": message}`` with 400 for bad input, 502 when a
        single origin cannot be fetched and 500 for anything unexpected.
        """
        try:
            urls, enrichment = self._parse_body(body)
            if isinstance(urls, str):
                origin = normalize_origin(urls)
                result = await self._get_orchestrator().audit_origin(origin, enrichment=enrichment)
                payload: Any = result.to_dict()
                await self._notify([payload])
                return 200, payload
            entries = await self.audit(urls, enrichment=enrichment)
            payload = [e.to_dict() for e in entries]
            return 200, (payload[0] if len(payload) == 1 else payload)
        except InputError as exc:
            logger.info("Rejected audit request: %s", exc)
            return exc.status_code, {"error": str(exc)}
        except FetchError as exc:
            logger.warning("Audit request failed: %s", exc)
            return exc.status_code, {"error": str(exc)}
        except AuditError as exc:
            logger.error("Audit request failed: %s", exc)
            return exc.status_code, {"error": str(exc)}
        except Exception as exc:
            logger.exception("Unexpected error while handling audit request")
            return 500, {"error": str(exc) or "Unexpected error"}

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _parse_body(body: Any) -> tuple[Any, bool]:
        if not isinstance(body, dict) or "url" not in body:
            raise InputError("Request body must be an object with a 'url' field.")
        urls = body["url"]
        if isinstance(urls, list):
            if not all(isinstance(u, str) for u in urls):
                raise InputError("'url' must be a string or a list of strings.")
        elif not isinstance(urls, str):
            raise InputError("'url' must be a string or a list of strings.")
        options = body.get("options") or {}
        if not isinstance(options, dict):
            raise InputError("'options' must be an object.")
        return urls, bool(options.get("enrichment", False))

    async def _notify(self, results: list[dict[str, Any]]) -> None:
        outcome = await self._get_notifier().notify(results)
        logger.debug("Webhook outcome: %s", outcome.to_dict())
