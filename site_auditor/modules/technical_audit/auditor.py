"""Audit orchestrator: runs every stage for one origin, or for a batch.

Brings together the page fetcher, the issue catalogue, scoring, core-file
probes, PageSpeed Insights, contact discovery and the optional Companies
House enrichment to produce one :class:`AuditResult` per origin.
"""

import asyncio
import json
import logging
import os
import time
from typing import Any, Optional, Union

from site_auditor.config import ScoringWeights
from site_auditor.exceptions import AuditError, FetchError
from site_auditor.integrations.companies_house import CompaniesHouseClient
from site_auditor.integrations.google_pagespeed import PageSpeedInsights
from site_auditor.models.audit import (
    AuditFailure,
    AuditResult,
    CollaboratorOutcome,
    PageSpeedReport,
)
from site_auditor.modules.outreach.contact_discovery import ContactDiscovery
from site_auditor.modules.technical_audit.checks import IssueEvaluator
from site_auditor.modules.technical_audit.core_files import CoreFilesProbe
from site_auditor.modules.technical_audit.fetcher import PageFetcher
from site_auditor.modules.technical_audit.scoring import ScoringEngine
from site_auditor.modules.technical_audit.signals import SignalExtractor
from site_auditor.modules.technical_audit.structured_data import (
    iter_typed,
    suggest_schema_types,
)

logger = logging.getLogger(__name__)

BatchEntry = Union[AuditResult, AuditFailure]

_TITLE_SEPARATORS = ("|", "–")


def guess_brand_name(records: list[dict[str, Any]], title: str) -> str:
    """Best guess at the business name behind a site.

    Prefers the ``name`` of an Organization record, then the first segment
    of the page title before a ``|``, falling back to the part before an
    en dash when the title opens with a pipe.
    """
    for org in iter_typed(records, "Organization"):
        name = org.get("name")
        if isinstance(name, str) and name.strip():
            return name.strip()
    for separator in _TITLE_SEPARATORS:
        head = (title or "").split(separator)[0].strip()
        if head:
            return head
    return ""


class AuditOrchestrator:
    """Run the full audit pipeline for origins."""

    def __init__(
        self,
        fetcher: Optional[PageFetcher] = None,
        pagespeed: Optional[PageSpeedInsights] = None,
        companies_house: Optional[CompaniesHouseClient] = None,
        weights: Optional[ScoringWeights] = None,
        contact_discovery: Optional[ContactDiscovery] = None,
        year: Optional[int] = None,
    ) -> None:
        self._fetcher = fetcher or PageFetcher()
        self._psi = pagespeed or PageSpeedInsights()
        self._companies_house = companies_house or CompaniesHouseClient()
        self._extractor = SignalExtractor()
        self._evaluator = IssueEvaluator(self._extractor)
        self._scoring = ScoringEngine(weights)
        self._core_files = CoreFilesProbe(self._fetcher)
        self._contacts = contact_discovery or ContactDiscovery(self._fetcher)
        self._year = year

    # ------------------------------------------------------------------
    # Main entry points
    # ------------------------------------------------------------------

    async def audit_origin(self, origin: str, enrichment: bool = False) -> AuditResult:
        """Audit a single origin.

        Raises:
            FetchError: When the home page cannot be retrieved or is not 2xx.
        """
        start = time.monotonic()
        logger.info("Starting audit for %s", origin)

        # --- Stage 1: Home page ---
        home = await self._fetcher.fetch(origin)
        if not home.ok:
            raise FetchError(origin, f"HTTP {home.status}", status=home.status)

        # --- Stage 2: Signals and structured data ---
        signals = self._extractor.extract_page(home, url=origin)
        detected_types = signals.schema_types
        suggestions = suggest_schema_types(detected_types)

        # --- Stage 3: Core files ---
        files = await self._core_files.probe(origin)

        # --- Stage 4: PageSpeed (optional) ---
        pagespeed = await self._run_pagespeed(origin)

        # --- Stage 5: Issues ---
        issues = self._evaluator.evaluate(signals, year=self._year)

        # --- Stage 6: Scoring ---
        card = self._scoring.score(issues)

        # --- Stage 7: Contacts ---
        contacts = await self._contacts.run(origin, home)

        # --- Stage 8: Enrichment (optional) ---
        owners = []
        enrichment_outcome = CollaboratorOutcome.absent("not_requested")
        if enrichment:
            brand = guess_brand_name(signals.records, signals.title)
            logger.debug("Brand guess for %s: %r", origin, brand)
            owners, enrichment_outcome = await self._companies_house.find_officers(brand)

        result = AuditResult(
            target=origin,
            summary=card.summary,
            categories=card.categories,
            issues=issues,
            files=files,
            detected_types=detected_types,
            suggestions=suggestions,
            pagespeed=pagespeed,
            best_contact=contacts.best,
            contacts=contacts.contacts,
            owner_candidates=owners,
            enrichment=enrichment_outcome,
        )
        logger.info(
            "Audit complete for %s: score=%d grade=%s in %.1fs",
            origin, card.summary.overall, card.summary.grade, time.monotonic() - start,
        )
        return result

    async def audit_batch(
        self, origins: list[str], enrichment: bool = False
    ) -> list[BatchEntry]:
        """Audit *origins* concurrently; one entry per origin, in order.

        A failing origin becomes an :class:`AuditFailure` and never aborts
        the rest of the batch.
        """
        return list(
            await asyncio.gather(*(self._audit_or_fail(o, enrichment) for o in origins))
        )

    async def _audit_or_fail(self, origin: str, enrichment: bool) -> BatchEntry:
        try:
            return await self.audit_origin(origin, enrichment=enrichment)
        except FetchError as exc:
            logger.warning("Audit failed for %s: %s", origin, exc)
            return AuditFailure(origin, "fetch_failed", str(exc), exc.status)
        except AuditError as exc:
            logger.warning("Audit failed for %s: %s", origin, exc)
            return AuditFailure(origin, "audit_error", str(exc))
        except Exception as exc:
            logger.exception("Unexpected error auditing %s", origin)
            return AuditFailure(origin, "internal_error", str(exc) or exc.__class__.__name__)

    async def _run_pagespeed(self, origin: str) -> PageSpeedReport:
        try:
            return await self._psi.collect(origin)
        except Exception as exc:
            logger.warning("PageSpeed check failed for %s: %s", origin, exc)
            return PageSpeedReport(outcome=CollaboratorOutcome.absent("request_failed"))

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    @staticmethod
    def export_report(entries: list[BatchEntry], filepath: str) -> str:
        """Write the JSON contract for *entries* to *filepath*."""
        os.makedirs(os.path.dirname(filepath) or ".", exist_ok=True)
        payload: Any = [e.to_dict() for e in entries]
        if len(payload) == 1:
            payload = payload[0]
        with open(filepath, "w", encoding="utf-8") as fh:
            json.dump(payload, fh, indent=2, ensure_ascii=False)
        logger.info("Audit report exported to %s", filepath)
        return filepath
