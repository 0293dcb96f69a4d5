"""Tests for the audit orchestrator and batch runner."""

import json
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from conftest import AUDIT_YEAR, GOOD_HTML
from site_auditor.exceptions import FetchError
from site_auditor.integrations.companies_house import CompaniesHouseClient
from site_auditor.models.audit import AuditFailure, AuditResult, Page
from site_auditor.modules.technical_audit.auditor import AuditOrchestrator, guess_brand_name

ORIGIN = "https://acme.test"


def _site_routes() -> dict:
    return {
        ORIGIN: Page(url=ORIGIN + "/", text=GOOD_HTML, status=200, ok=True),
        ORIGIN + "/robots.txt": "User-agent: *\nAllow: /",
        ORIGIN + "/sitemap.xml": "<urlset></urlset>",
    }


def _orchestrator(fetcher, **kwargs) -> AuditOrchestrator:
    return AuditOrchestrator(fetcher=fetcher, year=AUDIT_YEAR, **kwargs)


# ===========================================================================
# 1. Single origin
# ===========================================================================
class TestAuditOrigin:

    @pytest.mark.asyncio
    async def test_full_audit_of_a_good_page(self, fake_fetcher):
        fetcher = fake_fetcher(_site_routes())
        result = await _orchestrator(fetcher).audit_origin(ORIGIN)

        assert isinstance(result, AuditResult)
        assert result.target == ORIGIN
        assert result.summary.overall == 100
        assert result.summary.grade == "A"
        assert len(result.issues) == 23
        assert all(issue.page == ORIGIN for issue in result.issues)
        assert result.files["robots"].exists and result.files["sitemap"].exists
        assert not result.files["llm"].exists
        assert result.detected_types == ["Organization", "PostalAddress", "ContactPoint"]
        assert "Organization" not in result.suggestions
        assert result.best_contact.value == "hello@acme.test"
        assert result.pagespeed.outcome.reason == "missing_api_key"
        assert result.enrichment.reason == "not_requested"
        assert result.owner_candidates == []

    @pytest.mark.asyncio
    async def test_contact_crawl_reuses_the_home_page(self, fake_fetcher):
        fetcher = fake_fetcher(_site_routes())
        await _orchestrator(fetcher).audit_origin(ORIGIN)
        assert fetcher.calls.count(ORIGIN) == 1
        assert ORIGIN + "/" not in fetcher.calls
        assert ORIGIN + "/contact" in fetcher.calls

    @pytest.mark.asyncio
    async def test_result_serialises_to_the_json_contract(self, fake_fetcher):
        result = await _orchestrator(fake_fetcher(_site_routes())).audit_origin(ORIGIN)
        data = json.loads(json.dumps(result.to_dict()))

        assert set(data) == {
            "target", "summary", "categories", "issues", "files", "schema",
            "pagespeed", "contacts",
        }
        assert data["summary"] == {"overall": 100, "grade": "A"}
        assert [c["id"] for c in data["categories"]] == [
            "technical_seo", "onpage_seo", "entity_trust", "hygiene",
        ]
        assert set(data["issues"][0]) == {"id", "status", "details", "fix", "page", "category"}
        assert data["files"]["robots"] == {"exists": True, "url": ORIGIN + "/robots.txt"}
        assert data["schema"]["detectedTypes"][0] == "Organization"
        assert data["contacts"]["best"] == {
            "type": "email",
            "value": "hello@acme.test",
            "sourceUrl": ORIGIN + "/",
            "confidence": 0.9,
            "context": "Email us",
        }
        assert data["contacts"]["enrichment"] == {"status": "absent", "reason": "not_requested"}

    @pytest.mark.asyncio
    async def test_non_2xx_home_page_raises(self, fake_fetcher):
        with pytest.raises(FetchError) as exc_info:
            await _orchestrator(fake_fetcher()).audit_origin(ORIGIN)
        assert exc_info.value.status == 404

    @pytest.mark.asyncio
    async def test_pagespeed_crash_degrades_to_absent(self, fake_fetcher):
        pagespeed = MagicMock()
        pagespeed.collect = AsyncMock(side_effect=RuntimeError("boom"))
        orchestrator = _orchestrator(fake_fetcher(_site_routes()), pagespeed=pagespeed)
        result = await orchestrator.audit_origin(ORIGIN)
        assert result.pagespeed.outcome.to_dict() == {"status": "absent", "reason": "request_failed"}
        assert result.summary.overall == 100

    @pytest.mark.asyncio
    async def test_enrichment_uses_the_organisation_name(self, fake_fetcher):
        queries = []

        def handler(request):
            if request.url.path == "/advanced-search/companies":
                queries.append(request.url.params["q"])
                return httpx.Response(200, json={"items": [{"company_number": "01234567"}]})
            return httpx.Response(
                200, json={"items": [{"name": "DOE, John", "officer_role": "director"}]}
            )

        registry = CompaniesHouseClient("ch-key", transport=httpx.MockTransport(handler))
        orchestrator = _orchestrator(fake_fetcher(_site_routes()), companies_house=registry)
        result = await orchestrator.audit_origin(ORIGIN, enrichment=True)

        assert queries == ["Acme Widgets Ltd"]
        assert result.enrichment.is_present
        assert [o.name for o in result.owner_candidates] == ["DOE, John"]

    @pytest.mark.asyncio
    async def test_enrichment_without_key_is_absent(self, fake_fetcher):
        result = await _orchestrator(fake_fetcher(_site_routes())).audit_origin(
            ORIGIN, enrichment=True
        )
        assert result.enrichment.to_dict() == {"status": "absent", "reason": "missing_api_key"}


# ===========================================================================
# 2. Batches
# ===========================================================================
class TestAuditBatch:

    @pytest.mark.asyncio
    async def test_failures_do_not_abort_the_batch(self, fake_fetcher):
        routes = _site_routes()
        routes["https://down.test"] = FetchError("https://down.test", "timeout")
        routes["https://broken.test"] = RuntimeError("parser exploded")
        fetcher = fake_fetcher(routes)

        entries = await _orchestrator(fetcher).audit_batch(
            [ORIGIN, "https://down.test", "https://gone.test", "https://broken.test"]
        )

        assert [e.target for e in entries] == [
            ORIGIN, "https://down.test", "https://gone.test", "https://broken.test",
        ]
        assert [e.ok for e in entries] == [True, False, False, False]
        assert entries[1].error_type == "fetch_failed"
        assert entries[1].status is None
        assert entries[2].to_dict() == {
            "target": "https://gone.test",
            "error": {
                "type": "fetch_failed",
                "message": "Failed to fetch https://gone.test: HTTP 404",
                "status": 404,
            },
        }
        assert entries[3].error_type == "internal_error"
        assert entries[3].message == "parser exploded"


# ===========================================================================
# 3. Helpers
# ===========================================================================
class TestHelpers:

    @pytest.mark.parametrize("records,title,expected", [
        ([{"@type": "Organization", "name": " Acme Ltd "}], "Other | Home", "Acme Ltd"),
        ([{"@graph": [{"@type": "Organization", "name": "Graph Co"}]}], "", "Graph Co"),
        ([{"@type": "Organization"}], "Acme Widgets | Home", "Acme Widgets"),
        ([], "Acme – Handmade widgets", "Acme – Handmade widgets"),
        ([], "Acme – Widgets | Home", "Acme – Widgets"),
        ([], " | Acme – Widgets", "| Acme"),
        ([], "Acme", "Acme"),
        ([], "", ""),
    ])
    def test_guess_brand_name(self, records, title, expected):
        assert guess_brand_name(records, title) == expected

    def test_export_single_entry_as_object(self, tmp_path):
        failure = AuditFailure("https://down.test", "fetch_failed", "timeout")
        path = AuditOrchestrator.export_report([failure], str(tmp_path / "out" / "report.json"))
        with open(path, encoding="utf-8") as fh:
            data = json.load(fh)
        assert data == {
            "target": "https://down.test",
            "error": {"type": "fetch_failed", "message": "timeout"},
        }

    def test_export_many_entries_as_list(self, tmp_path):
        entries = [
            AuditFailure("https://a.test", "fetch_failed", "timeout"),
            AuditFailure("https://b.test", "invalid_origin", "bad"),
        ]
        path = AuditOrchestrator.export_report(entries, str(tmp_path / "report.json"))
        with open(path, encoding="utf-8") as fh:
            data = json.load(fh)
        assert [d["target"] for d in data] == ["https://a.test", "https://b.test"]
