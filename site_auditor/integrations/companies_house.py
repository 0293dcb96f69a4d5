"""UK Companies House lookup for likely owners and officers."""

import logging
from typing import Optional

import httpx

from site_auditor.models.audit import CollaboratorOutcome, OwnerCandidate

logger = logging.getLogger(__name__)

COMPANIES_HOUSE_API_URL = "https://api.company-information.service.gov.uk"
COMPANIES_HOUSE_PUBLIC_URL = "https://find-and-update.company-information.service.gov.uk"

MAX_OFFICERS = 5
OFFICER_CONFIDENCE = 0.7


class CompaniesHouseClient:
    """Search the register by brand name and list the first match's officers.

    Every failure mode degrades to an empty candidate list plus an absent
    outcome carrying the reason.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: float = 15,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._api_key = api_key or ""
        self._timeout = timeout
        self._transport = transport

    async def find_officers(
        self, name_guess: str
    ) -> tuple[list[OwnerCandidate], CollaboratorOutcome]:
        if not self._api_key:
            return [], CollaboratorOutcome.absent("missing_api_key")
        name_guess = (name_guess or "").strip()
        if not name_guess:
            return [], CollaboratorOutcome.absent("no_brand_name")

        try:
            async with httpx.AsyncClient(
                base_url=COMPANIES_HOUSE_API_URL,
                auth=(self._api_key, ""),
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                search = await client.get(
                    "/advanced-search/companies", params={"q": name_guess}
                )
                search.raise_for_status()
                items = search.json().get("items") or []
                company_number = items[0].get("company_number") if items else None
                if not company_number:
                    logger.info("Companies House: no company found for %r", name_guess)
                    return [], CollaboratorOutcome.absent("no_company_match")

                officers = await client.get(f"/company/{company_number}/officers")
                officers.raise_for_status()
                officer_items = officers.json().get("items") or []
        except httpx.HTTPStatusError as exc:
            logger.warning("Companies House lookup for %r failed: %s", name_guess, exc)
            return [], CollaboratorOutcome.absent(f"http_{exc.response.status_code}")
        except httpx.HTTPError as exc:
            logger.warning("Companies House lookup for %r failed: %s", name_guess, exc)
            return [], CollaboratorOutcome.absent("request_failed")
        except (ValueError, AttributeError) as exc:
            logger.warning("Companies House returned an unexpected payload: %s", exc)
            return [], CollaboratorOutcome.absent("invalid_response")

        source_url = f"{COMPANIES_HOUSE_PUBLIC_URL}/company/{company_number}"
        candidates = [
            OwnerCandidate(
                name=str(officer.get("name", "")),
                title=str(officer.get("officer_role") or "").replace("_", " "),
                source="companies_house",
                source_url=source_url,
                confidence=OFFICER_CONFIDENCE,
            )
            for officer in officer_items[:MAX_OFFICERS]
            if isinstance(officer, dict)
        ]
        logger.info(
            "Companies House: %d officer(s) for %r (company %s)",
            len(candidates), name_guess, company_number,
        )
        return candidates, CollaboratorOutcome.present()
