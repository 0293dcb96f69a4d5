"""Contact discovery for outreach.

Crawls a handful of high-signal pages on an origin and pulls out email
addresses, phone numbers, LinkedIn and Calendly links and vCards, each
tagged with a confidence that reflects how it was found.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from site_auditor.config import DEFAULT_CONTACT_PATHS
from site_auditor.models.audit import Contact, Page
from site_auditor.modules.technical_audit.fetcher import PageFetcher
from site_auditor.modules.technical_audit.structured_data import (
    extract_structured_data,
    iter_typed,
)
from site_auditor.utils.helpers import collapse_whitespace, host_matches, unique
from site_auditor.utils.validators import validate_email

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

EMAIL_PATTERN = re.compile(
    r"([a-z0-9._%+-]+)(?:@|\s?\[at\]\s?)"
    r"((?:[a-z0-9-]+(?:\.|\s?\[dot\]\s?))+[a-z]{2,})",
    re.I,
)
PHONE_PATTERN = re.compile(
    r"(?:(?:\+?\d{1,3}[\s-]?)?(?:\(?0?\d{2,4}\)?[\s.-]?)?\d{3,4}[\s.-]?\d{3,4})"
)

_IGNORED_EMAIL_MARKERS = ("@sentry.", "@wixpress.")

CONFIDENCE = {
    "mailto": 0.9,
    "tel": 0.8,
    "vcard": 0.85,
    "calendly": 0.85,
    "linkedin": 0.7,
    "text_email": 0.6,
    "text_phone": 0.5,
    "schema_email": 0.85,
    "schema_phone": 0.8,
}

BEST_CONTACT_TYPES = ("email", "calendly")


def deobfuscate_email(value: str) -> str:
    """Turn ``jane [at] example [dot] com`` into ``jane@example.com``."""
    value = re.sub(r"\s?\[at\]\s?", "@", value, count=1, flags=re.I)
    value = re.sub(r"\s?\[dot\]\s?", ".", value, flags=re.I)
    return value.lower()


@dataclass
class ContactReport:
    contacts: list[Contact] = field(default_factory=list)
    best: Optional[Contact] = None


def pick_best(contacts: list[Contact]) -> Optional[Contact]:
    """Highest-confidence email or Calendly contact; the earliest wins ties."""
    best: Optional[Contact] = None
    for contact in contacts:
        if contact.type not in BEST_CONTACT_TYPES:
            continue
        if best is None or contact.confidence > best.confidence:
            best = contact
    return best


class ContactDiscovery:
    """Small sequential crawl plus heuristic contact extraction."""

    def __init__(
        self,
        fetcher: PageFetcher,
        paths: Optional[list[str]] = None,
        max_pages: int = 6,
    ) -> None:
        self._fetcher = fetcher
        self.paths = list(paths or DEFAULT_CONTACT_PATHS)
        self.max_pages = max_pages

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def run(self, origin: str, home: Optional[Page] = None) -> ContactReport:
        pages = await self.crawl(origin, home)
        report = self.discover(pages)
        logger.info(
            "Contact discovery for %s: %d pages, %d contacts, best=%s",
            origin, len(pages), len(report.contacts),
            report.best.value if report.best else None,
        )
        return report

    async def crawl(self, origin: str, home: Optional[Page] = None) -> list[Page]:
        """Fetch the first ``max_pages`` high-signal paths, one at a time.

        The home page is reused when the caller already has it.
        """
        pages: list[Page] = []
        for path in self.paths[: self.max_pages]:
            if path == "/" and home is not None:
                pages.append(home)
                continue
            page = await self._fetcher.fetch_optional(origin + path)
            if page is None:
                logger.debug("No page at %s%s", origin, path)
                continue
            pages.append(page)
        return pages

    def discover(self, pages: list[Page]) -> ContactReport:
        contacts: list[Contact] = []
        for page in pages:
            contacts.extend(self.extract_contacts(page.text, page.url))
        contacts = unique(contacts)
        return ContactReport(contacts=contacts, best=pick_best(contacts))

    def extract_contacts(self, html: str, url: str) -> list[Contact]:
        """All contacts found on a single page, in discovery order."""
        soup = BeautifulSoup(html or "", "html.parser")
        found: list[Contact] = []
        found.extend(self._from_links(soup, url))
        found.extend(self._from_structured_data(soup, url))
        found.extend(self._from_text(soup, url))
        return found

    # ------------------------------------------------------------------
    # Sources
    # ------------------------------------------------------------------

    def _from_links(self, soup: BeautifulSoup, url: str) -> list[Contact]:
        found: list[Contact] = []
        for a_tag in soup.find_all("a", href=True):
            href = a_tag["href"].strip()
            text = collapse_whitespace(a_tag.get_text(" ")) or None
            lowered = href.lower()

            if lowered.startswith("mailto:"):
                email = href[7:].split("?")[0].strip().lower()
                if email:
                    found.append(Contact("email", email, url, CONFIDENCE["mailto"], text))
                continue
            if lowered.startswith("tel:"):
                phone = href[4:].strip()
                if phone:
                    found.append(Contact("phone", phone, url, CONFIDENCE["tel"], text))
                continue

            try:
                absolute = urljoin(url, href)
            except ValueError:
                continue
            if absolute.lower().split("?")[0].split("#")[0].endswith(".vcf"):
                found.append(Contact("vcard", absolute, url, CONFIDENCE["vcard"], text))
            if host_matches(absolute, ("calendly.com",)):
                found.append(Contact("calendly", absolute, url, CONFIDENCE["calendly"], text))
            if host_matches(absolute, ("linkedin.com",)):
                found.append(Contact("linkedin", absolute, url, CONFIDENCE["linkedin"], text))
        return found

    def _from_structured_data(self, soup: BeautifulSoup, url: str) -> list[Contact]:
        found: list[Contact] = []
        for org in iter_typed(extract_structured_data(soup), "Organization"):
            points = org.get("contactPoint") or []
            points = points if isinstance(points, list) else [points]
            for point in points:
                if not isinstance(point, dict):
                    continue
                context = str(point["contactType"]) if point.get("contactType") else None
                if point.get("email"):
                    found.append(
                        Contact("email", str(point["email"]).strip(), url,
                                CONFIDENCE["schema_email"], context)
                    )
                if point.get("telephone"):
                    found.append(
                        Contact("phone", str(point["telephone"]).strip(), url,
                                CONFIDENCE["schema_phone"], context)
                    )
        return found

    def _from_text(self, soup: BeautifulSoup, url: str) -> list[Contact]:
        for tag in soup(["script", "style"]):
            tag.decompose()
        body = soup.get_text(" ")

        found: list[Contact] = []
        for match in EMAIL_PATTERN.finditer(body):
            email = deobfuscate_email(f"{match.group(1)}@{match.group(2)}")
            if any(marker in email for marker in _IGNORED_EMAIL_MARKERS):
                continue
            valid, reason = validate_email(email)
            if not valid:
                logger.debug("Ignoring email-like text %r: %s", email, reason)
                continue
            found.append(Contact("email", email, url, CONFIDENCE["text_email"]))
        for match in PHONE_PATTERN.finditer(body):
            phone = collapse_whitespace(match.group(0))
            found.append(Contact("phone", phone, url, CONFIDENCE["text_phone"]))
        return found
