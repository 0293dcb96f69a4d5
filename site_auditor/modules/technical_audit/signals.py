"""Signal extraction from raw page markup.

Everything the issue catalogue measures is read here, once, from a
BeautifulSoup tree.  Missing elements simply leave their field at its
emptiest value.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from site_auditor.models.audit import Page
from site_auditor.modules.technical_audit.structured_data import (
    extract_schema_types,
    extract_structured_data,
    walk_nodes,
)
from site_auditor.utils.helpers import collapse_whitespace, host_matches, origin_of

logger = logging.getLogger(__name__)

SOCIAL_DOMAINS: tuple[str, ...] = (
    "facebook.com",
    "twitter.com",
    "x.com",
    "instagram.com",
    "linkedin.com",
    "youtube.com",
)

OG_REQUIRED: tuple[str, ...] = ("og:title", "og:description", "og:image")

_DATE_MARKERS = ("article:published_time", "date", "last-modified")
_HEADING_RE = re.compile(r"^h[1-6]$")


@dataclass(frozen=True)
class ImageRef:
    src: str
    alt: Optional[str]
    loading: str = ""


@dataclass(frozen=True)
class LinkRef:
    href: str
    text: str


@dataclass
class PageSignals:
    """Everything the issue catalogue needs to know about one page."""

    url: str
    base_url: str = ""
    raw: str = ""
    title: str = ""
    meta_description: str = ""
    has_viewport: bool = False
    headings: list[int] = field(default_factory=list)
    canonical: str = ""
    robots_meta: str = ""
    robots_header: str = ""
    og_properties: set[str] = field(default_factory=set)
    http_asset_refs: int = 0
    images: list[ImageRef] = field(default_factory=list)
    links: list[LinkRef] = field(default_factory=list)
    date_meta: str = ""
    time_datetime: str = ""
    word_count: int = 0
    records: list[dict[str, Any]] = field(default_factory=list)
    schema_types: list[str] = field(default_factory=list)
    has_telephone: bool = False
    has_address: bool = False
    has_social: bool = False
    has_favicon: bool = False
    has_manifest: bool = False
    has_charset: bool = False
    html_lang: str = ""

    @property
    def internal_links(self) -> list[LinkRef]:
        """Links whose resolved origin matches the page origin."""
        base = self.base_url or self.url
        page_origin = origin_of(base)
        internal: list[LinkRef] = []
        for link in self.links:
            try:
                absolute = urljoin(base, link.href)
            except ValueError:
                continue
            if page_origin and origin_of(absolute) == page_origin:
                internal.append(link)
        return internal


def _attr(tag: Tag, name: str) -> str:
    value = tag.get(name)
    if isinstance(value, list):
        return " ".join(value)
    return value or ""


def _rel_tokens(tag: Tag) -> list[str]:
    rel = tag.get("rel") or []
    if isinstance(rel, str):
        rel = rel.split()
    return [r.lower() for r in rel]


def _named_meta(soup: BeautifulSoup, name: str) -> Optional[Tag]:
    return soup.find("meta", attrs={"name": lambda v: bool(v) and v.strip().lower() == name})


class SignalExtractor:
    """Turn a fetched page into :class:`PageSignals`."""

    def extract_page(self, page: Page, url: Optional[str] = None) -> PageSignals:
        """Extract signals from *page*, reporting them against *url*.

        Links are always resolved against the final post-redirect URL.
        """
        signals = self.extract(page.text, page.headers, url or page.url)
        signals.base_url = page.url
        return signals

    def extract(self, html: str, headers: Optional[dict[str, str]], url: str) -> PageSignals:
        html = html or ""
        headers = {k.lower(): v for k, v in (headers or {}).items()}
        soup = BeautifulSoup(html, "html.parser")
        signals = PageSignals(url=url, raw=html)

        signals.records = extract_structured_data(soup)
        signals.schema_types = extract_schema_types(signals.records)

        self._head(soup, signals)
        signals.robots_header = headers.get("x-robots-tag", "")
        signals.headings = [int(h.name[1]) for h in soup.find_all(_HEADING_RE)]
        signals.http_asset_refs = sum(
            1
            for tag in soup.find_all(True)
            for attr in ("src", "href")
            if _attr(tag, attr).strip().lower().startswith("http://")
        )
        signals.images = [
            ImageRef(
                src=_attr(img, "src"),
                alt=img.get("alt"),
                loading=_attr(img, "loading").strip().lower(),
            )
            for img in soup.find_all("img")
        ]
        signals.links = [
            LinkRef(href=_attr(a, "href").strip(), text=collapse_whitespace(a.get_text(" ")))
            for a in soup.find_all("a", href=True)
        ]
        self._dates(soup, signals)
        self._entity(soup, signals)

        html_tag = soup.find("html")
        if html_tag is not None:
            signals.html_lang = _attr(html_tag, "lang").strip()

        # Text measurement goes last: it strips script and style from the tree.
        for tag in soup(["script", "style"]):
            tag.decompose()
        signals.word_count = len(soup.get_text(" ").split())

        logger.debug(
            "Extracted signals for %s: %d headings, %d images, %d links, %d words",
            url, len(signals.headings), len(signals.images), len(signals.links),
            signals.word_count,
        )
        return signals

    # ------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------

    def _head(self, soup: BeautifulSoup, signals: PageSignals) -> None:
        if soup.title is not None:
            signals.title = collapse_whitespace(soup.title.get_text())

        description = _named_meta(soup, "description")
        if description is not None:
            signals.meta_description = _attr(description, "content").strip()
        signals.has_viewport = _named_meta(soup, "viewport") is not None

        robots = _named_meta(soup, "robots")
        if robots is not None:
            signals.robots_meta = _attr(robots, "content")

        for meta in soup.find_all("meta", attrs={"property": True}):
            prop = _attr(meta, "property").strip().lower()
            if prop.startswith("og:"):
                signals.og_properties.add(prop)

        for meta in soup.find_all("meta"):
            if meta.has_attr("charset"):
                signals.has_charset = True
            elif "charset=" in _attr(meta, "content").lower():
                signals.has_charset = True

        for link in soup.find_all("link"):
            rel = _rel_tokens(link)
            if "canonical" in rel and not signals.canonical:
                signals.canonical = _attr(link, "href").strip()
            if "icon" in rel:
                signals.has_favicon = True
            if "manifest" in rel:
                signals.has_manifest = True
        if "/favicon.ico" in signals.raw.lower():
            signals.has_favicon = True

    def _dates(self, soup: BeautifulSoup, signals: PageSignals) -> None:
        for meta in soup.find_all("meta", attrs={"content": True}):
            keys = " ".join(
                _attr(meta, a).lower() for a in ("name", "property", "itemprop", "http-equiv")
            )
            content = _attr(meta, "content").strip()
            if content and any(marker in keys for marker in _DATE_MARKERS):
                signals.date_meta = content
                break
        time_tag = soup.find("time", attrs={"datetime": True})
        if time_tag is not None:
            signals.time_datetime = _attr(time_tag, "datetime").strip()

    def _entity(self, soup: BeautifulSoup, signals: PageSignals) -> None:
        nodes = [n for record in signals.records for n in walk_nodes(record)]

        if any(link.href.lower().startswith("tel:") for link in signals.links):
            signals.has_telephone = True
        elif soup.find(attrs={"itemprop": "telephone"}) is not None:
            signals.has_telephone = True
        elif any(str(n.get("telephone") or "").strip() for n in nodes):
            signals.has_telephone = True

        for node in nodes:
            addresses = node.get("address")
            addresses = addresses if isinstance(addresses, list) else [addresses]
            if any(isinstance(a, dict) and a.get("streetAddress") for a in addresses):
                signals.has_address = True
                break

        if any(n.get("sameAs") for n in nodes):
            signals.has_social = True
        else:
            hrefs = [link.href for link in signals.links]
            hrefs += [_attr(link, "href") for link in soup.find_all("link", href=True)]
            signals.has_social = any(host_matches(h, SOCIAL_DOMAINS) for h in hrefs)
