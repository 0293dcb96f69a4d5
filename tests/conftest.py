"""Shared pytest fixtures for the site audit engine tests."""

import sys
from pathlib import Path
from typing import Optional, Union

import pytest

# Ensure project root is on sys.path so 'site_auditor' is importable.
_project_root = str(Path(__file__).resolve().parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from site_auditor.models.audit import Page  # noqa: E402
from site_auditor.modules.technical_audit.fetcher import PageFetcher  # noqa: E402

AUDIT_YEAR = 2026

DESCRIPTION = ("Handmade brass widgets from Leeds. " * 3).strip()
BODY_COPY = "Handmade brass widgets built to last. " * 60

GOOD_HTML = f"""<!DOCTYPE html>
<html lang="en-GB">
<head>
<meta charset="utf-8">
<title>Acme Widgets | Handmade widgets in Leeds</title>
<meta name="description" content="{DESCRIPTION}">
<meta name="viewport" content="width=device-width, initial-scale=1">
<meta name="robots" content="index, follow">
<link rel="canonical" href="https://acme.test/">
<meta property="og:title" content="Acme Widgets">
<meta property="og:description" content="Handmade widgets">
<meta property="og:image" content="https://acme.test/og-widgets.png">
<meta property="article:published_time" content="2026-01-10">
<link rel="icon" href="/favicon.ico">
<link rel="manifest" href="/site.webmanifest">
<script type="application/ld+json">
{{"@context": "https://schema.org", "@type": "Organization", "name": "Acme Widgets Ltd",
 "telephone": "+44 113 496 0000",
 "address": {{"@type": "PostalAddress", "streetAddress": "1 Mill Lane"}},
 "sameAs": ["https://www.linkedin.com/company/acme-widgets"],
 "contactPoint": {{"@type": "ContactPoint", "contactType": "sales",
   "email": "sales@acme.test", "telephone": "+44 113 496 0001"}}}}
</script>
</head>
<body>
<nav>
  <a href="/">Home</a>
  <a href="/about">About us</a>
  <a href="/contact">Contact</a>
  <a href="/shop">Shop widgets</a>
  <a href="https://acme.test/blog">Blog</a>
</nav>
<h1>Handmade widgets</h1>
<h2>Our range</h2>
<h3>Brass</h3>
<h2>Why Acme</h2>
<img src="/img/brass-widget.jpg" alt="Brass widget" loading="lazy">
<img src="/img/steel-widget.webp" alt="Steel widget" loading="lazy">
<p>{BODY_COPY}</p>
<footer>
  <a href="mailto:Hello@Acme.test?subject=Hi">Email us</a>
  &copy; 2026 Acme Widgets
</footer>
</body>
</html>
"""

BARE_HTML = "<html><body><p>Hello</p></body></html>"

ResponseSpec = Union[Page, Exception, str]


class FakeFetcher(PageFetcher):
    """PageFetcher that serves canned responses instead of using the network.

    ``routes`` maps absolute URLs to a :class:`Page`, an HTML string (served
    as 200) or an exception to raise.  Unknown URLs answer 404.
    """

    def __init__(self, routes: Optional[dict[str, ResponseSpec]] = None) -> None:
        super().__init__()
        self.routes: dict[str, ResponseSpec] = dict(routes or {})
        self.calls: list[str] = []

    async def fetch(self, url: str, headers: Optional[dict[str, str]] = None) -> Page:
        self.calls.append(url)
        response = self.routes.get(url)
        if response is None:
            return Page(url=url, status=404, ok=False)
        if isinstance(response, Exception):
            raise response
        if isinstance(response, str):
            return Page(url=url, text=response, headers={"content-type": "text/html"}, status=200, ok=True)
        return response


@pytest.fixture()
def good_html() -> str:
    return GOOD_HTML


@pytest.fixture()
def bare_html() -> str:
    return BARE_HTML


@pytest.fixture()
def fake_fetcher():
    """Factory for :class:`FakeFetcher` instances."""
    def _make(routes: Optional[dict[str, ResponseSpec]] = None) -> FakeFetcher:
        return FakeFetcher(routes)
    return _make
