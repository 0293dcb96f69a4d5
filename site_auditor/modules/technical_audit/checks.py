"""Issue catalogue and the evaluator that maps page signals to issues.

Each catalogue entry produces exactly one :class:`Issue` per evaluated page.
Thresholds are fixed here; only the weights used for scoring are
configurable.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional

from site_auditor.models.audit import FAIL, PASS, WARN, Issue, Page
from site_auditor.modules.technical_audit.signals import (
    OG_REQUIRED,
    PageSignals,
    SignalExtractor,
)
from site_auditor.modules.technical_audit.structured_data import has_schema_type
from site_auditor.utils.helpers import origin_of

logger = logging.getLogger(__name__)

_ROBOTS_BLOCK_RE = re.compile(r"noindex|nofollow", re.I)
_CAMERA_NAME_RE = re.compile(r"^IMG[_-]?\d+|^image\d+", re.I)


@dataclass(frozen=True)
class CheckSpec:
    id: str
    category: str
    fix: str


CHECK_CATALOGUE: tuple[CheckSpec, ...] = (
    CheckSpec("title_tag", "onpage_seo", "Craft unique, descriptive titles (≤60 chars)."),
    CheckSpec("meta_description", "onpage_seo", "Write ~150-char descriptions matching intent."),
    CheckSpec("viewport_meta", "technical_seo", "Add responsive viewport meta tag."),
    CheckSpec("h1_tag", "onpage_seo", "Use exactly one H1."),
    CheckSpec("heading_hierarchy", "onpage_seo", "Follow logical H2/H3 progression."),
    CheckSpec("canonical_tag", "technical_seo", "Add self-referencing canonical."),
    CheckSpec("meta_robots", "technical_seo", "Remove accidental noindex/nofollow."),
    CheckSpec("open_graph", "entity_trust", "Complete OG tags."),
    CheckSpec("https_mixed_content", "technical_seo", "Serve assets over HTTPS."),
    CheckSpec("image_alt", "onpage_seo", "Add alt text to important images."),
    CheckSpec("image_lazy", "onpage_seo", 'Add loading="lazy" to non-critical images.'),
    CheckSpec(
        "image_filename", "onpage_seo", "Use descriptive filenames (e.g., blue-widget.jpg)."
    ),
    CheckSpec(
        "internal_links", "onpage_seo", "Add contextual internal links and diversify anchors."
    ),
    CheckSpec("publish_date", "onpage_seo", "Expose publish/updated dates on content pages."),
    CheckSpec(
        "word_count", "onpage_seo", "Increase content depth; cover user questions and subtopics."
    ),
    CheckSpec("entity_schema_org", "entity_trust", "Add Organization/LocalBusiness JSON-LD."),
    CheckSpec(
        "entity_nap", "entity_trust", "Expose business phone and postal address (JSON-LD or visible)."
    ),
    CheckSpec("entity_social_profiles", "entity_trust", "Add sameAs links to major social profiles."),
    CheckSpec("hygiene_favicon", "hygiene", 'Add <link rel="icon"> or /favicon.ico.'),
    CheckSpec("hygiene_manifest", "hygiene", "Add a web app manifest (optional)."),
    CheckSpec("hygiene_charset", "hygiene", 'Add <meta charset="utf-8"> early in <head>.'),
    CheckSpec("hygiene_html_lang", "hygiene", 'Set <html lang="en-GB"> (or appropriate).'),
    CheckSpec("hygiene_copyright_year", "hygiene", "Update footer copyright to {year}."),
)

CHECK_IDS: tuple[str, ...] = tuple(check.id for check in CHECK_CATALOGUE)


def _graded(value: float, pass_at: float, warn_at: float) -> str:
    """Higher-is-better three-way grading."""
    if value >= pass_at:
        return PASS
    if value >= warn_at:
        return WARN
    return FAIL


def is_descriptive_filename(src: str) -> bool:
    filename = (src or "").split("?")[0].split("#")[0].rstrip("/").split("/")[-1]
    return bool(re.search(r"[a-zA-Z]", filename)) and not _CAMERA_NAME_RE.match(filename)


# ---------------------------------------------------------------------------
# Individual measurements
# ---------------------------------------------------------------------------

def _title(s: PageSignals, year: int) -> tuple[str, dict[str, Any]]:
    length = len(s.title)
    if 15 <= length <= 60:
        status = PASS
    elif 8 <= length <= 70:
        status = WARN
    else:
        status = FAIL
    return status, {"length": length, "title": s.title}


def _meta_description(s: PageSignals, year: int) -> tuple[str, dict[str, Any]]:
    length = len(s.meta_description)
    if length == 0:
        status = FAIL
    elif 70 <= length <= 160:
        status = PASS
    else:
        status = WARN
    return status, {"length": length}


def _viewport(s: PageSignals, year: int) -> tuple[str, dict[str, Any]]:
    return (PASS if s.has_viewport else FAIL), {}


def _h1(s: PageSignals, year: int) -> tuple[str, dict[str, Any]]:
    count = s.headings.count(1)
    return (PASS if count == 1 else WARN), {"h1Count": count}


def _hierarchy(s: PageSignals, year: int) -> tuple[str, dict[str, Any]]:
    ok = all(cur - prev <= 1 for prev, cur in zip(s.headings, s.headings[1:]))
    return (PASS if ok else WARN), {"order": [f"H{level}" for level in s.headings]}


def _canonical(s: PageSignals, year: int) -> tuple[str, dict[str, Any]]:
    target = origin_of(s.canonical)
    ok = bool(target) and target == origin_of(s.url)
    return (PASS if ok else WARN), {"canonical": s.canonical}


def _robots(s: PageSignals, year: int) -> tuple[str, dict[str, Any]]:
    blocked = bool(_ROBOTS_BLOCK_RE.search(s.robots_meta) or _ROBOTS_BLOCK_RE.search(s.robots_header))
    return (FAIL if blocked else PASS), {"meta": s.robots_meta, "header": s.robots_header}


def _open_graph(s: PageSignals, year: int) -> tuple[str, dict[str, Any]]:
    missing = [p for p in OG_REQUIRED if p not in s.og_properties]
    if not missing:
        status = PASS
    elif len(missing) == len(OG_REQUIRED):
        status = FAIL
    else:
        status = WARN
    return status, {"missing": missing}


def _mixed_content(s: PageSignals, year: int) -> tuple[str, dict[str, Any]]:
    count = s.http_asset_refs
    if count == 0:
        status = PASS
    elif count < 3:
        status = WARN
    else:
        status = FAIL
    return status, {"httpAssets": count}


def _image_alt(s: PageSignals, year: int) -> tuple[str, dict[str, Any]]:
    total = len(s.images)
    missing = sum(1 for img in s.images if img.alt is None)
    ratio = missing / total if total else 0.0
    if ratio <= 0.10:
        status = PASS
    elif ratio <= 0.30:
        status = WARN
    else:
        status = FAIL
    return status, {"missingRatio": ratio}


def _image_lazy(s: PageSignals, year: int) -> tuple[str, dict[str, Any]]:
    total = len(s.images)
    lazy = sum(1 for img in s.images if img.loading == "lazy")
    ratio = lazy / total if total else 0.0
    return _graded(ratio, 0.80, 0.50), {"lazyRatio": ratio}


def _image_filename(s: PageSignals, year: int) -> tuple[str, dict[str, Any]]:
    total = len(s.images)
    descriptive = sum(1 for img in s.images if is_descriptive_filename(img.src))
    ratio = descriptive / total if total else 1.0
    return _graded(ratio, 0.50, 0.30), {"descriptiveRatio": ratio}


def _internal_links(s: PageSignals, year: int) -> tuple[str, dict[str, Any]]:
    internal = s.internal_links
    texts = [link.text.lower() for link in internal if link.text]
    diversity = len(set(texts)) / len(texts) if texts else 1.0
    if len(internal) >= 5 and diversity >= 0.4:
        status = PASS
    elif len(internal) >= 3:
        status = WARN
    else:
        status = FAIL
    return status, {"internalCount": len(internal), "anchorDiversity": diversity}


def _publish_date(s: PageSignals, year: int) -> tuple[str, dict[str, Any]]:
    found = bool(s.date_meta or s.time_datetime)
    return (PASS if found else WARN), {"dateMeta": s.date_meta, "timeTag": s.time_datetime}


def _word_count(s: PageSignals, year: int) -> tuple[str, dict[str, Any]]:
    return _graded(s.word_count, 300, 200), {"words": s.word_count}


def _schema_org(s: PageSignals, year: int) -> tuple[str, dict[str, Any]]:
    ok = has_schema_type(s.schema_types, "Organization", "LocalBusiness")
    return (PASS if ok else WARN), {}


def _nap(s: PageSignals, year: int) -> tuple[str, dict[str, Any]]:
    ok = s.has_telephone or s.has_address
    return (PASS if ok else WARN), {"hasTel": s.has_telephone, "hasAddress": s.has_address}


def _presence(flag: Callable[[PageSignals], bool]):
    def measure(s: PageSignals, year: int) -> tuple[str, dict[str, Any]]:
        return (PASS if flag(s) else WARN), {}
    return measure


def _copyright_year(s: PageSignals, year: int) -> tuple[str, dict[str, Any]]:
    return (PASS if str(year) in s.raw else WARN), {"year": year}


_MEASUREMENTS: dict[str, Callable[[PageSignals, int], tuple[str, dict[str, Any]]]] = {
    "title_tag": _title,
    "meta_description": _meta_description,
    "viewport_meta": _viewport,
    "h1_tag": _h1,
    "heading_hierarchy": _hierarchy,
    "canonical_tag": _canonical,
    "meta_robots": _robots,
    "open_graph": _open_graph,
    "https_mixed_content": _mixed_content,
    "image_alt": _image_alt,
    "image_lazy": _image_lazy,
    "image_filename": _image_filename,
    "internal_links": _internal_links,
    "publish_date": _publish_date,
    "word_count": _word_count,
    "entity_schema_org": _schema_org,
    "entity_nap": _nap,
    "entity_social_profiles": _presence(lambda s: s.has_social),
    "hygiene_favicon": _presence(lambda s: s.has_favicon),
    "hygiene_manifest": _presence(lambda s: s.has_manifest),
    "hygiene_charset": _presence(lambda s: s.has_charset),
    "hygiene_html_lang": _presence(lambda s: bool(s.html_lang)),
    "hygiene_copyright_year": _copyright_year,
}


# ---------------------------------------------------------------------------
# IssueEvaluator
# ---------------------------------------------------------------------------

class IssueEvaluator:
    """Evaluate a page against the fixed check catalogue."""

    def __init__(self, extractor: Optional[SignalExtractor] = None) -> None:
        self._extractor = extractor or SignalExtractor()

    def evaluate_page(
        self, page: Page, url: Optional[str] = None, year: Optional[int] = None
    ) -> list[Issue]:
        return self.evaluate(self._extractor.extract_page(page, url), year=year)

    def evaluate(self, signals: PageSignals, year: Optional[int] = None) -> list[Issue]:
        """Return one issue per catalogue entry, in catalogue order.

        Args:
            signals: Signals extracted from the page.
            year: Year expected in the copyright notice.  Defaults to the
                current calendar year.
        """
        year = year or datetime.now().year
        issues: list[Issue] = []
        for check in CHECK_CATALOGUE:
            status, details = _MEASUREMENTS[check.id](signals, year)
            issues.append(
                Issue(
                    id=check.id,
                    status=status,
                    category=check.category,
                    page=signals.url,
                    fix=check.fix.format(year=year),
                    details=details,
                )
            )
        failing = sum(1 for i in issues if i.status == FAIL)
        logger.debug("Evaluated %s: %d checks, %d failing", signals.url, len(issues), failing)
        return issues
