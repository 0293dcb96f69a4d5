"""JSON-LD extraction and schema.org type detection."""

import json
import logging
from typing import Any, Iterator, Union

from bs4 import BeautifulSoup

from site_auditor.utils.helpers import unique

logger = logging.getLogger(__name__)

RECOMMENDED_SCHEMA_TYPES: tuple[str, ...] = (
    "Organization",
    "LocalBusiness",
    "Service",
    "Product",
    "FAQPage",
    "HowTo",
    "VideoObject",
    "Review",
    "BreadcrumbList",
    "Article",
    "BlogPosting",
    "WebSite",
    "WebPage",
)


def _is_ld_json(type_attr: Any) -> bool:
    return isinstance(type_attr, str) and type_attr.strip().lower() == "application/ld+json"


def extract_structured_data(html: Union[str, BeautifulSoup]) -> list[dict[str, Any]]:
    """Parse every ``application/ld+json`` block in *html*.

    Blocks are parsed independently: a malformed block is skipped and the
    rest still contribute.  Top-level arrays are flattened and anything that
    is not a JSON object is discarded.
    """
    soup = html if isinstance(html, BeautifulSoup) else BeautifulSoup(html or "", "html.parser")
    records: list[dict[str, Any]] = []
    for index, script in enumerate(soup.find_all("script", attrs={"type": _is_ld_json})):
        raw = script.string if script.string is not None else script.get_text()
        if not raw or not raw.strip():
            continue
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.debug("Skipping malformed JSON-LD block #%d: %s", index, exc)
            continue
        items = data if isinstance(data, list) else [data]
        records.extend(item for item in items if isinstance(item, dict))
    return records


def _type_values(node: dict[str, Any]) -> list[str]:
    value = node.get("@type")
    if isinstance(value, str):
        return [value]
    if isinstance(value, list):
        return [v for v in value if isinstance(v, str)]
    return []


def walk_nodes(node: Any) -> Iterator[dict[str, Any]]:
    """Yield every mapping nested anywhere inside *node*, depth first."""
    if isinstance(node, dict):
        yield node
        for value in node.values():
            yield from walk_nodes(value)
    elif isinstance(node, list):
        for item in node:
            yield from walk_nodes(item)


def extract_schema_types(records: list[dict[str, Any]]) -> list[str]:
    """Every ``@type`` declared anywhere in *records*, deduplicated in order."""
    types: list[str] = []
    for record in records:
        for node in walk_nodes(record):
            types.extend(_type_values(node))
    return unique(types)


def has_schema_type(types: list[str], *names: str) -> bool:
    wanted = {n.lower() for n in names}
    return any(t.lower() in wanted for t in types)


def iter_typed(records: list[dict[str, Any]], name: str) -> Iterator[dict[str, Any]]:
    """Yield every node (at any depth) whose ``@type`` includes *name*."""
    for record in records:
        for node in walk_nodes(record):
            if any(t.lower() == name.lower() for t in _type_values(node)):
                yield node


def suggest_schema_types(detected: list[str], limit: int = 10) -> list[str]:
    """Recommended types that the page does not declare yet."""
    present = {t.lower() for t in detected}
    return [t for t in RECOMMENDED_SCHEMA_TYPES if t.lower() not in present][:limit]
