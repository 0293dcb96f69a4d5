"""General-purpose helper utilities for the site audit engine."""

import math
import re
from typing import Hashable, Iterable, TypeVar
from urllib.parse import urlsplit

T = TypeVar("T", bound=Hashable)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, with .5 always going up.

    Examples:
        >>> round_half_up(89.5)
        90
        >>> round_half_up(2.5)
        3
    """
    return int(math.floor(value + 0.5))


def unique(items: Iterable[T]) -> list[T]:
    """Deduplicate *items*, preserving first-seen order."""
    seen: set = set()
    result: list[T] = []
    for item in items:
        if item in seen:
            continue
        seen.add(item)
        result.append(item)
    return result


def extract_domain(url: str) -> str:
    """Extract the domain from a URL.

    Args:
        url: Full URL string.

    Returns:
        Domain name without protocol or path.
    """
    try:
        parsed = urlsplit(url if "://" in url else f"https://{url}")
        return (parsed.hostname or "").lower()
    except ValueError:
        return ""


def origin_of(url: str) -> str:
    """Return ``scheme://netloc`` for an absolute URL, or "" when it has none."""
    try:
        parsed = urlsplit(url)
    except ValueError:
        return ""
    if not parsed.scheme or not parsed.netloc:
        return ""
    return f"{parsed.scheme.lower()}://{parsed.netloc.lower()}"


def host_matches(url: str, domains: Iterable[str]) -> bool:
    """True when the host of *url* is one of *domains* or a subdomain of one."""
    host = extract_domain(url)
    if not host:
        return False
    return any(host == d or host.endswith("." + d) for d in domains)


def collapse_whitespace(text: str) -> str:
    return re.sub(r"\s+", " ", text or "").strip()
