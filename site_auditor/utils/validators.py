"""Input validation utilities for origins and email addresses."""

import re
from dataclasses import dataclass, field
from typing import Union
from urllib.parse import urlsplit

from site_auditor.exceptions import EmptyBatchError, InvalidOriginError

MAX_BATCH_SIZE = 10

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*://")
_DEFAULT_PORTS = {"http": 80, "https": 443}


def normalize_origin(value: str) -> str:
    """Reduce free-form input to a canonical ``scheme://host[:port]`` origin.

    Args:
        value: A URL or bare host name.  ``https://`` is assumed when no
            scheme is given.

    Returns:
        The origin, with the host lower-cased, default ports removed and no
        trailing slash.

    Raises:
        InvalidOriginError: When the value cannot be parsed as an http(s) URL.

    Examples:
        >>> normalize_origin("Example.com/pricing?x=1")
        'https://example.com'
        >>> normalize_origin("http://localhost:8080/")
        'http://localhost:8080'
    """
    if not isinstance(value, str) or not value.strip():
        raise InvalidOriginError(str(value), "URL is empty or not a string.")
    raw = value.strip()
    candidate = raw if _SCHEME_RE.match(raw) else f"https://{raw}"

    try:
        parsed = urlsplit(candidate)
        port = parsed.port
    except ValueError as exc:
        raise InvalidOriginError(raw, f"URL parse error: {exc}") from exc

    scheme = parsed.scheme.lower()
    if scheme not in _DEFAULT_PORTS:
        raise InvalidOriginError(raw, f"Invalid scheme: {scheme!r}. Must be http or https.")
    host = parsed.hostname or ""
    if not host:
        raise InvalidOriginError(raw, "URL has no network location (domain).")
    if len(host) > 253 or any(ch.isspace() for ch in host):
        raise InvalidOriginError(raw, "Invalid hostname.")

    if ":" in host:
        host = f"[{host}]"
    if port is not None and port != _DEFAULT_PORTS[scheme]:
        return f"{scheme}://{host}:{port}"
    return f"{scheme}://{host}"


@dataclass
class NormalizedBatch:
    """Deduplicated origins plus the inputs that could not be used."""

    origins: list[str] = field(default_factory=list)
    rejected: list[tuple[str, str]] = field(default_factory=list)


def normalize_batch(
    values: Union[str, list[str]],
    limit: int = MAX_BATCH_SIZE,
) -> NormalizedBatch:
    """Normalise a single URL or a list of URLs into an ordered origin batch.

    Duplicates are removed by exact string comparison of the derived origins,
    keeping the first occurrence.  At most *limit* origins are kept.  Inputs
    that fail to parse are reported in ``rejected`` rather than dropped.

    Raises:
        EmptyBatchError: When no valid origin remains.
    """
    items = [values] if isinstance(values, str) else list(values or [])
    batch = NormalizedBatch()
    seen: set[str] = set()
    for item in items:
        try:
            origin = normalize_origin(item)
        except InvalidOriginError as exc:
            batch.rejected.append((str(item), exc.reason))
            continue
        if origin in seen:
            continue
        seen.add(origin)
        batch.origins.append(origin)

    batch.origins = batch.origins[:limit]
    if not batch.origins:
        raise EmptyBatchError()
    return batch


def validate_email(email: str) -> tuple[bool, str]:
    """Validate an email address.

    Args:
        email: The email address to validate.

    Returns:
        Tuple of (is_valid, error_message).
    """
    if not email or not isinstance(email, str):
        return False, "Email is empty or not a string."
    email = email.strip()
    pattern = re.compile(
        r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@"
        r"[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
        r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
    )
    if not pattern.match(email):
        return False, "Email format is invalid."
    if len(email) > 320:
        return False, "Email exceeds maximum length (320 chars)."
    domain = email.split("@")[1]
    if "." not in domain:
        return False, "Email domain must contain at least one dot."
    if re.search(r"\.(png|jpe?g|gif|svg|webp)$", domain, re.I):
        return False, "Email domain looks like an asset filename."
    return True, ""
