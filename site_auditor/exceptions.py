"""Exception hierarchy for the site audit engine."""

from typing import Optional


class AuditError(Exception):
    """Base class for every error raised by the audit engine."""

    status_code = 500


class InputError(AuditError):
    """The submitted URL batch cannot be audited."""

    status_code = 400


class InvalidOriginError(InputError):
    """A single input string could not be turned into an origin."""

    def __init__(self, value: str, reason: str) -> None:
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid URL {value!r}: {reason}")


class EmptyBatchError(InputError):
    """Normalisation left no origin to audit."""

    def __init__(self, message: str = "No valid URL supplied.") -> None:
        super().__init__(message)


class FetchError(AuditError):
    """A page that the audit depends on could not be retrieved."""

    status_code = 502

    def __init__(self, url: str, reason: str, status: Optional[int] = None) -> None:
        self.url = url
        self.reason = reason
        self.status = status
        super().__init__(f"Failed to fetch {url}: {reason}")


class ConfigError(AuditError):
    """Settings or weight tables are inconsistent."""
