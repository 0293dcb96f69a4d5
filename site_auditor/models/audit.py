"""Audit data model.

Every object here is created fresh for one origin audit and serialised to the
JSON contract through ``to_dict()``.  Nothing is persisted.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

PASS = "pass"
WARN = "warn"
FAIL = "fail"

CATEGORIES: tuple[str, ...] = ("technical_seo", "onpage_seo", "entity_trust", "hygiene")


@dataclass
class Page:
    """A fetched document, after redirects."""

    url: str
    text: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    status: int = 0
    ok: bool = False

    def header(self, name: str, default: str = "") -> str:
        return self.headers.get(name.lower(), default)


@dataclass(frozen=True)
class Issue:
    """Outcome of one catalogue check against one page."""

    id: str
    status: str
    category: str
    page: str
    fix: str
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "status": self.status,
            "details": dict(self.details),
            "fix": self.fix,
            "page": self.page,
            "category": self.category,
        }


@dataclass(frozen=True)
class CategoryScore:
    id: str
    score: int
    weighted: int

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "score": self.score, "weighted": self.weighted}


@dataclass(frozen=True)
class AuditSummary:
    overall: int
    grade: str

    def to_dict(self) -> dict[str, Any]:
        return {"overall": self.overall, "grade": self.grade}


@dataclass(frozen=True)
class Contact:
    """A contact entity found during the small crawl."""

    type: str
    value: str
    source_url: str
    confidence: float
    context: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "type": self.type,
            "value": self.value,
            "sourceUrl": self.source_url,
            "confidence": self.confidence,
        }
        if self.context:
            data["context"] = self.context
        return data


@dataclass(frozen=True)
class OwnerCandidate:
    """Officer or owner returned by the registry enrichment."""

    name: str
    title: str
    source: str
    source_url: str
    confidence: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "title": self.title,
            "source": self.source,
            "sourceUrl": self.source_url,
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class CoreFile:
    exists: bool = False
    url: Optional[str] = None
    last_modified: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"exists": self.exists}
        if self.url:
            data["url"] = self.url
        if self.last_modified:
            data["lastModified"] = self.last_modified
        return data


@dataclass(frozen=True)
class CollaboratorOutcome:
    """Whether an optional collaborator contributed data, and why not."""

    status: str
    reason: Optional[str] = None

    @classmethod
    def present(cls) -> "CollaboratorOutcome":
        return cls("present")

    @classmethod
    def absent(cls, reason: str) -> "CollaboratorOutcome":
        return cls("absent", reason)

    @property
    def is_present(self) -> bool:
        return self.status == "present"

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"status": self.status}
        if self.reason:
            data["reason"] = self.reason
        return data


@dataclass
class PageSpeedReport:
    mobile_score: Optional[int] = None
    desktop_score: Optional[int] = None
    top_actions: list[str] = field(default_factory=list)
    outcome: CollaboratorOutcome = field(
        default_factory=lambda: CollaboratorOutcome.absent("not_requested")
    )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "topActions": list(self.top_actions),
            "outcome": self.outcome.to_dict(),
        }
        if self.mobile_score is not None:
            data["mobileScore"] = self.mobile_score
        if self.desktop_score is not None:
            data["desktopScore"] = self.desktop_score
        return data


@dataclass
class AuditResult:
    """Aggregate root for one audited origin."""

    target: str
    summary: AuditSummary
    categories: list[CategoryScore]
    issues: list[Issue]
    files: dict[str, CoreFile]
    detected_types: list[str]
    suggestions: list[str]
    pagespeed: PageSpeedReport
    best_contact: Optional[Contact] = None
    contacts: list[Contact] = field(default_factory=list)
    owner_candidates: list[OwnerCandidate] = field(default_factory=list)
    enrichment: CollaboratorOutcome = field(
        default_factory=lambda: CollaboratorOutcome.absent("not_requested")
    )

    ok = True

    def issue(self, check_id: str) -> Optional[Issue]:
        for item in self.issues:
            if item.id == check_id:
                return item
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "target": self.target,
            "summary": self.summary.to_dict(),
            "categories": [c.to_dict() for c in self.categories],
            "issues": [i.to_dict() for i in self.issues],
            "files": {key: f.to_dict() for key, f in self.files.items()},
            "schema": {
                "detectedTypes": list(self.detected_types),
                "suggestions": list(self.suggestions),
            },
            "pagespeed": self.pagespeed.to_dict(),
            "contacts": {
                "best": self.best_contact.to_dict() if self.best_contact else None,
                "found": [c.to_dict() for c in self.contacts],
                "ownerCandidates": [o.to_dict() for o in self.owner_candidates],
                "enrichment": self.enrichment.to_dict(),
            },
        }


@dataclass(frozen=True)
class AuditFailure:
    """Typed failure for one entry of a batch."""

    target: str
    error_type: str
    message: str
    status: Optional[int] = None

    ok = False

    def to_dict(self) -> dict[str, Any]:
        error: dict[str, Any] = {"type": self.error_type, "message": self.message}
        if self.status is not None:
            error["status"] = self.status
        return {"target": self.target, "error": error}
