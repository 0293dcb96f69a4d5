"""Audit result dataclasses."""

from site_auditor.models.audit import (
    CATEGORIES,
    FAIL,
    PASS,
    WARN,
    AuditFailure,
    AuditResult,
    AuditSummary,
    CategoryScore,
    CollaboratorOutcome,
    Contact,
    CoreFile,
    Issue,
    OwnerCandidate,
    Page,
    PageSpeedReport,
)

__all__ = [
    "CATEGORIES",
    "PASS",
    "WARN",
    "FAIL",
    "AuditFailure",
    "AuditResult",
    "AuditSummary",
    "CategoryScore",
    "CollaboratorOutcome",
    "Contact",
    "CoreFile",
    "Issue",
    "OwnerCandidate",
    "Page",
    "PageSpeedReport",
]
