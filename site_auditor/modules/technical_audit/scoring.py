"""Weighted category scoring and letter grades."""

import logging
from dataclasses import dataclass
from typing import Optional

from site_auditor.config import ScoringWeights
from site_auditor.models.audit import FAIL, PASS, WARN, AuditSummary, CategoryScore, Issue
from site_auditor.utils.helpers import round_half_up

logger = logging.getLogger(__name__)

STATUS_VALUE: dict[str, float] = {PASS: 1.0, WARN: 0.5, FAIL: 0.0}

_GRADE_MAP = [
    (90, "A"),
    (80, "B"),
    (70, "C"),
    (60, "D"),
    (0, "F"),
]


def grade_for(score: float) -> str:
    for threshold, letter in _GRADE_MAP:
        if score >= threshold:
            return letter
    return "F"


@dataclass(frozen=True)
class ScoreCard:
    summary: AuditSummary
    categories: list[CategoryScore]


class ScoringEngine:
    """Turn a list of issues into category scores, an overall score and a grade.

    Each category is scored only against its own checks: pass counts 1, warn
    0.5, fail 0, and a check with no issue counts as fail.  The category
    percentage is then scaled by the category's share of 100.
    """

    def __init__(self, weights: Optional[ScoringWeights] = None) -> None:
        self.weights = weights or ScoringWeights.default()

    def score(self, issues: list[Issue]) -> ScoreCard:
        by_id: dict[str, Issue] = {}
        for issue in issues:
            by_id.setdefault(issue.id, issue)

        overall = 0.0
        categories: list[CategoryScore] = []
        for category, share in self.weights.category_weights.items():
            table = self.weights.check_weights.get(category, {})
            total = sum(table.values()) or 1
            raw = 0.0
            for check_id, weight in table.items():
                issue = by_id.get(check_id)
                raw += STATUS_VALUE.get(issue.status if issue else FAIL, 0.0) * weight
            pct = raw * 100 / total
            weighted = pct * share / 100
            overall += weighted
            categories.append(
                CategoryScore(id=category, score=round_half_up(pct), weighted=round_half_up(weighted))
            )

        rounded = round_half_up(overall)
        logger.debug("Scored %d issues: overall %.2f", len(issues), overall)
        return ScoreCard(
            summary=AuditSummary(overall=rounded, grade=grade_for(rounded)),
            categories=categories,
        )
