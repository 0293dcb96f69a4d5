"""Technical SEO audit module.

The orchestrator lives in :mod:`site_auditor.modules.technical_audit.auditor`
and is imported from there, since it also depends on the outreach module.
"""

from site_auditor.modules.technical_audit.checks import CHECK_CATALOGUE, CHECK_IDS, IssueEvaluator
from site_auditor.modules.technical_audit.core_files import CoreFilesProbe
from site_auditor.modules.technical_audit.fetcher import PageFetcher
from site_auditor.modules.technical_audit.scoring import ScoringEngine
from site_auditor.modules.technical_audit.signals import SignalExtractor

__all__ = [
    "CHECK_CATALOGUE",
    "CHECK_IDS",
    "CoreFilesProbe",
    "IssueEvaluator",
    "PageFetcher",
    "ScoringEngine",
    "SignalExtractor",
]
