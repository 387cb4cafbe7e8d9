"""Per-metric audit wrappers around the analysis core."""

from typing import Dict, Optional

from ..core.analyzer import AdTraceAnalyzer
from ..core.types import Artifacts, AuditResult
from ..extractors import Classifier, PublisherAdsClassifier
from .base import Audit, NOT_APPLICABLE
from .cumulative_ad_shift import CumulativeAdShiftAudit
from .first_ad_paint import FirstAdPaintAudit
from .gpt_bids_parallel import GptBidsParallelAudit


def default_audits():
    return [GptBidsParallelAudit(), FirstAdPaintAudit(), CumulativeAdShiftAudit()]


def run_audits(
    artifacts: Artifacts,
    analyzer: Optional[AdTraceAnalyzer] = None,
    classifier: Optional[Classifier] = None
) -> Dict[str, AuditResult]:
    """
    Run every audit over one set of artifacts.

    Args:
        artifacts: Captured page load
        analyzer: AdTraceAnalyzer to use (a default one when omitted)
        classifier: Resource classifier (PublisherAdsClassifier when omitted)

    Returns:
        Dictionary mapping audit id -> AuditResult
    """
    analyzer = analyzer or AdTraceAnalyzer()
    classifier = classifier or PublisherAdsClassifier()
    return {audit.id: audit.audit(artifacts, analyzer, classifier) for audit in default_audits()}


__all__ = [
    "Audit",
    "NOT_APPLICABLE",
    "CumulativeAdShiftAudit",
    "FirstAdPaintAudit",
    "GptBidsParallelAudit",
    "default_audits",
    "run_audits",
]
