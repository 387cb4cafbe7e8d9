"""
Shared pieces of the audit wrappers.
"""

from typing import Any, Dict, List, Optional

from ..core.analyzer import AdTraceAnalyzer, AnalysisResult
from ..core.types import Artifacts, AuditResult
from ..extractors import Classifier

NOT_APPLICABLE = {
    'NO_TAG': 'No ad tag implementation was loaded',
    'NO_BIDS': 'No bid requests were made in the ad tag frame',
    'NO_AD_RENDERED': 'No ads were rendered',
    'NO_LAYOUT_SHIFTS': 'No layout shifts were recorded',
}


class Audit:
    """Base class: an audit reads artifacts and one analysis, and reports a score."""

    id = ''

    def audit(self, artifacts: Artifacts, analyzer: AdTraceAnalyzer, classifier: Classifier) -> AuditResult:
        raise NotImplementedError

    def analysis(self, artifacts: Artifacts, analyzer: AdTraceAnalyzer) -> AnalysisResult:
        # Cached by the analyzer, so every audit shares one graph and timing
        return analyzer.analyze_artifacts(artifacts)

    def not_applicable(self, reason_key: str) -> AuditResult:
        return {
            'id': self.id,
            'score': None,
            'numeric_value': None,
            'display_value': '',
            'details': None,
            'not_applicable_reason': NOT_APPLICABLE[reason_key],
        }

    def product(
        self,
        score: float,
        numeric_value: float,
        display_value: str = '',
        details: Optional[Dict[str, Any]] = None
    ) -> AuditResult:
        return {
            'id': self.id,
            'score': score,
            'numeric_value': numeric_value,
            'display_value': display_value,
            'details': details,
            'not_applicable_reason': None,
        }

    @staticmethod
    def table(headings: List[Dict[str, str]], items: List[Dict[str, Any]]) -> Dict[str, Any]:
        return {'type': 'table', 'headings': headings, 'items': items}
