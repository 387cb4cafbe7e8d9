"""
Audit: layout shifts caused by ads or happening near ads.
"""

import math
from typing import Any, Dict, Iterable, List

from ..core.analyzer import AdTraceAnalyzer
from ..core.types import Artifacts, AuditResult, ScoreCurveParams, TimelineEvent
from ..extractors import Classifier, overlaps, to_client_rect
from ..formatters import format_unitless
from ..scoring import score
from .base import Audit

DEFAULT_PARAMS = ScoreCurveParams(p10=0.05, median=0.25)


RECT_EDGES = ('left', 'right', 'top', 'bottom')


def is_ad_shift(shift_event: TimelineEvent, ads: Iterable[Dict[str, Any]]) -> bool:
    """
    True if any node moved by the shift started out overlapping an ad slot.

    Impacted nodes that are not mappings, and ads without a complete
    clientRect, never match.
    """
    impacted_nodes = shift_event.payload.get('impacted_nodes')
    if not isinstance(impacted_nodes, list):
        return False
    old_rects = [
        to_client_rect(_numbers(node.get('old_rect')))
        for node in impacted_nodes if isinstance(node, dict)
    ]
    for ad in ads:
        ad_rect = ad.get('clientRect')
        if not isinstance(ad_rect, dict) or not all(_is_number(ad_rect.get(edge)) for edge in RECT_EDGES):
            continue
        if any(overlaps(shift_rect, ad_rect) for shift_rect in old_rects):
            return True
    return False


def shift_score(data: Dict[str, Any]) -> float:
    """Score of one LayoutShift payload; anything non-numeric counts as 0."""
    value = data.get('score')
    return float(value) if _is_number(value) and math.isfinite(value) else 0.0


def compute_ad_shift(
    shift_events: Iterable[TimelineEvent],
    ads: List[Dict[str, Any]],
    tag_load_ts: float
) -> Dict[str, float]:
    """
    Sum main-frame shift scores, split into ad shifts and ad shifts before
    the ad tag loaded. Shifts right after user input are skipped.
    """
    details = {
        'cumulative_shift': 0.0,
        'num_shifts': 0,
        'cumulative_ad_shift': 0.0,
        'num_ad_shifts': 0,
        'cumulative_pre_impl_tag_ad_shift': 0.0,
        'num_pre_impl_tag_ad_shifts': 0,
    }
    for event in shift_events:
        data = event.payload
        if not data or not data.get('is_main_frame') or data.get('had_recent_input'):
            continue
        value = shift_score(data)
        details['cumulative_shift'] += value
        details['num_shifts'] += 1
        if is_ad_shift(event, ads):
            details['cumulative_ad_shift'] += value
            details['num_ad_shifts'] += 1
            if event.timestamp < tag_load_ts:
                details['cumulative_pre_impl_tag_ad_shift'] += value
                details['num_pre_impl_tag_ad_shifts'] += 1
    return details


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _numbers(rect: Any) -> List[float]:
    if not isinstance(rect, list) or not all(_is_number(v) for v in rect):
        return []
    return rect


class CumulativeAdShiftAudit(Audit):
    """Scores the cumulative layout shift attributed to ad slots."""

    id = 'cumulative-ad-shift'

    def __init__(self, params: ScoreCurveParams = DEFAULT_PARAMS):
        self.params = params

    def audit(self, artifacts: Artifacts, analyzer: AdTraceAnalyzer, classifier: Classifier) -> AuditResult:
        analysis = self.analysis(artifacts, analyzer)

        shift_events = [event for event in analysis.events if event.name == 'LayoutShift']
        if not shift_events:
            return self.not_applicable('NO_LAYOUT_SHIFTS')

        tag_load_ts = next(
            (event.timestamp for event in analysis.events
             if event.script_url and classifier.is_impl_tag(event.script_url)),
            math.inf
        )

        ads = [element for element in artifacts.iframe_elements if classifier.is_ad_iframe(element)]
        if not ads:
            return self.not_applicable('NO_AD_RENDERED')

        details = compute_ad_shift(shift_events, ads, tag_load_ts)
        raw_score = details['cumulative_ad_shift']
        return self.product(
            score=score(raw_score, self.params),
            numeric_value=raw_score,
            display_value=format_unitless(raw_score),
            details=details,
        )
