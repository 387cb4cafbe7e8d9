"""
Audit: latency of the first ad render.
"""

from typing import Iterable, Optional, Set

from ..core.analyzer import AdTraceAnalyzer
from ..core.types import Artifacts, AuditResult, ScoreCurveParams, TimelineEvent
from ..extractors import Classifier
from ..formatters import format_seconds
from ..scoring import clamp_passing, score
from .base import Audit

# Point of diminishing returns and median, in ms
DEFAULT_PARAMS = ScoreCurveParams(p10=3000, median=4000)

PAINT_EVENT_NAMES = frozenset(['Paint'])


def ad_paint_time(events: Iterable[TimelineEvent], ad_frame_ids: Set[str]) -> Optional[float]:
    """
    Time from navigation start to the first paint inside an ad iframe.

    Navigation start is the first navigationStart event, or the first event
    of the trace when there is none.

    Returns:
        Milliseconds, or None when no ad frame painted
    """
    navigation_start = None
    first_event = None
    first_paint = None
    for event in events:
        if first_event is None:
            first_event = event.timestamp
        if navigation_start is None and event.name == 'navigationStart':
            navigation_start = event.timestamp
        if (first_paint is None and event.name in PAINT_EVENT_NAMES and
                event.frame_id in ad_frame_ids):
            first_paint = event.timestamp

    if first_paint is None:
        return None
    if navigation_start is None:
        navigation_start = first_event
    return first_paint - navigation_start


class FirstAdPaintAudit(Audit):
    """Scores the time until the first ad iframe paints."""

    id = 'first-ad-paint'

    def __init__(self, params: ScoreCurveParams = DEFAULT_PARAMS):
        self.params = params

    def audit(self, artifacts: Artifacts, analyzer: AdTraceAnalyzer, classifier: Classifier) -> AuditResult:
        analysis = self.analysis(artifacts, analyzer)

        ad_frame_ids = {
            element['frameId'] for element in artifacts.iframe_elements
            if element.get('frameId') and classifier.is_ad_iframe(element)
        }
        timing = ad_paint_time(analysis.events, ad_frame_ids)

        if timing is None or not timing > 0:
            return self.not_applicable('NO_AD_RENDERED')

        return self.product(
            score=clamp_passing(score(timing, self.params)),
            numeric_value=timing / 1000,
            display_value=format_seconds(timing),
        )
