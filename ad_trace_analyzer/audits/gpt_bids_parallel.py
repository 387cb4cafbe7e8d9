"""
Audit: bid requests should not wait for the ad tag implementation to load.
"""

from typing import Set

from ..core.analyzer import AdTraceAnalyzer
from ..core.types import Artifacts, AuditResult
from ..extractors import Classifier
from ..formatters import abbreviate_url
from .base import Audit

HEADINGS = [
    {'key': 'bidder', 'item_type': 'text', 'text': 'Bidder'},
    {'key': 'url', 'item_type': 'url', 'text': 'URL'},
    {'key': 'start_time', 'item_type': 'ms', 'text': 'Start time'},
    {'key': 'duration', 'item_type': 'ms', 'text': 'Duration'},
]


class GptBidsParallelAudit(Audit):
    """Flags bids whose critical path runs through the ad tag implementation."""

    id = 'gpt-bids-parallel'

    def audit(self, artifacts: Artifacts, analyzer: AdTraceAnalyzer, classifier: Classifier) -> AuditResult:
        analysis = self.analysis(artifacts, analyzer)
        requests = sorted(analysis.graph.requests.values(), key=lambda node: (node.start_time, node.request_id))

        impl_tag = next((node for node in requests if classifier.is_impl_tag(node.url)), None)
        if impl_tag is None:
            return self.not_applicable('NO_TAG')

        bids = [
            node for node in requests
            if classifier.is_bid_request(node) and node.frame_id == impl_tag.frame_id
        ]
        if not bids:
            return self.not_applicable('NO_BIDS')

        paths = analyzer.critical_paths(analysis, bids)

        rows = []
        seen: Set[str] = set()
        for bid in bids:
            if impl_tag not in paths[bid.request_id]:
                continue
            bidder = classifier.header_bidder(bid.url) or ''
            # One row per bidder
            if bidder in seen:
                continue
            seen.add(bidder)
            timing = analysis.timing[bid.request_id]
            rows.append({
                'bidder': bidder,
                'url': abbreviate_url(bid.url),
                'start_time': timing.start,
                'duration': timing.duration,
            })

        failed = len(rows) > 0
        return self.product(
            score=0.0 if failed else 1.0,
            numeric_value=len(rows),
            display_value=f"{len(rows)} serial bidder(s)" if failed else '',
            details=self.table(HEADINGS, rows) if failed else None,
        )
