"""
Resource classification predicates used by the audits.

The analysis core never looks at URLs; audits receive a Classifier and use
it to pick target and candidate nodes.
"""

import re
from typing import Any, Dict, Optional
from urllib.parse import urlparse

from ..core.types import RequestNode

IMPL_TAG_PATTERN = re.compile(
    r'^https?://(securepubads\.g\.doubleclick\.net|www\.googletagservices\.com)'
    r'/.*/pubads_impl(_[a-z_]+)?(_\d+)?\.js'
)
AD_REQUEST_PATTERN = re.compile(r'^https?://securepubads\.g\.doubleclick\.net/gampad/ads\?')

# Host suffix -> bidder name
HEADER_BIDDERS = {
    'adnxs.com': 'AppNexus',
    'amazon-adsystem.com': 'Amazon',
    'casalemedia.com': 'Index Exchange',
    'criteo.com': 'Criteo',
    'criteo.net': 'Criteo',
    'indexww.com': 'Index Exchange',
    'openx.net': 'OpenX',
    'pubmatic.com': 'PubMatic',
    'rubiconproject.com': 'Rubicon',
    'sharethrough.com': 'Sharethrough',
    'smartadserver.com': 'Smart',
    '3lift.com': 'TripleLift',
    'teads.tv': 'Teads',
    'yieldmo.com': 'Yieldmo',
}

BID_RESOURCE_TYPES = frozenset(['Script', 'XHR', 'Fetch', 'EventSource', 'Other'])

AD_IFRAME_ID_PREFIX = 'google_ads_iframe_'
SAFEFRAME_PATTERN = re.compile(r'^https?://tpc\.googlesyndication\.com/safeframe/')


class Classifier:
    """
    Opaque per-request predicates.

    The base class says "no" to everything; subclasses supply real rules.
    """

    def is_impl_tag(self, url: str) -> bool:
        return False

    def is_ad_request(self, node: RequestNode) -> bool:
        return False

    def is_bid_request(self, node: RequestNode) -> bool:
        return False

    def is_ad_iframe(self, element: Dict[str, Any]) -> bool:
        return False

    def header_bidder(self, url: str) -> Optional[str]:
        return None


class PublisherAdsClassifier(Classifier):
    """URL rules for Google Publisher Tag pages with header bidding."""

    def is_impl_tag(self, url: str) -> bool:
        return bool(IMPL_TAG_PATTERN.match(url or ''))

    def is_ad_request(self, node: RequestNode) -> bool:
        return bool(AD_REQUEST_PATTERN.match(node.url))

    def is_bid_request(self, node: RequestNode) -> bool:
        return (self.header_bidder(node.url) is not None and
                node.resource_type in BID_RESOURCE_TYPES)

    def is_ad_iframe(self, element: Dict[str, Any]) -> bool:
        element_id = element.get('id') or ''
        src = element.get('src') or ''
        return element_id.startswith(AD_IFRAME_ID_PREFIX) or bool(SAFEFRAME_PATTERN.match(src))

    def header_bidder(self, url: str) -> Optional[str]:
        host = urlparse(url or '').hostname or ''
        for suffix, bidder in HEADER_BIDDERS.items():
            if host == suffix or host.endswith('.' + suffix):
                return bidder
        return None
