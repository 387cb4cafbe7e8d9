"""
Normalization of raw devtools-log requests and trace events.
"""

import logging
import math
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..core.errors import MalformedRecord
from ..core.types import RequestNode, TimelineEvent

logger = logging.getLogger(__name__)

US_PER_MS = 1000.0


class RecordNormalizer:
    """Turns raw request and event records into immutable nodes and events."""

    def normalize(
        self,
        raw_requests: Iterable[Dict[str, Any]],
        raw_events: Iterable[Dict[str, Any]]
    ) -> Tuple[List[RequestNode], List[TimelineEvent], int]:
        """
        Normalize one trace/log pair.

        Malformed records are dropped and counted; they never abort the pass.

        Args:
            raw_requests: Network request records (devtools-log style)
            raw_events: Trace events (Chrome trace format, microsecond timestamps)

        Returns:
            Tuple of (nodes, events, dropped_count)
            - nodes: RequestNodes in input order
            - events: TimelineEvents sorted by timestamp
            - dropped_count: Number of request and event records dropped
        """
        dropped = 0

        nodes = []
        seen_ids = set()
        for index, record in enumerate(raw_requests or []):
            try:
                node = self.normalize_request(record, index)
                if node.request_id in seen_ids:
                    raise MalformedRecord('duplicate requestId', node.request_id)
            except MalformedRecord as e:
                dropped += 1
                logger.debug("Dropping request record %d: %s", index, e)
                continue
            seen_ids.add(node.request_id)
            nodes.append(node)

        events = []
        for index, raw_event in enumerate(raw_events or []):
            try:
                events.append(self.normalize_event(raw_event))
            except MalformedRecord as e:
                dropped += 1
                logger.debug("Dropping trace event %d: %s", index, e)

        # sorted() is stable, so equal timestamps keep their trace order
        events = sorted(events, key=lambda event: event.timestamp)

        return self._inherit_redirect_initiators(nodes), events, dropped

    def normalize_request(self, record: Dict[str, Any], index: int = 0) -> RequestNode:
        """
        Validate and convert one raw request record.

        Raises:
            MalformedRecord: If the URL or a timestamp is missing or unusable
        """
        if not isinstance(record, dict):
            raise MalformedRecord('request record is not a mapping')

        url = record.get('url')
        request_id = record.get('requestId')
        if not url or not isinstance(url, str):
            raise MalformedRecord('missing url', request_id)
        request_id = str(request_id) if request_id else f"{url}#{index}"

        start_time = _as_number(record.get('startTime'), 'startTime', request_id)
        end_value = record.get('endTime')
        if end_value is None:
            end_value = record.get('responseReceivedTime')
        end_time = _as_number(end_value, 'endTime', request_id)
        if end_time < start_time:
            raise MalformedRecord('endTime is earlier than startTime', request_id)

        transfer_size = record.get('transferSize') or 0
        if isinstance(transfer_size, bool) or not isinstance(transfer_size, (int, float)):
            raise MalformedRecord('transferSize is not a number', request_id)
        if not math.isfinite(transfer_size):
            raise MalformedRecord('transferSize is not finite', request_id)

        initiator_ids, initiator_urls = self._extract_initiators(record)

        redirect_source = record.get('redirectSource')
        if isinstance(redirect_source, dict):
            redirect_source = redirect_source.get('requestId')

        return RequestNode(
            request_id=request_id,
            url=url,
            start_time=start_time,
            end_time=end_time,
            frame_id=str(record.get('frameId') or ''),
            initiator_ids=initiator_ids,
            initiator_urls=initiator_urls,
            redirect_source_id=str(redirect_source) if redirect_source else None,
            transfer_size=max(0, int(transfer_size)),
            resource_type=str(record.get('resourceType') or 'Other'),
        )

    def normalize_event(self, raw_event: Dict[str, Any]) -> TimelineEvent:
        """
        Validate and convert one trace event.

        Raises:
            MalformedRecord: If the name or timestamp is missing or unusable
        """
        if not isinstance(raw_event, dict):
            raise MalformedRecord('trace event is not a mapping')

        name = raw_event.get('name')
        if not name or not isinstance(name, str):
            raise MalformedRecord('trace event has no name')
        timestamp = _as_number(raw_event.get('ts'), 'ts', name) / US_PER_MS

        duration = 0.0
        if raw_event.get('dur') is not None:
            duration = max(0.0, _as_number(raw_event.get('dur'), 'dur', name) / US_PER_MS)

        args = raw_event.get('args')
        args = args if isinstance(args, dict) else {}
        data = args.get('data')
        data = data if isinstance(data, dict) else {}

        frame_id = args.get('frame') or data.get('frame')

        return TimelineEvent(
            name=name,
            timestamp=timestamp,
            category=str(raw_event.get('cat') or ''),
            duration=duration,
            frame_id=str(frame_id) if frame_id else None,
            is_main_frame=bool(data.get('is_main_frame', False)),
            script_url=_script_url(data),
            payload=dict(data),
        )

    @staticmethod
    def _extract_initiators(record: Dict[str, Any]) -> Tuple[Tuple[str, ...], Tuple[str, ...]]:
        """
        Collect initiator request ids and script URLs.

        Accepts a bare request id, a devtools initiator mapping (with optional
        requestId, url and async stack chain), and Lighthouse's
        initiatorRequestId field.
        """
        ids: List[str] = []
        urls: List[str] = []

        initiator = record.get('initiator')
        if isinstance(initiator, str) and initiator:
            ids.append(initiator)
        elif isinstance(initiator, dict):
            if initiator.get('requestId'):
                ids.append(str(initiator['requestId']))
            if isinstance(initiator.get('url'), str) and initiator['url']:
                urls.append(initiator['url'])

            stack = initiator.get('stack')
            depth = 0
            while isinstance(stack, dict) and depth < 32:
                for call_frame in stack.get('callFrames') or []:
                    frame_url = call_frame.get('url') if isinstance(call_frame, dict) else None
                    if frame_url and isinstance(frame_url, str) and frame_url not in urls:
                        urls.append(frame_url)
                stack = stack.get('parent')
                depth += 1

        if record.get('initiatorRequestId'):
            initiator_request = str(record['initiatorRequestId'])
            if initiator_request not in ids:
                ids.append(initiator_request)

        return tuple(ids), tuple(urls)

    @staticmethod
    def _inherit_redirect_initiators(nodes: List[RequestNode]) -> List[RequestNode]:
        """Give redirect hops without an initiator the one of their first predecessor."""
        by_id = {node.request_id: node for node in nodes}

        def initiators_of(node: RequestNode) -> Optional[RequestNode]:
            seen = {node.request_id}
            current = node
            while not current.has_initiator and current.redirect_source_id:
                previous = by_id.get(current.redirect_source_id)
                if previous is None or previous.request_id in seen:
                    return None
                seen.add(previous.request_id)
                current = previous
            return current if current.has_initiator else None

        result = []
        for node in nodes:
            if node.redirect_source_id and not node.has_initiator:
                source = initiators_of(node)
                if source is not None:
                    node = replace(
                        node,
                        initiator_ids=source.initiator_ids,
                        initiator_urls=source.initiator_urls,
                    )
            result.append(node)
        return result


def _as_number(value: Any, field_name: str, record_id: Optional[str]) -> float:
    if value is None:
        raise MalformedRecord(f'missing {field_name}', record_id)
    if isinstance(value, bool):
        raise MalformedRecord(f'{field_name} is not a number', record_id)
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise MalformedRecord(f'{field_name} is not a number', record_id)
    if not math.isfinite(number):
        raise MalformedRecord(f'{field_name} is not finite', record_id)
    return number


def _script_url(data: Dict[str, Any]) -> Optional[str]:
    url = data.get('url')
    if isinstance(url, str) and url:
        return url
    stack_trace = data.get('stackTrace')
    if isinstance(stack_trace, list) and stack_trace and isinstance(stack_trace[0], dict):
        url = stack_trace[0].get('url')
        if isinstance(url, str) and url:
            return url
    return None
