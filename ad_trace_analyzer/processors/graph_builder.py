"""
Dependency graph builder for normalized network requests.
"""

import bisect
import logging
from collections import defaultdict
from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from ..core.errors import CycleDetected
from ..core.types import AnalysisConfig, DependencyGraph, RequestNode, TimelineEvent

logger = logging.getLogger(__name__)

# Trace events during which a script may start new fetches
SCRIPT_EVENT_NAMES = frozenset(['EvaluateScript', 'FunctionCall', 'v8.compile', 'TimerFire'])

WHITE, GRAY, BLACK = 0, 1, 2


class DependencyGraphBuilder:
    """Builds a dependency DAG from request nodes, frames and script events."""

    def __init__(self, config: Optional[AnalysisConfig] = None):
        """
        Initialize with analysis configuration.

        Args:
            config: AnalysisConfig instance (default settings when omitted)
        """
        self.config = config or AnalysisConfig()

    def build_graph(
        self,
        nodes: Sequence[RequestNode],
        frame_hierarchy: Optional[Dict[str, Optional[str]]] = None,
        events: Optional[Sequence[TimelineEvent]] = None
    ) -> DependencyGraph:
        """
        Build the dependency graph for one page load.

        Missing initiators never fail the build: the node falls back to its
        frame's root. Edges that would close a cycle are dropped and reported
        in ``graph.warnings``.

        Args:
            nodes: Normalized RequestNodes
            frame_hierarchy: Child frame id -> id of the request that created it
                             (None for the main frame)
            events: Normalized TimelineEvents, used to infer script initiators

        Returns:
            DependencyGraph
        """
        frame_hierarchy = frame_hierarchy or {}

        # Pass 1: collapse redirect chains into logical nodes
        requests, aliases, url_index = self._collapse_redirects(nodes)
        request_order = sorted(requests, key=lambda rid: (requests[rid].start_time, rid))

        # Pass 2: one synthetic root per frame
        main_frame = self._main_frame_id(frame_hierarchy, requests, request_order)
        frame_roots: Dict[str, str] = {}
        for frame_id in list(frame_hierarchy) + [requests[rid].frame_id or main_frame for rid in request_order]:
            root_id = DependencyGraph.frame_root_id(frame_id)
            if root_id not in frame_roots:
                frame_roots[root_id] = frame_id

        order = list(frame_roots) + request_order
        dependencies: Dict[str, List[str]] = {node_id: [] for node_id in order}
        warnings: List[CycleDetected] = []

        for root_id, frame_id in frame_roots.items():
            creator = frame_hierarchy.get(frame_id)
            if creator:
                creator = aliases.get(creator, creator)
                if creator in requests:
                    dependencies[root_id].append(creator)

        # Pass 3: initiator edges, then timeline inference, then frame fallback
        script_events = self._script_events(events or [])
        event_starts = [event.timestamp for event in script_events]

        for rid in request_order:
            node = requests[rid]
            deps = dependencies[rid]

            for declared_id in node.initiator_ids:
                if declared_id in node.redirect_chain:
                    continue
                initiator_id = aliases.get(declared_id, declared_id)
                if initiator_id == rid:
                    warnings.append(self._report_cycle(rid, rid))
                    continue
                if initiator_id in requests and initiator_id not in deps:
                    deps.append(initiator_id)

            for url in node.initiator_urls:
                initiator_id = self._resolve_url(url, node, url_index)
                if initiator_id and initiator_id != rid and initiator_id not in deps:
                    deps.append(initiator_id)

            if not deps and self.config.infer_script_initiators and script_events:
                initiator_id = self._infer_script_initiator(node, script_events, event_starts, url_index)
                if initiator_id and initiator_id != rid:
                    deps.append(initiator_id)

            if not deps:
                deps.append(DependencyGraph.frame_root_id(node.frame_id or main_frame))

        # Pass 4: break cycles, keeping the edges seen first
        warnings.extend(self._break_cycles(order, dependencies))

        # Pass 5: nodes that lost every inbound edge go back under a frame root
        for rid in request_order:
            if not dependencies[rid]:
                self._reattach(rid, requests[rid].frame_id or main_frame, main_frame, order, dependencies)

        graph = DependencyGraph(
            requests=requests,
            frame_roots=frame_roots,
            dependencies=dependencies,
            order=order,
            aliases=aliases,
            warnings=warnings,
        )
        logger.debug("Built dependency graph: %d requests, %d frames, %d edges, %d cycle edges dropped",
                     len(requests), len(frame_roots), len(graph.edges()), len(warnings))
        return graph

    @staticmethod
    def _collapse_redirects(
        nodes: Sequence[RequestNode]
    ) -> Tuple[Dict[str, RequestNode], Dict[str, str], Dict[str, List[Tuple[float, str]]]]:
        """
        Merge each redirect chain into one logical node keyed by its final hop.

        Returns:
            Tuple of (requests, aliases, url_index)
            - requests: Logical node id -> RequestNode
            - aliases: Earlier hop id -> logical node id
            - url_index: URL -> sorted (start_time, logical node id) pairs
        """
        by_id = {node.request_id: node for node in nodes}

        next_hop: Dict[str, str] = {}
        for node in nodes:
            source = node.redirect_source_id
            if source and source in by_id and source != node.request_id and source not in next_hop:
                next_hop[source] = node.request_id
        has_predecessor = set(next_hop.values())

        requests: Dict[str, RequestNode] = {}
        aliases: Dict[str, str] = {}
        visited: Set[str] = set()

        for node in nodes:
            if node.request_id in has_predecessor:
                continue
            chain = [node]
            visited.add(node.request_id)
            while chain[-1].request_id in next_hop:
                following = by_id[next_hop[chain[-1].request_id]]
                if following.request_id in visited:
                    break
                visited.add(following.request_id)
                chain.append(following)

            head, final = chain[0], chain[-1]
            if len(chain) > 1:
                initiator_ids = _unique(i for hop in chain for i in hop.initiator_ids)
                initiator_urls = _unique(u for hop in chain for u in hop.initiator_urls)
                final = replace(
                    final,
                    start_time=head.start_time,
                    initiator_ids=initiator_ids,
                    initiator_urls=initiator_urls,
                    transfer_size=sum(hop.transfer_size for hop in chain),
                    redirect_chain=tuple(hop.request_id for hop in chain[:-1]),
                )
                for hop in chain[:-1]:
                    aliases[hop.request_id] = final.request_id
            requests[final.request_id] = final

        # Redirect loops have no head; keep their hops as plain nodes
        for node in nodes:
            if node.request_id not in visited:
                requests[node.request_id] = node

        url_index: Dict[str, List[Tuple[float, str]]] = defaultdict(list)
        for node in nodes:
            logical_id = aliases.get(node.request_id, node.request_id)
            url_index[node.url].append((node.start_time, logical_id))
        for entries in url_index.values():
            entries.sort()

        return requests, aliases, dict(url_index)

    @staticmethod
    def _main_frame_id(
        frame_hierarchy: Dict[str, Optional[str]],
        requests: Dict[str, RequestNode],
        request_order: List[str]
    ) -> str:
        for frame_id, creator in frame_hierarchy.items():
            if not creator:
                return frame_id
        for rid in request_order:
            if requests[rid].frame_id:
                return requests[rid].frame_id
        return 'main'

    @staticmethod
    def _resolve_url(
        url: str,
        node: RequestNode,
        url_index: Dict[str, List[Tuple[float, str]]]
    ) -> Optional[str]:
        """Earliest request for url that started no later than node."""
        for start_time, logical_id in url_index.get(url, []):
            if start_time > node.start_time:
                break
            if logical_id != node.request_id:
                return logical_id
        return None

    @staticmethod
    def _script_events(events: Iterable[TimelineEvent]) -> List[TimelineEvent]:
        return [
            event for event in events
            if event.name in SCRIPT_EVENT_NAMES and event.script_url and event.duration > 0
        ]

    def _infer_script_initiator(
        self,
        node: RequestNode,
        script_events: List[TimelineEvent],
        event_starts: List[float],
        url_index: Dict[str, List[Tuple[float, str]]]
    ) -> Optional[str]:
        """
        Find the script executing when node started, innermost first.

        Script events are sorted by start, so the first enclosing event
        found walking backwards is the latest-starting (innermost) one.
        """
        index = bisect.bisect_right(event_starts, node.start_time)
        for event in reversed(script_events[:index]):
            if event.end_timestamp < node.start_time:
                continue
            if event.frame_id and node.frame_id and event.frame_id != node.frame_id:
                continue
            initiator_id = self._resolve_url(event.script_url, node, url_index)
            if initiator_id:
                return initiator_id
        return None

    def _break_cycles(self, order: List[str], dependencies: Dict[str, List[str]]) -> List[CycleDetected]:
        """
        Three-colour depth-first walk over dependency -> dependent edges.

        Nodes are visited in graph order and edges in insertion order, so the
        edge that closes a cycle is the one dropped.
        """
        outgoing: Dict[str, List[str]] = {node_id: [] for node_id in order}
        for node_id in order:
            for dep in dependencies[node_id]:
                outgoing[dep].append(node_id)

        color = {node_id: WHITE for node_id in order}
        dropped: Set[Tuple[str, str]] = set()
        warnings = []

        for start in order:
            if color[start] != WHITE:
                continue
            color[start] = GRAY
            stack = [(start, iter(outgoing[start]))]
            while stack:
                current, children = stack[-1]
                advanced = False
                for child in children:
                    if color[child] == GRAY:
                        dropped.add((current, child))
                        warnings.append(self._report_cycle(current, child))
                    elif color[child] == WHITE:
                        color[child] = GRAY
                        stack.append((child, iter(outgoing[child])))
                        advanced = True
                        break
                if not advanced:
                    color[current] = BLACK
                    stack.pop()

        for from_id, to_id in dropped:
            dependencies[to_id].remove(from_id)
        return warnings

    @staticmethod
    def _reattach(
        rid: str,
        frame_id: str,
        main_frame: str,
        order: List[str],
        dependencies: Dict[str, List[str]]
    ) -> None:
        """Hang an orphaned node under a frame root without closing a cycle."""
        outgoing: Dict[str, List[str]] = defaultdict(list)
        for node_id in order:
            for dep in dependencies[node_id]:
                outgoing[dep].append(node_id)

        reachable = set()
        stack = [rid]
        while stack:
            current = stack.pop()
            if current in reachable:
                continue
            reachable.add(current)
            stack.extend(outgoing[current])

        for candidate in (frame_id, main_frame):
            root_id = DependencyGraph.frame_root_id(candidate)
            if root_id in dependencies and root_id not in reachable:
                dependencies[rid].append(root_id)
                return
        logger.warning("Request %s has no safe parent and stays a root", rid)

    @staticmethod
    def _report_cycle(from_id: str, to_id: str) -> CycleDetected:
        warning = CycleDetected(from_id, to_id)
        logger.warning("%s", warning)
        return warning


def _unique(values: Iterable[str]) -> Tuple[str, ...]:
    seen = []
    for value in values:
        if value not in seen:
            seen.append(value)
    return tuple(seen)
