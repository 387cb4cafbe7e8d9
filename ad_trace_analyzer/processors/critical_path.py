"""
Critical path extraction over simulated timings.
"""

import os
from multiprocessing.pool import ThreadPool
from typing import Dict, Iterable, List, Optional, Set

from ..core.types import (
    AnalysisConfig,
    CriticalPathResult,
    DependencyGraph,
    NodeRef,
    RequestNode,
    SimulatedTiming,
)
from .timing_simulator import TimingSimulator


class CriticalPathExtractor:
    """Finds the nodes that gate a target's simulated start."""

    def __init__(self, config: Optional[AnalysisConfig] = None):
        """
        Initialize with analysis configuration.

        Args:
            config: AnalysisConfig instance (default settings when omitted)
        """
        self.config = config or AnalysisConfig()

    def critical_path(
        self,
        graph: DependencyGraph,
        timing: SimulatedTiming,
        target: NodeRef
    ) -> CriticalPathResult:
        """
        Compute the critical path to target.

        In 'gating' mode the walk goes backwards from the target and, at each
        fan-in point, keeps only the dependencies whose simulated end is the
        latest among them. Dependencies ending within tie_tolerance_ms of that
        latest end are all kept. In 'ancestry' mode every ancestor is a member.

        Args:
            graph: DependencyGraph the timing was simulated from
            timing: SimulatedTiming for graph
            target: Node id or RequestNode

        Returns:
            CriticalPathResult (the target itself is never a member)

        Raises:
            KeyError: If target is not in the graph
        """
        target_id = graph.resolve(_node_id(target))
        if target_id not in graph:
            raise KeyError(target_id)

        if self.config.critical_path_mode == 'ancestry':
            members = graph.ancestors(target_id)
        else:
            members = self._gating_ancestors(graph, timing, target_id)

        request_ids: Set[str] = set()
        for node_id in members:
            node = graph.request(node_id)
            if node is not None:
                request_ids.add(node_id)
                request_ids.update(node.redirect_chain)

        intervals = [
            (timing[node_id].start, timing[node_id].end)
            for node_id in list(members) + [target_id]
            if node_id in timing
        ]

        return CriticalPathResult(
            target_id=target_id,
            node_ids=frozenset(members),
            request_ids=frozenset(request_ids),
            total_duration=TimingSimulator.calculate_wall_clock_ms(intervals),
            mode=self.config.critical_path_mode,
        )

    def _gating_ancestors(self, graph: DependencyGraph, timing: SimulatedTiming, target_id: str) -> Set[str]:
        tolerance = self.config.tie_tolerance_ms
        members: Set[str] = set()
        frontier = [target_id]
        visited = {target_id}

        while frontier:
            current = frontier.pop()
            deps = [dep for dep in graph.dependencies(current) if dep in timing]
            if not deps:
                continue
            latest = max(timing[dep].end for dep in deps)
            for dep in deps:
                if latest - timing[dep].end <= tolerance:
                    members.add(dep)
                    if dep not in visited:
                        visited.add(dep)
                        frontier.append(dep)

        members.discard(target_id)
        return members

    def critical_paths(
        self,
        graph: DependencyGraph,
        timing: SimulatedTiming,
        targets: Iterable[NodeRef],
        num_workers: Optional[int] = None
    ) -> Dict[str, CriticalPathResult]:
        """
        Compute critical paths for several targets.

        The graph and timing are read-only, so the queries run on a thread
        pool. A single target or a single worker runs sequentially.

        Args:
            graph: DependencyGraph
            timing: SimulatedTiming for graph
            targets: Node ids or RequestNodes
            num_workers: Number of worker threads (default: CPU count)

        Returns:
            Dictionary mapping target node id -> CriticalPathResult
        """
        target_ids: List[str] = []
        for target in targets:
            target_id = graph.resolve(_node_id(target))
            if target_id not in target_ids:
                target_ids.append(target_id)

        workers = num_workers or os.cpu_count() or 4
        if len(target_ids) <= 1 or workers <= 1:
            return {target_id: self.critical_path(graph, timing, target_id) for target_id in target_ids}

        with ThreadPool(processes=min(workers, len(target_ids))) as pool:
            results = pool.map(lambda target_id: self.critical_path(graph, timing, target_id), target_ids)
        return dict(zip(target_ids, results))

    @staticmethod
    def is_on_critical_path(result: CriticalPathResult, candidate: NodeRef) -> bool:
        """True if candidate (id or RequestNode) is a member of result."""
        return candidate in result


def _node_id(ref: NodeRef) -> str:
    if isinstance(ref, RequestNode):
        return ref.request_id
    return ref
