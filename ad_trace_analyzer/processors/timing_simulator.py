"""
Timing simulator for dependency graphs.
"""

import heapq
from typing import Dict, List, Optional, Tuple

from ..core.types import AnalysisConfig, DependencyGraph, NodeTiming, RequestNode, SimulatedTiming


class TimingSimulator:
    """
    Re-derives request timings under a fixed network model.

    Captured timestamps depend on the machine and network of one run. The
    simulator keeps the dependency order of the graph but replaces absolute
    times with a fixed round-trip cost, a fixed throughput and a fixed
    number of connection slots, so results are comparable across runs.
    """

    def __init__(self, config: Optional[AnalysisConfig] = None):
        """
        Initialize with analysis configuration.

        Args:
            config: AnalysisConfig instance (default settings when omitted)
        """
        self.config = config or AnalysisConfig()

    def modeled_duration(self, node: RequestNode) -> float:
        """
        Duration of one request under the model.

        Falls back to the captured duration when the transfer size is unknown
        or when the config asks for captured durations.
        """
        if self.config.use_captured_durations or node.transfer_size <= 0:
            return node.duration
        return self.config.rtt_ms + node.transfer_size * self.config.ms_per_byte

    def simulate(self, graph: DependencyGraph) -> SimulatedTiming:
        """
        Simulate the whole graph in one pass.

        Nodes become ready once every dependency has ended and are started in
        ready-time order (captured start, then graph order, break ties). A
        request starts at the later of its ready time and the earliest free
        connection slot. Frame roots take no time and no slot.

        Args:
            graph: DependencyGraph to simulate

        Returns:
            SimulatedTiming with times relative to the first captured request
        """
        requests = graph.requests
        origin = min((node.start_time for node in requests.values()), default=0.0)
        model = {
            'max_concurrent_requests': self.config.max_concurrent_requests,
            'rtt_ms': self.config.rtt_ms,
            'throughput_kbps': self.config.throughput_kbps,
            'use_captured_durations': self.config.use_captured_durations,
            'origin_ms': origin,
        }

        remaining = {node_id: len(graph.dependencies(node_id)) for node_id in graph.node_ids}
        ready: List[Tuple[float, int, float, int, str]] = []
        for node_id, count in remaining.items():
            if count == 0:
                heapq.heappush(ready, self._ready_entry(graph, requests, node_id, 0.0, origin))

        slots = [0.0] * self.config.max_concurrent_requests
        timings: Dict[str, NodeTiming] = {}

        while ready:
            ready_time, _, _, _, node_id = heapq.heappop(ready)

            node = requests.get(node_id)
            if node is None:
                start = end = ready_time
            else:
                slot_free = heapq.heappop(slots)
                start = max(ready_time, slot_free)
                end = start + self.modeled_duration(node)
                heapq.heappush(slots, end)
            timings[node_id] = NodeTiming(start=start, end=end)

            for dependent in graph.dependents(node_id):
                remaining[dependent] -= 1
                if remaining[dependent] == 0:
                    dependent_ready = max(timings[dep].end for dep in graph.dependencies(dependent))
                    heapq.heappush(ready, self._ready_entry(graph, requests, dependent, dependent_ready, origin))

        ordered = {node_id: timings[node_id] for node_id in graph.node_ids if node_id in timings}
        return SimulatedTiming(ordered, model)

    @staticmethod
    def _ready_entry(
        graph: DependencyGraph,
        requests: Dict[str, RequestNode],
        node_id: str,
        ready_time: float,
        origin: float
    ) -> Tuple[float, int, float, int, str]:
        node = requests.get(node_id)
        if node is None:
            return (ready_time, 0, 0.0, graph.position(node_id), node_id)
        return (ready_time, 1, node.start_time - origin, graph.position(node_id), node_id)

    @staticmethod
    def merge_time_intervals(intervals: List[Tuple[float, float]]) -> List[Tuple[float, float]]:
        """
        Merge overlapping time intervals to calculate actual wall-clock coverage.

        Args:
            intervals: List of (start_ms, end_ms) tuples

        Returns:
            List of merged non-overlapping intervals
        """
        valid = sorted((s, e) for s, e in intervals if s < e)
        if not valid:
            return []

        merged = [valid[0]]
        for start, end in valid[1:]:
            last_start, last_end = merged[-1]
            if start <= last_end:
                merged[-1] = (last_start, max(last_end, end))
            else:
                merged.append((start, end))
        return merged

    @staticmethod
    def calculate_wall_clock_ms(intervals: List[Tuple[float, float]]) -> float:
        """Total time covered by the intervals, overlaps counted once."""
        merged = TimingSimulator.merge_time_intervals(intervals)
        return sum(end - start for start, end in merged)
