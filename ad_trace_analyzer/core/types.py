"""
Type definitions for ad trace analysis.

All times handled by the engine are milliseconds.
"""

import heapq
from collections import deque
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterator, List, Optional, Sequence, Set, Tuple, TypedDict, Union

from .errors import CycleDetected

FRAME_ROOT_PREFIX = 'frame:'

CRITICAL_PATH_MODES = ('gating', 'ancestry')


@dataclass(frozen=True)
class RequestNode:
    """One network fetch, normalized from a raw devtools-log record."""
    request_id: str
    url: str
    start_time: float
    end_time: float
    frame_id: str = ''
    initiator_ids: Tuple[str, ...] = ()
    initiator_urls: Tuple[str, ...] = ()
    redirect_source_id: Optional[str] = None
    transfer_size: int = 0
    resource_type: str = 'Other'
    redirect_chain: Tuple[str, ...] = ()

    @property
    def node_id(self) -> str:
        return self.request_id

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time

    @property
    def has_initiator(self) -> bool:
        return bool(self.initiator_ids or self.initiator_urls)


@dataclass(frozen=True)
class TimelineEvent:
    """A timestamped trace event (script execution, layout shift, paint...)."""
    name: str
    timestamp: float
    category: str = ''
    duration: float = 0.0
    frame_id: Optional[str] = None
    is_main_frame: bool = False
    script_url: Optional[str] = None
    payload: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @property
    def end_timestamp(self) -> float:
        return self.timestamp + self.duration


@dataclass(frozen=True)
class NodeTiming:
    """Simulated start/end of one graph node."""
    start: float
    end: float

    @property
    def duration(self) -> float:
        return self.end - self.start


class SimulatedTiming(Mapping):
    """Read-only mapping of node id -> NodeTiming produced by the simulator."""

    def __init__(self, timings: Dict[str, NodeTiming], model: Optional[Dict[str, Any]] = None):
        self._timings = dict(timings)
        self.model = dict(model or {})

    def __getitem__(self, node_id: str) -> NodeTiming:
        return self._timings[node_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._timings)

    def __len__(self) -> int:
        return len(self._timings)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SimulatedTiming):
            return NotImplemented
        return self._timings == other._timings and self.model == other.model

    __hash__ = None

    @property
    def total_duration(self) -> float:
        """Simulated end of the whole load."""
        return max((t.end for t in self._timings.values()), default=0.0)

    def to_dict(self) -> Dict[str, Dict[str, float]]:
        return {
            node_id: {'start': t.start, 'end': t.end, 'duration': t.duration}
            for node_id, t in self._timings.items()
        }


class DependencyGraph:
    """
    Directed acyclic graph over logical request nodes and synthetic frame roots.

    Built once by DependencyGraphBuilder and read-only afterwards, so
    concurrent readers are safe.
    """

    def __init__(
        self,
        requests: Dict[str, RequestNode],
        frame_roots: Dict[str, str],
        dependencies: Dict[str, Sequence[str]],
        order: Sequence[str],
        aliases: Optional[Dict[str, str]] = None,
        warnings: Sequence[CycleDetected] = ()
    ):
        """
        Args:
            requests: Logical node id -> RequestNode
            frame_roots: Frame root node id -> frame id
            dependencies: Node id -> ids of the nodes it waits on
            order: Deterministic ordering of every node id
            aliases: Redirect hop id -> logical node id
            warnings: Cycle edges discarded while building
        """
        self._requests = dict(requests)
        self._frame_roots = dict(frame_roots)
        self._order = tuple(order)
        self._position = {node_id: i for i, node_id in enumerate(self._order)}
        self._dependencies = {node_id: tuple(dependencies.get(node_id, ())) for node_id in self._order}

        dependents: Dict[str, List[str]] = {node_id: [] for node_id in self._order}
        for node_id in self._order:
            for dep in self._dependencies[node_id]:
                dependents[dep].append(node_id)
        self._dependents = {node_id: tuple(ids) for node_id, ids in dependents.items()}

        self._aliases = dict(aliases or {})
        self.warnings = tuple(warnings)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._position

    def __len__(self) -> int:
        return len(self._order)

    @property
    def is_empty(self) -> bool:
        return not self._requests

    @property
    def node_ids(self) -> Tuple[str, ...]:
        return self._order

    @property
    def requests(self) -> Dict[str, RequestNode]:
        return dict(self._requests)

    def request(self, node_id: str) -> Optional[RequestNode]:
        return self._requests.get(self.resolve(node_id))

    def is_frame_root(self, node_id: str) -> bool:
        return node_id in self._frame_roots

    @staticmethod
    def frame_root_id(frame_id: str) -> str:
        return f"{FRAME_ROOT_PREFIX}{frame_id}"

    def resolve(self, request_id: str) -> str:
        """Map a redirect hop id to the logical node that absorbed it."""
        return self._aliases.get(request_id, request_id)

    def dependencies(self, node_id: str) -> Tuple[str, ...]:
        return self._dependencies[self.resolve(node_id)]

    def dependents(self, node_id: str) -> Tuple[str, ...]:
        return self._dependents[self.resolve(node_id)]

    def edges(self) -> List[Tuple[str, str]]:
        return [(dep, node_id) for node_id in self._order for dep in self._dependencies[node_id]]

    def ancestors(self, node_id: str) -> Set[str]:
        """All nodes with a directed path to node_id (node_id itself excluded)."""
        node_id = self.resolve(node_id)
        if node_id not in self._position:
            raise KeyError(node_id)

        seen: Set[str] = set()
        queue = deque(self._dependencies[node_id])
        while queue:
            current = queue.popleft()
            if current in seen:
                continue
            seen.add(current)
            queue.extend(self._dependencies[current])
        seen.discard(node_id)
        return seen

    def topological_order(self) -> List[str]:
        """Kahn's algorithm, ties broken by the graph's deterministic node order."""
        indegree = {node_id: len(deps) for node_id, deps in self._dependencies.items()}
        ready = [(self._position[n], n) for n, d in indegree.items() if d == 0]
        heapq.heapify(ready)

        ordered = []
        while ready:
            _, node_id = heapq.heappop(ready)
            ordered.append(node_id)
            for dependent in self._dependents[node_id]:
                indegree[dependent] -= 1
                if indegree[dependent] == 0:
                    heapq.heappush(ready, (self._position[dependent], dependent))

        if len(ordered) != len(self._order):
            raise RuntimeError("Dependency graph contains a cycle")
        return ordered

    def position(self, node_id: str) -> int:
        return self._position[node_id]


@dataclass(frozen=True)
class CriticalPathResult:
    """Nodes gating a target's simulated start, plus the path's duration."""
    target_id: str
    node_ids: FrozenSet[str]
    request_ids: FrozenSet[str]
    total_duration: float
    mode: str = 'gating'

    def __contains__(self, candidate: object) -> bool:
        if isinstance(candidate, RequestNode):
            candidate = candidate.request_id
        return candidate in self.node_ids or candidate in self.request_ids

    def __len__(self) -> int:
        return len(self.node_ids)


@dataclass(frozen=True)
class ScoreCurveParams:
    """Control points of one log-normal score curve."""
    p10: float
    median: float
    floor: float = 0.0


class AnalysisConfig:
    """Configuration for trace analysis and timing simulation."""

    def __init__(
        self,
        max_concurrent_requests: int = 6,
        rtt_ms: float = 150.0,
        throughput_kbps: float = 1638.4,
        use_captured_durations: bool = False,
        critical_path_mode: str = 'gating',
        tie_tolerance_ms: float = 1e-6,
        infer_script_initiators: bool = True,
        cache_size: int = 8
    ):
        """
        Initialize analysis configuration.

        Args:
            max_concurrent_requests: Connection slots available to the simulator.
                                     Default: 6 (Chrome's per-host limit)

            rtt_ms: Fixed latency added to every modeled request.

            throughput_kbps: Fixed transfer rate used to turn transfer size into time.
                             Default: 1638.4 (slow 4G)

            use_captured_durations: If True, every node keeps its captured duration and
                                    the simulator only re-orders by dependencies.

            critical_path_mode: 'gating' keeps only the latest-finishing dependency at
                                each fan-in point; 'ancestry' keeps every ancestor.

            tie_tolerance_ms: Simulated end times closer than this count as a tie.

            infer_script_initiators: If True, requests with no usable initiator are
                                     linked to the script executing when they started.

            cache_size: Number of analyzed inputs kept by the artifact cache.
        """
        if max_concurrent_requests < 1:
            raise ValueError("max_concurrent_requests must be at least 1")
        if rtt_ms < 0:
            raise ValueError("rtt_ms must not be negative")
        if throughput_kbps <= 0:
            raise ValueError("throughput_kbps must be positive")
        if critical_path_mode not in CRITICAL_PATH_MODES:
            raise ValueError(f"Invalid critical_path_mode '{critical_path_mode}'. "
                             f"Must be one of: {list(CRITICAL_PATH_MODES)}")
        if tie_tolerance_ms < 0:
            raise ValueError("tie_tolerance_ms must not be negative")

        self.max_concurrent_requests = int(max_concurrent_requests)
        self.rtt_ms = float(rtt_ms)
        self.throughput_kbps = float(throughput_kbps)
        self.use_captured_durations = use_captured_durations
        self.critical_path_mode = critical_path_mode
        self.tie_tolerance_ms = float(tie_tolerance_ms)
        self.infer_script_initiators = infer_script_initiators
        self.cache_size = int(cache_size)

    @property
    def ms_per_byte(self) -> float:
        # kbps == bits per millisecond
        return 8.0 / self.throughput_kbps

    def to_dict(self) -> Dict[str, Any]:
        return {
            'max_concurrent_requests': self.max_concurrent_requests,
            'rtt_ms': self.rtt_ms,
            'throughput_kbps': self.throughput_kbps,
            'use_captured_durations': self.use_captured_durations,
            'critical_path_mode': self.critical_path_mode,
            'tie_tolerance_ms': self.tie_tolerance_ms,
            'infer_script_initiators': self.infer_script_initiators,
            'cache_size': self.cache_size,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AnalysisConfig':
        known = cls().to_dict()
        return cls(**{key: value for key, value in data.items() if key in known})


@dataclass
class Artifacts:
    """Inputs an audit reads: the captured load plus iframe geometry."""
    requests: List[Dict[str, Any]] = field(default_factory=list)
    trace_events: List[Dict[str, Any]] = field(default_factory=list)
    frame_hierarchy: Dict[str, Optional[str]] = field(default_factory=dict)
    iframe_elements: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Artifacts':
        return cls(
            requests=list(data.get('requests') or []),
            trace_events=list(data.get('traceEvents') or []),
            frame_hierarchy=dict(data.get('frames') or {}),
            iframe_elements=list(data.get('iframeElements') or []),
        )


class AuditResult(TypedDict):
    """Outcome of one audit wrapper."""
    id: str
    score: Optional[float]
    numeric_value: Optional[float]
    display_value: str
    details: Optional[Dict[str, Any]]
    not_applicable_reason: Optional[str]


NodeRef = Union[str, RequestNode]
