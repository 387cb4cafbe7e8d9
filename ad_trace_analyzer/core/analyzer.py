"""
Main ad trace analyzer orchestrator.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Sequence, Tuple

from ..core.cache import ArtifactCache, fingerprint
from ..core.errors import CycleDetected
from ..core.types import (
    AnalysisConfig,
    Artifacts,
    CriticalPathResult,
    DependencyGraph,
    NodeRef,
    RequestNode,
    SimulatedTiming,
    TimelineEvent,
)
from ..processors import (
    ArtifactFileProcessor,
    CriticalPathExtractor,
    DependencyGraphBuilder,
    RecordNormalizer,
    TimingSimulator,
)
from ..formatters import format_time

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisResult:
    """Everything derived from one trace/log pair."""
    fingerprint: str
    nodes: Tuple[RequestNode, ...]
    events: Tuple[TimelineEvent, ...]
    dropped_count: int
    graph: DependencyGraph
    timing: SimulatedTiming

    @property
    def warnings(self) -> Tuple[CycleDetected, ...]:
        return self.graph.warnings

    def request_by_id(self, request_id: str) -> Optional[RequestNode]:
        return self.graph.request(request_id)


class AdTraceAnalyzer:
    """Main orchestrator for ad trace analysis."""

    def __init__(
        self,
        config: Optional[AnalysisConfig] = None,
        cache: Optional[ArtifactCache] = None
    ):
        """
        Initialize the AdTraceAnalyzer.

        Args:
            config: AnalysisConfig instance (default settings when omitted)
            cache: ArtifactCache owned by the caller; a private one is created
                   when omitted
        """
        self.config = config or AnalysisConfig()
        self.cache = cache if cache is not None else ArtifactCache(self.config.cache_size)

        # Initialize components
        self.file_processor = ArtifactFileProcessor()
        self.normalizer = RecordNormalizer()
        self.graph_builder = DependencyGraphBuilder(self.config)
        self.timing_simulator = TimingSimulator(self.config)
        self.critical_path_extractor = CriticalPathExtractor(self.config)

    def analyze(
        self,
        requests: Sequence[Dict[str, Any]],
        events: Sequence[Dict[str, Any]],
        frame_hierarchy: Optional[Dict[str, Optional[str]]] = None
    ) -> AnalysisResult:
        """
        Normalize, build the dependency graph and simulate timings.

        Results are cached by a fingerprint of the inputs and the config.

        Args:
            requests: Raw network request records
            events: Raw trace events
            frame_hierarchy: Child frame id -> creating request id

        Returns:
            AnalysisResult
        """
        key = fingerprint(list(requests), list(events), frame_hierarchy or {}, self.config.to_dict())
        return self.cache.get_or_create(key, lambda: self._analyze(key, requests, events, frame_hierarchy))

    def analyze_artifacts(self, artifacts: Artifacts) -> AnalysisResult:
        return self.analyze(artifacts.requests, artifacts.trace_events, artifacts.frame_hierarchy)

    def process_artifact_file(self, file_path: str) -> Tuple[Artifacts, AnalysisResult]:
        """
        Load an artifact file and analyze it.

        Args:
            file_path: Path to the artifact JSON file

        Returns:
            Tuple of (artifacts, result)
        """
        artifacts = self.file_processor.process_file(file_path)
        return artifacts, self.analyze_artifacts(artifacts)

    def _analyze(
        self,
        key: str,
        requests: Sequence[Dict[str, Any]],
        events: Sequence[Dict[str, Any]],
        frame_hierarchy: Optional[Dict[str, Optional[str]]]
    ) -> AnalysisResult:
        # Pass 1: normalize raw records, dropping malformed ones
        nodes, timeline, dropped = self.normalizer.normalize(requests, events)

        # Pass 2: build the dependency graph
        graph = self.graph_builder.build_graph(nodes, frame_hierarchy, timeline)

        # Pass 3: simulate timings
        timing = self.timing_simulator.simulate(graph)

        logger.info("Analyzed %d requests and %d trace events (%d dropped, %d cycle edges removed); "
                    "simulated load %s",
                    len(nodes), len(timeline), dropped, len(graph.warnings),
                    format_time(timing.total_duration))

        return AnalysisResult(
            fingerprint=key,
            nodes=tuple(nodes),
            events=tuple(timeline),
            dropped_count=dropped,
            graph=graph,
            timing=timing,
        )

    def critical_path(self, result: AnalysisResult, target: NodeRef) -> CriticalPathResult:
        return self.critical_path_extractor.critical_path(result.graph, result.timing, target)

    def critical_paths(
        self,
        result: AnalysisResult,
        targets: Iterable[NodeRef],
        num_workers: Optional[int] = None
    ) -> Dict[str, CriticalPathResult]:
        return self.critical_path_extractor.critical_paths(result.graph, result.timing, targets, num_workers)

    def invalidate(self, result: AnalysisResult) -> bool:
        """Forget the cached analysis behind result."""
        return self.cache.invalidate(result.fingerprint)

    def format_time(self, ms: float) -> str:
        """
        Format time in milliseconds to a human-readable string.

        Args:
            ms: Time in milliseconds

        Returns:
            Formatted time string
        """
        return format_time(ms)
