"""
Ad Trace Analyzer - request dependency and timing analysis for ad resources
"""

__version__ = "1.0.0"

from typing import Any, Dict, Iterable, List, Optional, Tuple

from .core.analyzer import AdTraceAnalyzer, AnalysisResult
from .core.cache import ArtifactCache
from .core.errors import AdTraceError, CycleDetected, InvalidMeasurement, MalformedRecord
from .core.types import (
    AnalysisConfig,
    Artifacts,
    CriticalPathResult,
    DependencyGraph,
    NodeRef,
    RequestNode,
    ScoreCurveParams,
    SimulatedTiming,
    TimelineEvent,
)
from .processors import CriticalPathExtractor, DependencyGraphBuilder, RecordNormalizer, TimingSimulator
from .scoring import score


def normalize(
    raw_requests: Iterable[Dict[str, Any]],
    raw_events: Iterable[Dict[str, Any]]
) -> Tuple[List[RequestNode], List[TimelineEvent], int]:
    return RecordNormalizer().normalize(raw_requests, raw_events)


def build_graph(
    nodes: Iterable[RequestNode],
    frame_hierarchy: Optional[Dict[str, Optional[str]]] = None,
    events: Optional[Iterable[TimelineEvent]] = None,
    config: Optional[AnalysisConfig] = None
) -> DependencyGraph:
    return DependencyGraphBuilder(config).build_graph(list(nodes), frame_hierarchy, list(events or []))


def simulate(graph: DependencyGraph, config: Optional[AnalysisConfig] = None) -> SimulatedTiming:
    return TimingSimulator(config).simulate(graph)


def critical_path(
    graph: DependencyGraph,
    timing: SimulatedTiming,
    target: NodeRef,
    config: Optional[AnalysisConfig] = None
) -> CriticalPathResult:
    return CriticalPathExtractor(config).critical_path(graph, timing, target)


def is_on_critical_path(result: CriticalPathResult, candidate: NodeRef) -> bool:
    return CriticalPathExtractor.is_on_critical_path(result, candidate)


__all__ = [
    "AdTraceAnalyzer",
    "AnalysisResult",
    "ArtifactCache",
    "AdTraceError",
    "CycleDetected",
    "InvalidMeasurement",
    "MalformedRecord",
    "AnalysisConfig",
    "Artifacts",
    "CriticalPathResult",
    "DependencyGraph",
    "RequestNode",
    "ScoreCurveParams",
    "SimulatedTiming",
    "TimelineEvent",
    "normalize",
    "build_graph",
    "simulate",
    "critical_path",
    "is_on_critical_path",
    "score",
]
