"""Core components for ad trace analysis."""

from .analyzer import AdTraceAnalyzer, AnalysisResult
from .cache import ArtifactCache, fingerprint
from .errors import AdTraceError, CycleDetected, InvalidMeasurement, MalformedRecord
from .types import (
    AnalysisConfig,
    Artifacts,
    AuditResult,
    CriticalPathResult,
    DependencyGraph,
    NodeTiming,
    RequestNode,
    ScoreCurveParams,
    SimulatedTiming,
    TimelineEvent,
)

__all__ = [
    "AdTraceAnalyzer",
    "AnalysisResult",
    "ArtifactCache",
    "fingerprint",
    "AdTraceError",
    "CycleDetected",
    "InvalidMeasurement",
    "MalformedRecord",
    "AnalysisConfig",
    "Artifacts",
    "AuditResult",
    "CriticalPathResult",
    "DependencyGraph",
    "NodeTiming",
    "RequestNode",
    "ScoreCurveParams",
    "SimulatedTiming",
    "TimelineEvent",
]
