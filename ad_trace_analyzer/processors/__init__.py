"""Processors for turning captured page loads into graphs and timings."""

from .artifact_loader import ArtifactFileProcessor
from .record_normalizer import RecordNormalizer
from .graph_builder import DependencyGraphBuilder
from .timing_simulator import TimingSimulator
from .critical_path import CriticalPathExtractor

__all__ = [
    "ArtifactFileProcessor",
    "RecordNormalizer",
    "DependencyGraphBuilder",
    "TimingSimulator",
    "CriticalPathExtractor",
]
