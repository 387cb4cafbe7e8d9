"""
Error taxonomy for ad trace analysis.

Structural problems in the input (malformed records, initiator cycles) are
absorbed where they are found and surfaced as counts or warnings. Invalid
arguments from callers propagate.
"""

from typing import Optional


class AdTraceError(Exception):
    """Base class for all analysis errors."""


class MalformedRecord(AdTraceError, ValueError):
    """A raw request or timeline record is missing a required field."""

    def __init__(self, reason: str, record_id: Optional[str] = None):
        self.reason = reason
        self.record_id = record_id
        if record_id:
            super().__init__(f"Malformed record '{record_id}': {reason}")
        else:
            super().__init__(f"Malformed record: {reason}")


class CycleDetected(AdTraceError):
    """
    An initiator edge would close a cycle in the dependency graph.

    The graph builder never raises this; it drops the edge and keeps the
    instance in ``DependencyGraph.warnings``.
    """

    def __init__(self, from_id: str, to_id: str):
        self.from_id = from_id
        self.to_id = to_id
        super().__init__(f"Dropped edge {from_id} -> {to_id}: it would close a dependency cycle")


class InvalidMeasurement(AdTraceError, ValueError):
    """A value or curve passed to the scoring function is not usable."""
