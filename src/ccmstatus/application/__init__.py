"""
Application layer.

The three pipeline stages and the container that wires them together.
"""

from .session_factory import SessionBatch, SessionFactory, close_sessions
from .host_status_builder import CheckResult, HostStatusBuilder
from .patch_status_aggregator import PatchStatusAggregator, correlate

__all__ = [
    "CheckResult",
    "HostStatusBuilder",
    "PatchStatusAggregator",
    "SessionBatch",
    "SessionFactory",
    "close_sessions",
    "correlate",
]
