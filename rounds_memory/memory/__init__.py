"""
Longitudinal Memory Module

Per-patient memory store, term normalization, trend analysis and the
full-history context builder.
"""

from rounds_memory.memory.normalizer import TermNormalizer, TermRule
from rounds_memory.memory.store import MemoryStore
from rounds_memory.memory.trends import TrendAnalyzer, TrendSummary
from rounds_memory.memory.context import ContextBuilder
from rounds_memory.memory.recorder import SessionRecorder, parse_measurement

__all__ = [
    "TermNormalizer",
    "TermRule",
    "MemoryStore",
    "TrendAnalyzer",
    "TrendSummary",
    "ContextBuilder",
    "SessionRecorder",
    "parse_measurement",
]
