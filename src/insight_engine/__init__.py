"""Insight-Engine: multi-tenant chatbot analytics over license and event logs."""

from insight_engine.metrics.aggregator import distribution, growth, peak_hour
from insight_engine.sessions.reconstructor import reconstruct, session_duration

__all__ = [
    "distribution",
    "growth",
    "peak_hour",
    "reconstruct",
    "session_duration",
]
__version__ = "0.1.0"
