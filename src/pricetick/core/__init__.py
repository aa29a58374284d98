"""
Core types for pricetick.

This module provides the fundamental data structures and errors used
across the server, the client agents and the coordinators.
"""

from .errors import (
    ConfigurationError,
    MalformedMessage,
    PricetickError,
    TransportError,
)
from .types import (
    AgentResult,
    AgentState,
    ArbitrationResult,
    Decision,
)

__all__ = [
    "AgentResult",
    "AgentState",
    "ArbitrationResult",
    "Decision",
    "ConfigurationError",
    "MalformedMessage",
    "PricetickError",
    "TransportError",
]
