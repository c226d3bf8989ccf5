"""
AI assistant boundary.

The callback engine relays mentioned messages through this package and
never talks HTTP to the assistant directly.

Backends:
- HTTPAIForwarder: POST {base_url}/chat with retry and backoff
- StubAIForwarder: records requests, fixed reply (tests, offline dev)

ForwardDispatcher puts a bounded worker pool with a per-forward timeout
in front of either backend.
"""

from .types import SOURCE_WEWORK, ChatRequest, ChatResponse
from .base import AIForwarder, ForwardError
from .stub import StubAIForwarder
from .http_client import HTTPAIForwarder, retry_budget_s
from .dispatcher import ForwardDispatcher

__all__ = [
    "SOURCE_WEWORK",
    "ChatRequest",
    "ChatResponse",
    "AIForwarder",
    "ForwardError",
    "StubAIForwarder",
    "HTTPAIForwarder",
    "retry_budget_s",
    "ForwardDispatcher",
]
