"""Custom exceptions for assistant failures."""
from __future__ import annotations


class AgentError(RuntimeError):
    """Base exception for assistant failures."""
    pass


class ModelError(AgentError):
    """Raised when the model capability fails during a turn."""
    pass


class SearchToolError(AgentError):
    """Raised by a search transport that cannot reach the provider."""
    pass
