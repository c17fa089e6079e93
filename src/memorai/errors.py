"""
Error taxonomy for the memory engine.

Nothing here is retried internally. The service layer lets these propagate and
the transport (HTTP or CLI) decides how to present them.
"""
from typing import Optional


class MemoraiError(Exception):
    """Base class for all engine errors."""


class ValidationError(MemoraiError):
    """Input rejected before any I/O (e.g. empty text or query)."""


class UpstreamUnavailable(MemoraiError):
    """The inference service could not be reached or timed out."""


class UpstreamError(MemoraiError):
    """The inference service answered with a non-success status."""

    def __init__(self, status_code: int, body: str, operation: Optional[str] = None):
        self.status_code = status_code
        self.body = body
        self.operation = operation
        prefix = f"Ollama {operation} request failed" if operation else "Ollama request failed"
        super().__init__(f"{prefix} ({status_code}): {body}")


class UpstreamProtocolError(MemoraiError):
    """The inference service answered with a body we cannot use."""


class PersistenceError(MemoraiError):
    """The storage backend failed to read or write."""


class IntegrityError(PersistenceError):
    """The storage backend accepted a write but the record cannot be read back."""
