"""
Error Taxonomy
==============

Exceptions reported by the PixelSocket client.

None of these are raised across the event loop. They are created at the
point of failure and delivered to the consumer through ``on_error``.

Hierarchy:
    PixelSocketError
        - TransportError: connection refused, unexpected closure,
          send while not open, lifecycle misuse
        - ReconnectExhausted: terminal, reconnect attempts are spent
        - DecodeError: malformed base64, unparsable JSON, corrupt envelope
"""

from typing import Optional


class PixelSocketError(Exception):
    """Base class for all client errors."""
    pass


class TransportError(PixelSocketError):
    """Raised when the transport fails or is used in the wrong state."""

    def __init__(
        self,
        message: str,
        code: Optional[int] = None,
        reason: str = "",
    ) -> None:
        super().__init__(message)
        self.code = code
        self.reason = reason


class ReconnectExhausted(PixelSocketError):
    """Raised once when every reconnect attempt has failed."""

    def __init__(self, attempts: int) -> None:
        super().__init__(
            f"Giving up after {attempts} reconnect attempt(s)"
        )
        self.attempts = attempts


class DecodeError(PixelSocketError):
    """Raised when an inbound message cannot be decoded."""
    pass
