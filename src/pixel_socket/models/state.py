"""
Connection State Models
=======================

Lifecycle state and reconnect policy for the connection manager.

States:
    IDLE         -> CONNECTING                (connect)
    CONNECTING   -> OPEN                      (transport opened)
    CONNECTING   -> RECONNECTING | CLOSED     (attempt failed)
    OPEN         -> RECONNECTING | CLOSED     (loss / disconnect)
    RECONNECTING -> CONNECTING | CLOSED       (timer fired / disconnect)
    CLOSED       -> CONNECTING                (fresh connect)
"""

from dataclasses import dataclass
from enum import Enum


class ConnectionState(str, Enum):
    """
    Lifecycle state of a single client connection.

    Attributes:
        IDLE: Constructed, never connected
        CONNECTING: Transport handshake in flight
        OPEN: Connected, messages flowing
        RECONNECTING: Waiting for the backoff timer
        CLOSED: Disconnected by the client or attempts exhausted
    """

    IDLE = "IDLE"
    CONNECTING = "CONNECTING"
    OPEN = "OPEN"
    RECONNECTING = "RECONNECTING"
    CLOSED = "CLOSED"


@dataclass(frozen=True, slots=True)
class ReconnectPolicy:
    """
    Immutable reconnect configuration.

    Attributes:
        enabled: Whether lost connections are retried
        delay_ms: Fixed delay before every retry
        max_attempts: Consecutive retries allowed before giving up
    """

    enabled: bool = True
    delay_ms: int = 5000
    max_attempts: int = 10

    def __post_init__(self) -> None:
        if self.delay_ms < 0:
            raise ValueError("delay_ms must be >= 0")
        if self.max_attempts < 0:
            raise ValueError("max_attempts must be >= 0")

    @property
    def delay_seconds(self) -> float:
        return self.delay_ms / 1000.0
