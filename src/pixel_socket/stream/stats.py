"""
Stats Tracker
=============

Counter aggregation shared by the connection manager and the client.

Design Rules:
    - Mutated only from the event loop, so no locking is needed
    - Readers get an immutable ConnectionStats snapshot, never this object
    - record_image() is called once per delivered image, never for
      control messages or decode failures
"""

from datetime import datetime
from typing import Callable, Optional

from pixel_socket.models.metadata import utc_now
from pixel_socket.models.stats import ConnectionStats


class StatsTracker:
    """Mutable counters behind ConnectionStats snapshots."""

    __slots__ = (
        "_images_received",
        "_bytes_received",
        "_connected_at",
        "_is_connected",
        "_reconnect_attempts",
        "_clock",
    )

    def __init__(self, clock: Callable[[], datetime] = utc_now) -> None:
        self._images_received: int = 0
        self._bytes_received: int = 0
        self._connected_at: Optional[datetime] = None
        self._is_connected: bool = False
        self._reconnect_attempts: int = 0
        self._clock = clock

    def record_image(self, byte_length: int) -> None:
        if byte_length < 0:
            raise ValueError("byte_length must be >= 0")
        self._images_received += 1
        self._bytes_received += byte_length

    def record_connected(self) -> None:
        self._connected_at = self._clock()
        self._is_connected = True
        self._reconnect_attempts = 0

    def record_disconnected(self) -> None:
        self._is_connected = False

    def record_reconnect_attempt(self) -> None:
        self._reconnect_attempts += 1

    def reset_reconnect_attempts(self) -> None:
        """Start a fresh retry budget (explicit connect)."""
        self._reconnect_attempts = 0

    def snapshot(self) -> ConnectionStats:
        """Return an immutable copy of the current counters."""
        return ConnectionStats(
            images_received=self._images_received,
            bytes_received=self._bytes_received,
            connected_at=self._connected_at,
            is_connected=self._is_connected,
            reconnect_attempts=self._reconnect_attempts,
        )
