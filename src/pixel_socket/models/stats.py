"""
Connection Statistics
=====================

Immutable snapshot of the client's counters.

Counters are monotonically non-decreasing except ``reconnect_attempts``,
which resets to 0 on every successful connection.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True, slots=True)
class ConnectionStats:
    """
    Point-in-time view of the client's statistics.

    Attributes:
        images_received: Images decoded and delivered
        bytes_received: Total image bytes delivered
        connected_at: Time of the most recent successful connection
        is_connected: Whether the transport is currently open
        reconnect_attempts: Retries since the last successful connection
    """

    images_received: int = 0
    bytes_received: int = 0
    connected_at: Optional[datetime] = None
    is_connected: bool = False
    reconnect_attempts: int = 0

    def to_dict(self) -> dict:
        """Export stats as dict."""
        return {
            "images_received": self.images_received,
            "bytes_received": self.bytes_received,
            "connected_at": (
                self.connected_at.isoformat() if self.connected_at else None
            ),
            "is_connected": self.is_connected,
            "reconnect_attempts": self.reconnect_attempts,
        }
