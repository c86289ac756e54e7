"""
Stream Module
=============

Connection lifecycle and payload decoding components.

This module provides the ingestion layer for PixelSocket:
    - ConnectionManager: WebSocket lifecycle with fixed-delay reconnection
    - PayloadDecoder: Classifies frames and decodes image payloads
    - StatsTracker: Image, byte and reconnect counters
    - sniff_format: Image format from magic numbers

Example:
    from pixel_socket.models import ReconnectPolicy
    from pixel_socket.stream import ConnectionManager, PayloadDecoder

    decoder = PayloadDecoder()
    manager = ConnectionManager(
        url="ws://localhost:8188/ws",
        policy=ReconnectPolicy(delay_ms=1000, max_attempts=3),
        emit=print,
        on_message=lambda message: print(decoder.decode(message)),
    )
    await manager.connect()
"""

from pixel_socket.stream.sniffing import sniff_format
from pixel_socket.stream.decoder import PayloadDecoder
from pixel_socket.stream.stats import StatsTracker
from pixel_socket.stream.connection import ConnectionManager, websocket_connector


__all__ = [
    "ConnectionManager",
    "PayloadDecoder",
    "StatsTracker",
    "sniff_format",
    "websocket_connector",
]
