"""
Client Events
=============

Tagged events emitted by the connection manager and the decoder, consumed
by the client's single dispatch point.

Events:
    - ConnectEvent: transport opened
    - DisconnectEvent: transport closed (code, reason)
    - ErrorEvent: TransportError, ReconnectExhausted or DecodeError
    - ImageEvent: one decoded image
"""

from dataclasses import dataclass
from typing import Union

from pixel_socket.models.metadata import DecodedImage


# Close code used when the client ends the session itself
CLIENT_CLOSE_CODE = 1000
CLIENT_CLOSE_REASON = "Client disconnect"

# Close code reported when the transport vanished without a close frame
ABNORMAL_CLOSE_CODE = 1006


@dataclass(frozen=True, slots=True)
class ConnectEvent:
    url: str


@dataclass(frozen=True, slots=True)
class DisconnectEvent:
    code: int
    reason: str


@dataclass(frozen=True, slots=True)
class ErrorEvent:
    error: Exception


@dataclass(frozen=True, slots=True)
class ImageEvent:
    image: DecodedImage


ClientEvent = Union[ConnectEvent, DisconnectEvent, ErrorEvent, ImageEvent]
