"""
Data Models
===========

Types shared by the PixelSocket client.

This module re-exports all data models for convenient access.

Models:
    Input:
        - ImageGeneratedMessage: Schema of the structured image event

    State:
        - ConnectionState: Lifecycle states (IDLE ... CLOSED)
        - ReconnectPolicy: Immutable retry configuration

    Output:
        - DecodedImage, ImageMetadata, GenerationParams: Decoded images
        - ControlResult: Non-image traffic
        - ConnectionStats: Counter snapshot

    Events:
        - ConnectEvent, DisconnectEvent, ErrorEvent, ImageEvent
"""

from pixel_socket.models.input import ImageGeneratedMessage, IMAGE_GENERATED
from pixel_socket.models.state import ConnectionState, ReconnectPolicy
from pixel_socket.models.metadata import (
    ControlResult,
    DecodedImage,
    GenerationParams,
    ImageMetadata,
)
from pixel_socket.models.stats import ConnectionStats
from pixel_socket.models.events import (
    ClientEvent,
    ConnectEvent,
    DisconnectEvent,
    ErrorEvent,
    ImageEvent,
)

__all__ = [
    # Input
    "ImageGeneratedMessage",
    "IMAGE_GENERATED",
    # State
    "ConnectionState",
    "ReconnectPolicy",
    # Output
    "DecodedImage",
    "ImageMetadata",
    "GenerationParams",
    "ControlResult",
    "ConnectionStats",
    # Events
    "ClientEvent",
    "ConnectEvent",
    "DisconnectEvent",
    "ErrorEvent",
    "ImageEvent",
]
