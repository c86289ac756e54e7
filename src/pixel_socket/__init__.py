"""
PixelSocket
===========

Resilient WebSocket client that collects images from a streaming server.

The client keeps a long-lived connection open, reconnects with a fixed
delay after loss, and normalizes binary frames, structured
``image-generated`` events and generic base64 payloads into image bytes
plus metadata.

Components:
    - stream: Connection lifecycle, payload decoding, statistics
    - models: Metadata, events, state and wire schemas
    - storage: Saving images to disk
    - config: YAML / environment configuration and logging setup

Example:
    import asyncio
    from pixel_socket import PixelSocket

    async def main():
        client = PixelSocket(
            "ws://localhost:8188/ws",
            on_image=lambda data, meta: print(len(data), meta.format),
        )
        await client.connect()
        await client.wait_closed()

    asyncio.run(main())
"""

__version__ = "0.1.0"

from pixel_socket.client import PixelSocket
from pixel_socket.errors import (
    DecodeError,
    PixelSocketError,
    ReconnectExhausted,
    TransportError,
)
from pixel_socket.models import (
    ConnectionState,
    ConnectionStats,
    DecodedImage,
    GenerationParams,
    ImageMetadata,
)

__all__ = [
    "__version__",
    "PixelSocket",
    "PixelSocketError",
    "TransportError",
    "ReconnectExhausted",
    "DecodeError",
    "ConnectionState",
    "ConnectionStats",
    "DecodedImage",
    "GenerationParams",
    "ImageMetadata",
]
