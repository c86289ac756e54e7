"""
PixelSocket Client
==================

Public entry point: a resilient WebSocket client that collects images.

This client:
    - Keeps a connection open through ConnectionManager
    - Decodes every inbound frame with PayloadDecoder
    - Counts images and bytes in a StatsTracker
    - Optionally saves each image through ImageSaver
    - Routes every event through one dispatch point to the user callbacks

Example:
    from pixel_socket import PixelSocket

    client = PixelSocket(
        "ws://localhost:8188/ws",
        save_directory="./images",
        on_image=lambda data, meta: print(f"{len(data)} bytes"),
        on_connect=lambda: print("connected"),
    )

    await client.connect()
    await client.wait_closed()

Design Rules:
    - A bad message is reported through on_error and never closes the
      connection
    - Exceptions raised by user callbacks are logged, never propagated
      into the reader task
    - All state lives on the instance; clients are independent
"""

import logging
from typing import Callable, Optional, Union

from pixel_socket.config import ClientConfig
from pixel_socket.errors import DecodeError
from pixel_socket.models.events import (
    ClientEvent,
    ConnectEvent,
    DisconnectEvent,
    ErrorEvent,
    ImageEvent,
)
from pixel_socket.models.metadata import ControlResult, DecodedImage, ImageMetadata
from pixel_socket.models.state import ConnectionState
from pixel_socket.models.stats import ConnectionStats
from pixel_socket.storage import ImageSaver
from pixel_socket.stream.connection import (
    ConnectionManager,
    Connector,
    websocket_connector,
)
from pixel_socket.stream.decoder import PayloadDecoder
from pixel_socket.stream.stats import StatsTracker


logger = logging.getLogger(__name__)


ImageCallback = Callable[[bytes, Optional[ImageMetadata]], None]
ConnectCallback = Callable[[], None]
DisconnectCallback = Callable[[int, str], None]
ErrorCallback = Callable[[Exception], None]


class PixelSocket:
    """
    WebSocket image collector with automatic reconnection.

    Attributes:
        config: Validated client configuration
        manager: Connection lifecycle owner
        decoder: Payload decoder
        saver: Image saver, or None when saving is disabled
    """

    def __init__(
        self,
        url: Optional[str] = None,
        *,
        config: Optional[ClientConfig] = None,
        save_directory: str = "./received_images",
        save_images: bool = True,
        auto_reconnect: bool = True,
        reconnect_delay_ms: int = 5000,
        max_reconnect_attempts: int = 10,
        on_image: Optional[ImageCallback] = None,
        on_connect: Optional[ConnectCallback] = None,
        on_disconnect: Optional[DisconnectCallback] = None,
        on_error: Optional[ErrorCallback] = None,
        connector: Optional[Connector] = None,
        decoder: Optional[PayloadDecoder] = None,
    ) -> None:
        """
        Initialize client.

        Args:
            url: WebSocket URL of the image server
            config: Complete ClientConfig; when given, url and the option
                arguments above are ignored
            save_directory: Directory received images are written to
            save_images: Whether to write images to save_directory
            auto_reconnect: Reconnect after unexpected loss
            reconnect_delay_ms: Fixed delay before each reconnect attempt
            max_reconnect_attempts: Consecutive attempts before giving up
            on_image: Called with (bytes, metadata) for every image
            on_connect: Called when the connection opens
            on_disconnect: Called with (code, reason) when it closes
            on_error: Called with the error for every reported failure
            connector: Transport factory (defaults to websockets.connect)
            decoder: Payload decoder (defaults to PayloadDecoder())
        """
        if config is None:
            config = ClientConfig(
                url=url,
                save_directory=save_directory,
                save_images=save_images,
                auto_reconnect=auto_reconnect,
                reconnect_delay_ms=reconnect_delay_ms,
                max_reconnect_attempts=max_reconnect_attempts,
            )

        self.config = config
        self.on_image = on_image
        self.on_connect = on_connect
        self.on_disconnect = on_disconnect
        self.on_error = on_error

        self.decoder = decoder or PayloadDecoder()
        self.saver = ImageSaver(config.save_directory) if config.save_images else None
        self._stats = StatsTracker()

        if connector is None:
            connector = websocket_connector(
                ping_interval=config.ping_interval_seconds,
                ping_timeout=config.ping_timeout_seconds,
                open_timeout=config.open_timeout_seconds,
                max_size=config.max_message_bytes,
            )
        self.manager = ConnectionManager(
            url=config.url,
            policy=config.reconnect_policy(),
            emit=self._dispatch,
            on_message=self._handle_message,
            stats=self._stats,
            connector=connector,
        )

    @classmethod
    def from_config(
        cls,
        config: ClientConfig,
        *,
        on_image: Optional[ImageCallback] = None,
        on_connect: Optional[ConnectCallback] = None,
        on_disconnect: Optional[DisconnectCallback] = None,
        on_error: Optional[ErrorCallback] = None,
        connector: Optional[Connector] = None,
        decoder: Optional[PayloadDecoder] = None,
    ) -> "PixelSocket":
        """Build a client from an already validated ClientConfig."""
        return cls(
            config=config,
            on_image=on_image,
            on_connect=on_connect,
            on_disconnect=on_disconnect,
            on_error=on_error,
            connector=connector,
            decoder=decoder,
        )

    # -------------------------------------------------------------------------
    # Public operations
    # -------------------------------------------------------------------------

    @property
    def url(self) -> str:
        return self.config.url

    @property
    def state(self) -> ConnectionState:
        return self.manager.state

    async def connect(self) -> bool:
        """Connect; suspends until the first attempt's outcome is known."""
        return await self.manager.connect()

    async def disconnect(self) -> None:
        await self.manager.disconnect()

    async def send(self, data: Union[str, bytes]) -> bool:
        """Send a text or binary message. Dropped unless connected."""
        return await self.manager.send(data)

    async def wait_closed(self) -> None:
        """Suspend until the client is closed or gives up reconnecting."""
        await self.manager.wait_closed()

    def get_stats(self) -> ConnectionStats:
        return self._stats.snapshot()

    def is_connected(self) -> bool:
        return self.manager.connected

    async def __aenter__(self) -> "PixelSocket":
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, *args) -> None:
        """Async context manager exit."""
        await self.disconnect()

    # -------------------------------------------------------------------------
    # Message handling
    # -------------------------------------------------------------------------

    def _handle_message(self, message: Union[str, bytes]) -> None:
        """Decode one inbound frame and dispatch the outcome."""
        try:
            result = self.decoder.decode(message)
        except DecodeError as e:
            logger.warning(f"Dropping undecodable message: {e}")
            self._dispatch(ErrorEvent(e))
            return
        except Exception as e:
            logger.exception("Unexpected error decoding message")
            self._dispatch(ErrorEvent(DecodeError(f"Unexpected decode failure: {e}")))
            return

        if isinstance(result, ControlResult):
            logger.debug(f"Control message: type={result.message_type}")
            return

        self._stats.record_image(len(result.data))
        self._dispatch(ImageEvent(result))

    def _dispatch(self, event: ClientEvent) -> None:
        """Single delivery point for every client event."""
        try:
            if isinstance(event, ImageEvent):
                self._deliver_image(event.image)
            elif isinstance(event, ConnectEvent):
                if self.on_connect:
                    self.on_connect()
            elif isinstance(event, DisconnectEvent):
                if self.on_disconnect:
                    self.on_disconnect(event.code, event.reason)
            elif isinstance(event, ErrorEvent):
                if self.on_error:
                    self.on_error(event.error)
        except Exception:
            logger.exception(f"Callback failed for {type(event).__name__}")

    def _deliver_image(self, image: DecodedImage) -> None:
        logger.debug(f"Received {image!r}")
        if self.saver is not None:
            try:
                path = self.saver.save(image)
                logger.info(f"Saved image: {path} ({image.size} bytes)")
            except (OSError, ValueError) as e:
                logger.error(f"Failed to save image: {e}")
                self._dispatch(ErrorEvent(e))
        if self.on_image:
            self.on_image(image.data, image.metadata)
