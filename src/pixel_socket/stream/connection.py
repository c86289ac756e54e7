"""
Connection Manager
==================

Owns the WebSocket lifecycle for one client.

This module provides the ConnectionManager class which:
    - Opens the transport and starts a reader task
    - Detects unexpected closure and schedules fixed-delay reconnects
    - Gives up after max_attempts consecutive failures
    - Reports every lifecycle change as a ClientEvent

States:
    IDLE -> CONNECTING -> OPEN -> RECONNECTING -> CONNECTING -> ...
    Any state -> CLOSED on disconnect() or when retries are exhausted.

Design Rules:
    - Only this class mutates ConnectionState and the reconnect counter
    - Nothing here raises across the event loop; failures become events
    - disconnect() cancels a pending retry before its first await, so no
      retry can fire once it returns
    - send() never queues; outside OPEN the message is dropped
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Tuple, Union

import websockets

from pixel_socket.errors import ReconnectExhausted, TransportError
from pixel_socket.models.events import (
    ABNORMAL_CLOSE_CODE,
    CLIENT_CLOSE_CODE,
    CLIENT_CLOSE_REASON,
    ClientEvent,
    ConnectEvent,
    DisconnectEvent,
    ErrorEvent,
)
from pixel_socket.models.state import ConnectionState, ReconnectPolicy
from pixel_socket.stream.stats import StatsTracker


logger = logging.getLogger(__name__)


Connector = Callable[[str], Awaitable[Any]]
EventSink = Callable[[ClientEvent], None]
MessageSink = Callable[[Union[str, bytes]], None]


def websocket_connector(
    ping_interval: Optional[float] = 20.0,
    ping_timeout: Optional[float] = 10.0,
    open_timeout: Optional[float] = 10.0,
    max_size: Optional[int] = 2 ** 25,
) -> Connector:
    """
    Build the default connector backed by the websockets library.

    Args:
        ping_interval: Seconds between keepalive pings (None disables)
        ping_timeout: Seconds to wait for a pong before failing
        open_timeout: Seconds allowed for the opening handshake
        max_size: Largest accepted message in bytes (None = unlimited)
    """

    async def connect(url: str) -> Any:
        return await websockets.connect(
            url,
            ping_interval=ping_interval,
            ping_timeout=ping_timeout,
            open_timeout=open_timeout,
            close_timeout=5,
            max_size=max_size,
        )

    return connect


class ConnectionManager:
    """
    Connection lifecycle state machine.

    Attributes:
        url: WebSocket URL to connect to
        policy: Reconnect policy
        stats: Shared StatsTracker
        state: Current ConnectionState

    Example:
        manager = ConnectionManager(
            url="ws://localhost:8188/ws",
            policy=ReconnectPolicy(enabled=True, delay_ms=5000, max_attempts=10),
            emit=dispatch,
            on_message=handle_message,
        )

        await manager.connect()
        ...
        await manager.disconnect()
    """

    def __init__(
        self,
        url: str,
        policy: ReconnectPolicy,
        emit: EventSink,
        on_message: MessageSink,
        stats: Optional[StatsTracker] = None,
        connector: Optional[Connector] = None,
    ) -> None:
        """
        Initialize connection manager.

        Args:
            url: WebSocket URL of the image server
            policy: Reconnect policy, fixed for the manager's lifetime
            emit: Receives every lifecycle event
            on_message: Receives every inbound frame, synchronously
            stats: Tracker to update (a new one if omitted)
            connector: Coroutine factory opening the transport
        """
        self.url = url
        self.policy = policy
        self.stats = stats if stats is not None else StatsTracker()

        self._emit = emit
        self._on_message = on_message
        self._connector = connector or websocket_connector()

        # State
        self._state: ConnectionState = ConnectionState.IDLE
        self._reconnect_count: int = 0
        self._transport: Optional[Any] = None
        self._reader_task: Optional[asyncio.Task] = None
        self._reconnect_task: Optional[asyncio.Task] = None
        self._closed: asyncio.Event = asyncio.Event()

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def reconnect_attempts(self) -> int:
        """Consecutive retries since the last successful connection."""
        return self._reconnect_count

    @property
    def connected(self) -> bool:
        return self._state is ConnectionState.OPEN

    # -------------------------------------------------------------------------
    # Public operations
    # -------------------------------------------------------------------------

    async def connect(self) -> bool:
        """
        Open the connection.

        Valid from IDLE or CLOSED. Suspends until the first attempt
        succeeds or fails; later retries run in the background.

        Returns:
            True if this call opened the connection
        """
        if self._state not in (ConnectionState.IDLE, ConnectionState.CLOSED):
            error = TransportError(
                f"connect() called while {self._state.value}; ignored"
            )
            logger.warning(str(error))
            self._emit(ErrorEvent(error))
            return False

        self._reconnect_count = 0
        self.stats.reset_reconnect_attempts()
        self._closed.clear()
        logger.info(f"Connecting to {self.url}")
        return await self._attempt()

    async def disconnect(self) -> None:
        """
        Close the connection and cancel any pending retry.

        Idempotent: does nothing when already CLOSED.
        """
        if self._state is ConnectionState.CLOSED:
            return

        previous = self._state
        self._state = ConnectionState.CLOSED
        self._closed.set()

        current = asyncio.current_task()
        reconnect_task, self._reconnect_task = self._reconnect_task, None
        reader_task, self._reader_task = self._reader_task, None
        transport, self._transport = self._transport, None

        for task in (reconnect_task, reader_task):
            if task is not None and task is not current:
                task.cancel()

        if transport is not None:
            self.stats.record_disconnected()
            await self._close_transport(transport)

        for task in (reconnect_task, reader_task):
            if task is not None and task is not current:
                try:
                    await task
                except asyncio.CancelledError:
                    pass

        logger.info(f"Disconnected from {self.url} (was {previous.value})")
        self._emit(DisconnectEvent(CLIENT_CLOSE_CODE, CLIENT_CLOSE_REASON))

    async def send(self, data: Union[str, bytes]) -> bool:
        """
        Send one message.

        Valid only while OPEN. Failures are reported as ErrorEvents and
        the message is dropped.

        Returns:
            True if the transport accepted the message
        """
        transport = self._transport
        if self._state is not ConnectionState.OPEN or transport is None:
            error = TransportError(
                f"send() called while {self._state.value}; message dropped"
            )
            logger.warning(str(error))
            self._emit(ErrorEvent(error))
            return False

        try:
            await transport.send(data)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            error = TransportError(f"Send failed: {e}")
            logger.warning(str(error))
            self._emit(ErrorEvent(error))
            return False
        return True

    async def wait_closed(self) -> None:
        """Suspend until the manager reaches CLOSED."""
        await self._closed.wait()

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    async def _attempt(self) -> bool:
        """Run one transport connection attempt."""
        self._state = ConnectionState.CONNECTING
        try:
            transport = await self._connector(self.url)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if self._state is not ConnectionState.CONNECTING:
                return False
            logger.warning(f"Connection to {self.url} failed: {e}")
            self._handle_loss(TransportError(f"Connection failed: {e}"))
            return False

        if self._state is not ConnectionState.CONNECTING:
            # disconnect() ran while the handshake was in flight
            await self._close_transport(transport)
            return False

        self._transport = transport
        self._state = ConnectionState.OPEN
        self._reconnect_count = 0
        self.stats.record_connected()
        logger.info(f"Connected to {self.url}")

        self._reader_task = asyncio.create_task(
            self._read_loop(transport),
            name="pixel_socket_reader",
        )
        self._emit(ConnectEvent(self.url))
        return True

    async def _read_loop(self, transport: Any) -> None:
        """Forward inbound frames until the transport closes."""
        error: Optional[Exception] = None
        try:
            async for message in transport:
                self._on_message(message)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            error = e

        if self._transport is not transport:
            # Closed by disconnect()
            return

        code = getattr(transport, "close_code", None) or ABNORMAL_CLOSE_CODE
        reason = getattr(transport, "close_reason", None) or ""
        if error is not None:
            logger.warning(f"Connection closed with error: {error}")
        else:
            logger.warning(f"Connection closed by server: code={code} reason={reason!r}")

        self._handle_loss(
            TransportError(f"Connection lost: {error}", code, reason)
            if error is not None
            else None,
            closed=(code, reason),
        )

    def _handle_loss(
        self,
        error: Optional[Exception],
        closed: Optional[Tuple[int, str]] = None,
    ) -> None:
        """
        React to a failed attempt or a lost session.

        Args:
            error: Transport failure to report, if any
            closed: (code, reason) when an open session was lost
        """
        self._transport = None
        self._reader_task = None
        if closed is not None:
            self.stats.record_disconnected()

        exhausted: Optional[ReconnectExhausted] = None
        if self.policy.enabled and self._reconnect_count < self.policy.max_attempts:
            self._reconnect_count += 1
            self.stats.record_reconnect_attempt()
            self._state = ConnectionState.RECONNECTING
            logger.info(
                f"Reconnecting in {self.policy.delay_seconds:.1f}s "
                f"(attempt {self._reconnect_count}/{self.policy.max_attempts})"
            )
            self._reconnect_task = asyncio.create_task(
                self._reconnect_after_delay(),
                name="pixel_socket_reconnect",
            )
        else:
            self._state = ConnectionState.CLOSED
            self._closed.set()
            if self.policy.enabled:
                exhausted = ReconnectExhausted(self._reconnect_count)
                logger.error(str(exhausted))
            else:
                logger.info("Auto-reconnect disabled, connection closed")

        if closed is not None:
            self._emit(DisconnectEvent(*closed))
        if error is not None:
            self._emit(ErrorEvent(error))
        if exhausted is not None:
            self._emit(ErrorEvent(exhausted))

    async def _reconnect_after_delay(self) -> None:
        """One-shot backoff timer followed by a retry."""
        try:
            await asyncio.sleep(self.policy.delay_seconds)
            if self._state is not ConnectionState.RECONNECTING:
                return
            await self._attempt()
        finally:
            if self._reconnect_task is asyncio.current_task():
                self._reconnect_task = None

    @staticmethod
    async def _close_transport(transport: Any) -> None:
        try:
            await transport.close()
        except Exception as e:
            logger.warning(f"Error while closing transport: {e}")
