"""Transport abstraction for the shared duplex connection.

The client core only needs two things from a transport:
- send(bytes): write one outbound frame
- receive(): an async iterator of inbound frames, ending when the connection
  closes

Implementations own framing, TLS and connection management:
- WebSocketTransport: one websocket connection (the `websockets` library)
- MockTransport: in-memory, for tests; records sent frames and lets the test
  feed inbound frames
"""

from __future__ import annotations

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from ..config import ClientConfig
from ..errors import ConnectionClosedError

logger = logging.getLogger(__name__)


class TransportState(str, Enum):
    """Connection state machine."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    CLOSED = "closed"


@runtime_checkable
class Transport(Protocol):
    """Protocol for duplex frame transports."""

    @property
    def state(self) -> TransportState:
        """Current connection state."""
        ...

    @property
    def is_connected(self) -> bool:
        """Check if transport is connected."""
        ...

    async def connect(self) -> None:
        """Establish the connection.

        Raises:
            ConnectionError: If connection fails
        """
        ...

    async def close(self) -> None:
        """Close the connection gracefully."""
        ...

    async def send(self, frame: bytes) -> None:
        """Send one frame.

        Raises:
            ConnectionClosedError: If the connection is not open
        """
        ...

    def receive(self) -> AsyncIterator[bytes]:
        """Yield inbound frames until the connection closes."""
        ...


class BaseTransport(ABC):
    """Base class for transports with state management."""

    def __init__(self) -> None:
        self._state = TransportState.DISCONNECTED
        self._lock = asyncio.Lock()

    @property
    def state(self) -> TransportState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state == TransportState.CONNECTED

    async def connect(self) -> None:
        async with self._lock:
            if self._state == TransportState.CONNECTED:
                return

            self._state = TransportState.CONNECTING
            try:
                await self._do_connect()
            except Exception as e:
                self._state = TransportState.DISCONNECTED
                raise ConnectionError(f"Failed to connect: {e}") from e
            self._state = TransportState.CONNECTED
            logger.info(f"{self.__class__.__name__} connected")

    async def close(self) -> None:
        async with self._lock:
            if self._state in (TransportState.DISCONNECTED, TransportState.CLOSED):
                return
            self._state = TransportState.CLOSED
            await self._do_close()
            logger.info(f"{self.__class__.__name__} closed")

    async def send(self, frame: bytes) -> None:
        if not self.is_connected:
            raise ConnectionClosedError("transport not connected")
        await self._do_send(frame)

    def receive(self) -> AsyncIterator[bytes]:
        return self._do_receive()

    @abstractmethod
    async def _do_connect(self) -> None:
        """Implementation-specific connection logic."""
        ...

    @abstractmethod
    async def _do_close(self) -> None:
        """Implementation-specific close logic."""
        ...

    @abstractmethod
    async def _do_send(self, frame: bytes) -> None:
        """Implementation-specific send logic."""
        ...

    @abstractmethod
    def _do_receive(self) -> AsyncIterator[bytes]:
        """Implementation-specific receive logic. Must be an async generator."""
        ...

    async def __aenter__(self) -> BaseTransport:
        await self.connect()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()


class WebSocketTransport(BaseTransport):
    """Transport over a single websocket connection.

    Frames are sent as text messages (UTF-8 JSON); inbound text and binary
    messages are both yielded as bytes.
    """

    def __init__(self, config: ClientConfig | None = None):
        super().__init__()
        self.config = config or ClientConfig()
        self._ws: Any = None  # websockets.asyncio.client.ClientConnection

    async def _do_connect(self) -> None:
        from websockets.asyncio.client import connect

        self._ws = await connect(
            self.config.url,
            open_timeout=self.config.open_timeout,
            close_timeout=self.config.close_timeout,
            ping_interval=self.config.ping_interval,
        )
        logger.debug(f"WebSocket opened to {self.config.url}")

    async def _do_close(self) -> None:
        if self._ws is not None:
            await self._ws.close()
            self._ws = None

    async def _do_send(self, frame: bytes) -> None:
        from websockets.exceptions import ConnectionClosed

        if self._ws is None:
            raise ConnectionClosedError("websocket not connected")
        try:
            await self._ws.send(frame.decode("utf-8"))
        except ConnectionClosed as e:
            self._state = TransportState.CLOSED
            raise ConnectionClosedError(f"websocket closed: {e}") from e

    async def _do_receive(self) -> AsyncIterator[bytes]:
        from websockets.exceptions import ConnectionClosed

        if self._ws is None:
            raise ConnectionClosedError("websocket not connected")
        try:
            async for message in self._ws:
                yield message.encode("utf-8") if isinstance(message, str) else bytes(message)
        except ConnectionClosed as e:
            logger.info(f"WebSocket closed: {e}")
        self._state = TransportState.CLOSED


class MockTransport(BaseTransport):
    """Mock transport for testing.

    No actual I/O - everything is in-memory.

    Usage:
        transport = MockTransport()
        async with TaskClient(transport) as client:
            task = asyncio.create_task(client.image_inference(req))
            frame = await transport.next_sent()
            transport.feed({"newImages": [{"taskUUID": frame["data"][0]["taskUUID"]}]})
            response = await task
    """

    def __init__(self) -> None:
        super().__init__()
        self._inbound: asyncio.Queue[bytes | None] = asyncio.Queue()
        self._sent: asyncio.Queue[bytes] = asyncio.Queue()
        self._recorded: list[bytes] = []
        self.send_error: Exception | None = None

    @property
    def sent_frames(self) -> list[bytes]:
        """All frames sent through this transport."""
        return self._recorded.copy()

    async def next_sent(self, timeout: float = 1.0) -> dict[str, Any]:
        """Wait for the next sent frame and return it decoded."""
        frame = await asyncio.wait_for(self._sent.get(), timeout=timeout)
        return json.loads(frame)

    def feed(self, message: dict[str, Any] | bytes | str) -> None:
        """Queue one inbound frame."""
        if isinstance(message, dict):
            message = json.dumps(message)
        if isinstance(message, str):
            message = message.encode("utf-8")
        self._inbound.put_nowait(message)

    def end_stream(self) -> None:
        """Make receive() finish, as if the remote side hung up."""
        self._inbound.put_nowait(None)

    async def _do_connect(self) -> None:
        """No-op for mock."""
        pass

    async def _do_close(self) -> None:
        self.end_stream()

    async def _do_send(self, frame: bytes) -> None:
        if self.send_error is not None:
            raise self.send_error
        self._recorded.append(frame)
        self._sent.put_nowait(frame)

    async def _do_receive(self) -> AsyncIterator[bytes]:
        while True:
            frame = await self._inbound.get()
            if frame is None:
                break
            yield frame


# Factory functions


def create_websocket_transport(config: ClientConfig | None = None) -> WebSocketTransport:
    """Create a websocket transport.

    Args:
        config: Client configuration (URL and connection timeouts)

    Returns:
        WebSocketTransport, not yet connected
    """
    return WebSocketTransport(config)


def create_mock_transport() -> MockTransport:
    """Create a mock transport for testing."""
    return MockTransport()
