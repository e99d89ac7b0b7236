"""Task client - one method per operation over a shared connection.

Each call:
1. merges the operation defaults into the request
2. validates it (no I/O happens for an invalid request)
3. registers a pending request under the operation's response event
4. sends the request frame
5. waits for the answer, the request timeout, or caller cancellation
6. deregisters and returns

Many calls may be in flight at once; the dispatcher routes every answer to
the request it belongs to.

Usage:
    transport = create_websocket_transport(config)
    async with TaskClient(transport, config) as client:
        await client.connect_session()
        image = await client.image_inference(
            ImageInferenceRequest(positive_prompt="a fox", model="runware:100@1",
                                  width=512, height=512)
        )
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import pydantic

from ..config import ClientConfig
from ..errors import (
    ConnectionClosedError,
    DecodeError,
    RequestCancelledError,
    RequestTimeoutError,
)
from ..protocol.frames import EventName, RequestFrame
from .defaults import merge_image_inference_defaults, merge_new_connect_defaults
from .dispatcher import Dispatcher
from .pending import PendingRequest, PendingRequestTable
from .transport import MockTransport, Transport, create_mock_transport, create_websocket_transport
from .types import (
    ImageInferenceRequest,
    ImageInferenceResponse,
    NewConnectRequest,
    NewConnectResponse,
)
from .validation import validate_image_inference, validate_new_connect

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Operation:
    """How one operation travels on the wire."""

    name: str
    event: EventName
    response_event: EventName
    wrap_in_list: bool = False


CONNECT_SESSION = Operation(
    name="connect_session",
    event=EventName.NEW_CONNECTION,
    response_event=EventName.NEW_CONNECTION_SESSION_UUID,
)
IMAGE_INFERENCE = Operation(
    name="image_inference",
    event=EventName.NEW_TASK,
    response_event=EventName.NEW_IMAGES,
    wrap_in_list=True,
)


class TaskClient:
    """Client for the inference service over one shared transport."""

    def __init__(
        self,
        transport: Transport,
        config: ClientConfig | None = None,
        owns_transport: bool = True,
    ):
        self.config = config or ClientConfig()
        self._transport = transport
        self._owns_transport = owns_transport
        self._table = PendingRequestTable()
        self._dispatcher = Dispatcher(transport, self._table, self.config.unaddressed_errors)
        self.connection_session_uuid: str | None = None

    @property
    def transport(self) -> Transport:
        """Access the underlying transport."""
        return self._transport

    @property
    def pending(self) -> PendingRequestTable:
        """Requests currently waiting for an answer."""
        return self._table

    @property
    def dispatcher(self) -> Dispatcher:
        return self._dispatcher

    @property
    def is_connected(self) -> bool:
        return self._transport.is_connected and self._dispatcher.running

    async def start(self) -> None:
        """Connect the transport and start routing inbound frames."""
        await self._transport.connect()
        self._dispatcher.start()

    async def close(self) -> None:
        """Stop routing and close the transport if this client owns it."""
        await self._dispatcher.stop()
        if self._owns_transport:
            await self._transport.close()

    async def __aenter__(self) -> TaskClient:
        await self.start()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    # Operations

    async def connect_session(
        self,
        req: NewConnectRequest | None = None,
        cancel: asyncio.Event | None = None,
    ) -> NewConnectResponse:
        """Open a session, or resume the one this client already holds.

        The API key and session UUID fall back to the config and the last
        session this client opened.

        Raises:
            ValidationError: If no API key is available
            CredentialError: If the service rejects the API key
            RequestTimeoutError: With `partial.timed_out` set
        """
        req = req or NewConnectRequest()
        update: dict[str, Any] = {}
        if req.api_key is None:
            update["api_key"] = self.config.api_key
        if req.connection_session_uuid is None and self.connection_session_uuid:
            update["connection_session_uuid"] = self.connection_session_uuid
        req = merge_new_connect_defaults(req.model_copy(update=update))
        validate_new_connect(req)

        payload = await self._request(
            CONNECT_SESSION,
            req,
            cancel=cancel,
            partial=lambda: NewConnectResponse(timed_out=True),
        )
        if isinstance(payload, str):
            response = NewConnectResponse(connection_session_uuid=payload)
        else:
            response = _decode(NewConnectResponse, payload)
        self.connection_session_uuid = response.connection_session_uuid
        logger.info(f"Session established: {response.connection_session_uuid}")
        return response

    async def image_inference(
        self,
        req: ImageInferenceRequest,
        cancel: asyncio.Event | None = None,
    ) -> ImageInferenceResponse:
        """Generate an image.

        Raises:
            ValidationError: If the merged request is invalid
            ProtocolError: If the service answers with an error
            RequestTimeoutError: With `partial.timed_out` set
            RequestCancelledError: If `cancel` is set before the answer
        """
        req = merge_image_inference_defaults(req)
        validate_image_inference(req)

        payload = await self._request(
            IMAGE_INFERENCE,
            req,
            cancel=cancel,
            partial=lambda: ImageInferenceResponse(
                task_type=req.task_type, task_uuid=req.task_uuid, timed_out=True
            ),
        )
        return _decode(ImageInferenceResponse, payload)

    # Lifecycle

    async def _request(
        self,
        operation: Operation,
        data: Any,
        cancel: asyncio.Event | None,
        partial: Callable[[], Any],
    ) -> Any:
        """Register, send, wait, deregister. Returns the raw answer payload."""
        if self._dispatcher.closed:
            raise ConnectionClosedError(str(self._dispatcher.closed_error))
        if not self._dispatcher.running:
            raise ConnectionClosedError("client not started")
        if cancel is not None and cancel.is_set():
            raise RequestCancelledError(operation.name)

        frame = RequestFrame.create(
            operation.event,
            operation.response_event,
            [data] if operation.wrap_in_list else data,
        )
        pending = self._table.register(frame.response_event, frame.id)
        try:
            await self._transport.send(frame.to_bytes())
            logger.debug(f"Sent {frame.event} {frame.id}, awaiting {frame.response_event}")
            return await self._wait(pending, operation, cancel, partial)
        finally:
            self._table.remove(pending.id)
            if not pending.done:
                pending.completion.cancel()

    async def _wait(
        self,
        pending: PendingRequest,
        operation: Operation,
        cancel: asyncio.Event | None,
        partial: Callable[[], Any],
    ) -> Any:
        # Await the slot itself: cancelling this task (or the timeout firing)
        # cancels the slot at once, so the dispatcher skips it.
        watcher: asyncio.Task[None] | None = None
        if cancel is not None:
            watcher = asyncio.create_task(_watch_cancel(pending, operation, cancel))

        timeout = asyncio.timeout(self.config.request_timeout)
        try:
            async with timeout:
                return await pending.completion
        except TimeoutError:
            if not timeout.expired():
                raise
            logger.warning(f"{operation.name} {pending.id} timed out")
            raise RequestTimeoutError(
                operation.name, self.config.request_timeout, partial()
            ) from None
        finally:
            if watcher is not None:
                watcher.cancel()


async def _watch_cancel(
    pending: PendingRequest, operation: Operation, cancel: asyncio.Event
) -> None:
    """Fail the request with RequestCancelledError once `cancel` is set."""
    await cancel.wait()
    if pending.fail(RequestCancelledError(operation.name)):
        logger.debug(f"{operation.name} {pending.id} cancelled by caller")


def _decode(model: type[pydantic.BaseModel], payload: Any) -> Any:
    try:
        return model.model_validate(payload)
    except pydantic.ValidationError as e:
        raise DecodeError(f"invalid {model.__name__}: {e.error_count()} error(s)") from e


# Factory functions


def create_websocket_client(config: ClientConfig | None = None) -> TaskClient:
    """Create a client that talks to the service over a websocket.

    Args:
        config: Client configuration (defaults to the environment)

    Returns:
        TaskClient, not yet started
    """
    config = config or ClientConfig.from_env()
    return TaskClient(create_websocket_transport(config), config)


def create_test_client(
    transport: MockTransport | None = None,
    config: ClientConfig | None = None,
) -> TaskClient:
    """Create a client for testing.

    Args:
        transport: Pre-configured mock transport (creates new if None)
        config: Client configuration

    Returns:
        TaskClient with MockTransport
    """
    return TaskClient(
        transport or create_mock_transport(),
        config,
        owns_transport=transport is None,
    )
