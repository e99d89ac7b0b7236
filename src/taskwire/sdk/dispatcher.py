"""Dispatcher - the single reader of the shared connection.

One background task owns `transport.receive()` for the life of the
connection. Every inbound frame is decoded, classified against the keys
currently awaited, and routed:

- Match: delivered to the oldest request waiting on that key
- Error naming a pending request id: delivered to that request
- Error carrying an awaited key: delivered to the oldest request on that key
- Any other error (including undecodable frames): handled by the
  unaddressed-error policy, broadcast to every pending request or dropped
- Unroutable: logged and skipped

Delivery sets a future and never awaits the waiter, so a slow caller cannot
stall the reader. When the stream ends every request still pending fails
with ConnectionClosedError.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging

from ..config import UnaddressedErrorPolicy
from ..errors import ConnectionClosedError, DecodeError, TaskwireError, classify_error
from ..protocol.classifier import ErrorFrame, Match, Unroutable, classify_message, decode_frame
from .pending import PendingRequest, PendingRequestTable
from .transport import Transport

logger = logging.getLogger(__name__)


class Dispatcher:
    """Routes inbound frames to pending requests."""

    def __init__(
        self,
        transport: Transport,
        table: PendingRequestTable,
        unaddressed_errors: UnaddressedErrorPolicy = UnaddressedErrorPolicy.BROADCAST,
    ):
        self._transport = transport
        self._table = table
        self._unaddressed_errors = UnaddressedErrorPolicy(unaddressed_errors)
        self._reader_task: asyncio.Task[None] | None = None
        self._closed_error: ConnectionClosedError | None = None

    @property
    def running(self) -> bool:
        return self._reader_task is not None and not self._reader_task.done()

    @property
    def closed(self) -> bool:
        """True once the stream has ended; no new requests can be answered."""
        return self._closed_error is not None

    @property
    def closed_error(self) -> ConnectionClosedError | None:
        return self._closed_error

    def start(self) -> None:
        """Start the read loop. Idempotent while running."""
        if self.running:
            return
        self._closed_error = None
        self._reader_task = asyncio.create_task(self._read_loop(), name="taskwire-dispatcher")

    async def stop(self) -> None:
        """Cancel the read loop and fail anything still pending."""
        if self._reader_task:
            self._reader_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._reader_task
            self._reader_task = None
        self._close(ConnectionClosedError("dispatcher stopped"))

    async def wait_closed(self) -> None:
        """Wait until the read loop has finished."""
        if self._reader_task:
            with contextlib.suppress(asyncio.CancelledError):
                await self._reader_task

    async def _read_loop(self) -> None:
        """Background task reading frames and routing them."""
        reason = "connection closed"
        try:
            async for raw in self._transport.receive():
                self.dispatch(raw)
        except asyncio.CancelledError:
            reason = "dispatcher stopped"
            raise
        except Exception as e:
            logger.error(f"Read loop error: {e}")
            reason = f"transport error: {e}"
        finally:
            self._close(ConnectionClosedError(reason))

    def dispatch(self, raw: bytes | str) -> None:
        """Route one inbound frame. Never raises for bad frames."""
        try:
            message = decode_frame(raw)
        except DecodeError as e:
            logger.warning(f"Undecodable frame: {e.reason}")
            self._route_unaddressed(e)
            return

        for item in classify_message(message, self._table.keys()):
            if isinstance(item, Match):
                self._route_match(item)
            elif isinstance(item, ErrorFrame):
                self._route_error(item)
            elif isinstance(item, Unroutable):
                logger.debug(f"Skipping unroutable message with keys {list(item.keys)}")

    def _route_match(self, match: Match) -> None:
        pending = self._pop_open(match.key)
        if pending is None:
            logger.warning(f"No pending request for {match.key}, discarding")
            return
        pending.resolve(match.payload)

    def _route_error(self, frame: ErrorFrame) -> None:
        error = classify_error(frame.code, frame.text)

        if frame.request_id is not None:
            pending = self._table.remove(frame.request_id)
            if pending is not None:
                pending.fail(error)
                return
        if frame.key is not None:
            pending = self._pop_open(frame.key)
            if pending is not None:
                pending.fail(error)
                return

        self._route_unaddressed(error)

    def _pop_open(self, key: str) -> PendingRequest | None:
        """Pop the oldest request on `key` whose slot is still open.

        Slots of callers that were cancelled or timed out are skipped.
        """
        while True:
            pending = self._table.pop_oldest(key)
            if pending is None or not pending.done:
                return pending
            logger.debug(f"Skipping settled request {pending.id} on {key}")

    def _route_unaddressed(self, error: TaskwireError) -> None:
        if self._unaddressed_errors == UnaddressedErrorPolicy.DROP:
            logger.warning(f"Dropping unaddressed error: {error}")
            return
        count = self._table.fail_all(error)
        logger.warning(f"Broadcast {error} to {count} pending request(s)")

    def _close(self, error: ConnectionClosedError) -> None:
        if self._closed_error is None:
            self._closed_error = error
        self._table.fail_all(error)
