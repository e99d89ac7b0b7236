"""Pending request table.

Registry of requests waiting for an answer, keyed by correlation key. Several
requests may wait on the same key; they are kept in registration order and
answered oldest first.

No method awaits, so each one runs to completion without interleaving on the
event loop. A lock additionally guards the maps against callers on other
threads.
"""

from __future__ import annotations

import asyncio
import copy
import logging
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any

from ..protocol.frames import new_request_id

logger = logging.getLogger(__name__)


@dataclass
class PendingRequest:
    """One outstanding request and its single-use completion slot."""

    id: str
    key: str
    completion: asyncio.Future[Any]
    created_at: float = field(default_factory=time.monotonic)

    @property
    def done(self) -> bool:
        return self.completion.done()

    def resolve(self, payload: Any) -> bool:
        """Deliver a payload. Returns False if the slot was already written."""
        if self.completion.done():
            return False
        self.completion.set_result(payload)
        return True

    def fail(self, error: BaseException) -> bool:
        """Deliver an error. Returns False if the slot was already written."""
        if self.completion.done():
            return False
        self.completion.set_exception(error)
        return True


class PendingRequestTable:
    """Concurrency-safe map of correlation key -> FIFO of pending requests."""

    def __init__(self) -> None:
        self._by_key: dict[str, deque[PendingRequest]] = {}
        self._by_id: dict[str, PendingRequest] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._by_id)

    def __contains__(self, request_id: object) -> bool:
        with self._lock:
            return request_id in self._by_id

    def register(self, key: str, request_id: str | None = None) -> PendingRequest:
        """Insert a new pending request under `key`.

        Must be called from the event loop that will await the completion.
        """
        loop = asyncio.get_running_loop()
        pending = PendingRequest(
            id=request_id or new_request_id(),
            key=key,
            completion=loop.create_future(),
        )
        with self._lock:
            if pending.id in self._by_id:
                raise ValueError(f"Duplicate request id: {pending.id}")
            self._by_id[pending.id] = pending
            self._by_key.setdefault(key, deque()).append(pending)
        return pending

    def pop_oldest(self, key: str) -> PendingRequest | None:
        """Remove and return the oldest request waiting on `key`."""
        with self._lock:
            queue = self._by_key.get(key)
            if not queue:
                return None
            pending = queue.popleft()
            if not queue:
                del self._by_key[key]
            del self._by_id[pending.id]
            return pending

    def remove(self, request_id: str) -> PendingRequest | None:
        """Remove a request by id. Returns None if it is already gone."""
        with self._lock:
            pending = self._by_id.pop(request_id, None)
            if pending is None:
                return None
            queue = self._by_key.get(pending.key)
            if queue is not None:
                queue.remove(pending)
                if not queue:
                    del self._by_key[pending.key]
            return pending

    def get(self, request_id: str) -> PendingRequest | None:
        with self._lock:
            return self._by_id.get(request_id)

    def keys(self) -> frozenset[str]:
        """Correlation keys with at least one waiting request."""
        with self._lock:
            return frozenset(self._by_key)

    def drain(self) -> list[PendingRequest]:
        """Remove and return every pending request, oldest first."""
        with self._lock:
            drained = sorted(self._by_id.values(), key=lambda p: p.created_at)
            self._by_id.clear()
            self._by_key.clear()
        return drained

    def fail_all(self, error: BaseException) -> int:
        """Fail every pending request with `error`. Returns how many.

        Each request gets its own copy of `error`.
        """
        drained = self.drain()
        for pending in drained:
            pending.fail(copy.copy(error))
        if drained:
            logger.debug(f"Failed {len(drained)} pending request(s): {error}")
        return len(drained)
