"""Unit tests for the pending request table."""

from __future__ import annotations

import asyncio

import pytest

from taskwire.errors import ConnectionClosedError
from taskwire.sdk.pending import PendingRequestTable

# =============================================================================
# Registration Tests
# =============================================================================


class TestRegistration:
    """Tests for inserting pending requests."""

    @pytest.mark.asyncio
    async def test_register_is_visible_immediately(self) -> None:
        """A registered request is in the table before anything awaits."""
        table = PendingRequestTable()
        pending = table.register("newImages", "req_1")

        assert pending.id == "req_1"
        assert pending.key == "newImages"
        assert "req_1" in table
        assert table.keys() == frozenset({"newImages"})
        assert len(table) == 1

    @pytest.mark.asyncio
    async def test_register_allocates_id(self) -> None:
        """Without an id, one is allocated."""
        table = PendingRequestTable()
        first = table.register("newImages")
        second = table.register("newImages")

        assert first.id != second.id

    @pytest.mark.asyncio
    async def test_duplicate_id_rejected(self) -> None:
        """Request ids are unique within the table."""
        table = PendingRequestTable()
        table.register("newImages", "req_1")

        with pytest.raises(ValueError, match="Duplicate"):
            table.register("newConnectionSessionUUID", "req_1")


# =============================================================================
# Pop / Remove Tests
# =============================================================================


class TestPopAndRemove:
    """Tests for FIFO pop and removal by id."""

    @pytest.mark.asyncio
    async def test_pop_oldest_is_fifo(self) -> None:
        """Requests sharing a key come out in registration order."""
        table = PendingRequestTable()
        ids = [table.register("newImages").id for _ in range(3)]

        popped = [table.pop_oldest("newImages").id for _ in range(3)]

        assert popped == ids
        assert table.pop_oldest("newImages") is None
        assert len(table) == 0
        assert table.keys() == frozenset()

    @pytest.mark.asyncio
    async def test_keys_are_independent(self) -> None:
        """Popping one key leaves others alone."""
        table = PendingRequestTable()
        table.register("newImages", "img")
        table.register("newConnectionSessionUUID", "conn")

        assert table.pop_oldest("newConnectionSessionUUID").id == "conn"
        assert table.keys() == frozenset({"newImages"})

    @pytest.mark.asyncio
    async def test_remove_by_id_keeps_order(self) -> None:
        """Removing a middle request leaves the others in order."""
        table = PendingRequestTable()
        table.register("newImages", "a")
        table.register("newImages", "b")
        table.register("newImages", "c")

        assert table.remove("b").id == "b"
        assert table.pop_oldest("newImages").id == "a"
        assert table.pop_oldest("newImages").id == "c"

    @pytest.mark.asyncio
    async def test_remove_missing_returns_none(self) -> None:
        """Removing twice is harmless."""
        table = PendingRequestTable()
        table.register("newImages", "a")

        assert table.remove("a") is not None
        assert table.remove("a") is None
        assert table.get("a") is None

    @pytest.mark.asyncio
    async def test_popped_request_cannot_be_removed(self) -> None:
        """Pop and remove never both return the same request."""
        table = PendingRequestTable()
        table.register("newImages", "a")

        assert table.pop_oldest("newImages") is not None
        assert table.remove("a") is None


# =============================================================================
# Completion Tests
# =============================================================================


class TestCompletion:
    """Tests for the single-use completion slot."""

    @pytest.mark.asyncio
    async def test_resolve_once(self) -> None:
        """The slot accepts exactly one value."""
        table = PendingRequestTable()
        pending = table.register("newImages")

        assert pending.resolve({"imageUUID": "a"}) is True
        assert pending.resolve({"imageUUID": "b"}) is False
        assert pending.fail(ConnectionClosedError()) is False
        assert await pending.completion == {"imageUUID": "a"}

    @pytest.mark.asyncio
    async def test_fail_all(self) -> None:
        """fail_all empties the table and fails every request."""
        table = PendingRequestTable()
        first = table.register("newImages")
        second = table.register("newConnectionSessionUUID")

        assert table.fail_all(ConnectionClosedError("gone")) == 2
        assert len(table) == 0

        for pending in (first, second):
            with pytest.raises(ConnectionClosedError):
                await pending.completion

    @pytest.mark.asyncio
    async def test_fail_all_gives_each_request_its_own_error(self) -> None:
        """Waiters never share one exception instance."""
        table = PendingRequestTable()
        waiters = [table.register("newImages") for _ in range(2)]

        table.fail_all(ConnectionClosedError("gone"))

        errors = [w.completion.exception() for w in waiters]
        assert errors[0] is not errors[1]
        assert all(isinstance(e, ConnectionClosedError) for e in errors)
        assert [str(e) for e in errors] == ["gone", "gone"]

    @pytest.mark.asyncio
    async def test_concurrent_register_and_pop(self) -> None:
        """Interleaved registrations and pops lose nothing."""
        table = PendingRequestTable()
        registered: list[str] = []
        popped: list[str] = []

        async def producer(n: int) -> None:
            for _ in range(n):
                registered.append(table.register("newImages").id)
                await asyncio.sleep(0)

        async def consumer() -> None:
            while len(popped) < 20:
                pending = table.pop_oldest("newImages")
                if pending is not None:
                    popped.append(pending.id)
                await asyncio.sleep(0)

        await asyncio.gather(producer(10), producer(10), consumer())

        assert sorted(popped) == sorted(registered)
        assert len(table) == 0
