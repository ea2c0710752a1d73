# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Tests for owner-scoped change subscriptions.
"""

import asyncio

import pytest
from pymongo.errors import PyMongoError

from models.enums import ChangeOperation
from services.complaint_store import ComplaintStore
from services.notifier import ChangeNotifier, SubscriptionError
from fakes import FakeChangeStream


class FeedStore:
    """Store double exposing only the change feed."""

    def __init__(self, stream: FakeChangeStream):
        self.stream = stream
        self.watched = []

    def watch_owner(self, owner_id):
        self.watched.append(owner_id)
        return self.stream

    parse_change = staticmethod(ComplaintStore.parse_change)


def event(operation, complaint_id="c1", owner_id="citizen-1"):
    return {
        "operationType": operation,
        "documentKey": {"_id": complaint_id},
        "fullDocument": {"ownerId": owner_id, "status": "verified"},
    }


class TestComplaintSubscription:
    """Test delivery and release of change events."""

    async def test_delivers_events_in_feed_order(self):
        stream = FakeChangeStream([event("update", "c1"), event("insert", "c2")])
        store = FeedStore(stream)

        async with ChangeNotifier(store, poll_interval=0.01).subscribe("citizen-1") as feed:
            first = await asyncio.wait_for(feed.__anext__(), timeout=2)
            second = await asyncio.wait_for(feed.__anext__(), timeout=2)

        assert store.watched == ["citizen-1"]
        assert (first.operation, first.complaint_id) == (ChangeOperation.UPDATE, "c1")
        assert (second.operation, second.complaint_id) == (ChangeOperation.INSERT, "c2")
        assert first.owner_id == "citizen-1"

    async def test_unsupported_events_are_skipped(self):
        stream = FakeChangeStream([{"operationType": "invalidate"}, event("delete", "c3")])

        async with ChangeNotifier(FeedStore(stream), poll_interval=0.01).subscribe("citizen-1") as feed:
            received = await asyncio.wait_for(feed.__anext__(), timeout=2)

        assert received.operation == ChangeOperation.DELETE

    async def test_close_releases_the_stream_and_ends_iteration(self):
        stream = FakeChangeStream()
        feed = ChangeNotifier(FeedStore(stream), poll_interval=0.01).subscribe("citizen-1")
        await feed.open()

        await feed.close()
        await feed.close()

        assert stream.closed is True
        assert feed.closed is True
        with pytest.raises(StopAsyncIteration):
            await feed.__anext__()

    async def test_consumer_loop_ends_on_close(self):
        stream = FakeChangeStream([event("update", "c1")])
        feed = ChangeNotifier(FeedStore(stream), poll_interval=0.01).subscribe("citizen-1")
        received = []

        async def consume():
            async for change in feed:
                received.append(change.complaint_id)

        await feed.open()
        consumer = asyncio.create_task(consume())
        await asyncio.sleep(0.1)
        await feed.close()
        await asyncio.wait_for(consumer, timeout=2)

        assert received == ["c1"]

    async def test_feed_failure_reaches_the_consumer(self):
        stream = FakeChangeStream(error=PyMongoError("cursor killed"))

        async with ChangeNotifier(FeedStore(stream), poll_interval=0.01).subscribe("citizen-1") as feed:
            with pytest.raises(SubscriptionError):
                await asyncio.wait_for(feed.__anext__(), timeout=2)
