# SPDX-License-Identifier: Apache-2.0

"""
Change notifications for one citizen's complaints.

Wraps the store's blocking change stream in an asyncio channel: a pump task
reads the cursor on a worker thread and queues parsed ComplaintChange
messages for a single consumer. Subscriptions must be closed when the
observing context ends; the async context manager does that.
"""

import asyncio
import logging
from typing import Any, Optional

from models.entities import ComplaintChange

logger = logging.getLogger(__name__)

_CLOSED = object()


class SubscriptionError(Exception):
    """Raised to the consumer when the underlying feed fails."""
    pass


class ComplaintSubscription:
    """Live feed of change events for one owner."""

    def __init__(self, store: Any, owner_id: str, poll_interval: float = 0.05):
        self.store = store
        self.owner_id = owner_id
        self.poll_interval = poll_interval
        self._queue: asyncio.Queue = asyncio.Queue()
        self._stream = None
        self._task: Optional[asyncio.Task] = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def open(self) -> "ComplaintSubscription":
        """Open the change stream and start delivering events."""
        if self._task is not None:
            return self
        self._stream = await asyncio.to_thread(self.store.watch_owner, self.owner_id)
        self._task = asyncio.create_task(self._pump(), name=f"complaint-feed-{self.owner_id}")
        logger.info(f"Subscribed to complaint changes for owner {self.owner_id}")
        return self

    async def _pump(self) -> None:
        try:
            while not self._closed:
                event = await asyncio.to_thread(self._stream.try_next)
                if event is None:
                    await asyncio.sleep(self.poll_interval)
                    continue
                change = self.store.parse_change(event)
                if change is not None:
                    logger.debug(f"Change {change.operation} for complaint {change.complaint_id}")
                    await self._queue.put(change)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if self._closed:
                return
            logger.error(f"Complaint change feed failed for owner {self.owner_id}: {e}", exc_info=True)
            await self._queue.put(SubscriptionError(str(e)))

    def __aiter__(self):
        return self

    async def __anext__(self) -> ComplaintChange:
        if self._closed and self._queue.empty():
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        if isinstance(item, SubscriptionError):
            raise item
        return item

    async def close(self) -> None:
        """Release the live feed. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSED)

        if self._stream is not None:
            await asyncio.to_thread(self._stream.close)
        if self._task is not None:
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        logger.info(f"Released complaint change feed for owner {self.owner_id}")

    async def __aenter__(self) -> "ComplaintSubscription":
        return await self.open()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


class ChangeNotifier:
    """Creates owner-scoped subscriptions on the complaint store."""

    def __init__(self, store: Any, poll_interval: float = 0.05):
        self.store = store
        self.poll_interval = poll_interval

    def subscribe(self, owner_id: str) -> ComplaintSubscription:
        """
        Subscription for one citizen's complaints.

        Use as ``async with notifier.subscribe(owner_id) as feed`` or call
        ``open()`` and ``close()`` explicitly.
        """
        return ComplaintSubscription(self.store, owner_id, self.poll_interval)
