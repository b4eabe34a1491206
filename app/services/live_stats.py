"""
Live aggregation subscriptions.

A LiveAggregation reruns an aggregation coroutine every time the underlying
collections change. Recomputations may overlap; each one is numbered and a
result is applied only if no higher-numbered result has been applied yet.
"""

import asyncio
import inspect
from typing import Any, AsyncIterable, Awaitable, Callable, Optional, Set

from app.core.exceptions import StoreError
from app.core.logging import get_logger
from app.db.store import DocumentStore

logger = get_logger(__name__)

WATCHED_COLLECTIONS = ("folders", "files")


class LiveAggregation:
    def __init__(self, compute: Callable[[], Awaitable[Any]], callback: Callable[[Any], Any]):
        self.compute = compute
        self.callback = callback
        self.issued = 0
        self.applied = 0
        self._pending: Set[asyncio.Task] = set()
        self._task: Optional[asyncio.Task] = None

    async def refresh(self) -> bool:
        """
        Run one computation and hand its result to the callback.

        Returns True if the result was applied, False if it failed or was
        superseded by a newer result.
        """
        self.issued += 1
        sequence = self.issued
        try:
            result = await self.compute()
        except Exception as e:
            logger.error(f"Aggregation #{sequence} failed: {e!r}")
            return False

        if sequence <= self.applied:
            logger.debug(f"Discarding stale aggregation #{sequence}, #{self.applied} already applied")
            return False

        self.applied = sequence
        try:
            outcome = self.callback(result)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as e:
            logger.error(f"Applying aggregation #{sequence} failed: {e!r}")
            return False
        return True

    def _schedule(self) -> asyncio.Task:
        task = asyncio.create_task(self.refresh())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def run(self, changes: AsyncIterable[Any]) -> None:
        """Compute once, then once more per change notification until `changes` ends."""
        self._schedule()
        async for _ in changes:
            self._schedule()
        if self._pending:
            await asyncio.gather(*list(self._pending))

    async def _watch(self, store: DocumentStore, collections) -> None:
        try:
            await self.run(store.watch(*collections))
        except StoreError as e:
            logger.error(f"Live aggregation stopped: {e}")

    def start(self, store: DocumentStore, collections=WATCHED_COLLECTIONS) -> asyncio.Task:
        """Subscribe to store changes in the background."""
        self._task = asyncio.create_task(self._watch(store, collections))
        return self._task

    async def stop(self) -> None:
        """Cancel the subscription and any computation still in flight."""
        tasks = list(self._pending)
        if self._task is not None:
            tasks.append(self._task)
            self._task = None
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)


def subscribe(
    store: DocumentStore,
    compute: Callable[[], Awaitable[Any]],
    callback: Callable[[Any], Any]
) -> LiveAggregation:
    """Start a live aggregation and return it; call `stop()` to unsubscribe."""
    live = LiveAggregation(compute, callback)
    live.start(store)
    return live
