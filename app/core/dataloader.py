"""
Request-scoped batch loading.

A ``BatchLoader`` collects every ``load(key)`` issued before the event loop
gets back to its dispatch callback and resolves them with a single call to
the batch function. Each key is fetched at most once per loader instance;
repeated loads return the same future.

Loaders hold per-request data and must never be shared between requests.
Create them with the request (see ``app.api.context.request_scope``) and let
them be discarded with it.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Hashable, Iterable, Sequence
from typing import Any

from app.core.errors import UpstreamError
from app.core.observability import metrics

logger = logging.getLogger(__name__)

BatchLoadFn = Callable[[list[Any]], Awaitable[Sequence[Any]]]


class BatchLoader[K: Hashable, V]:
    """Coalescing, caching loader in the style of the DataLoader pattern."""

    def __init__(self, batch_load_fn: BatchLoadFn, *, name: str = "loader") -> None:
        self.batch_load_fn = batch_load_fn
        self.name = name
        self._cache: dict[K, asyncio.Future[V | None]] = {}
        self._queue: list[tuple[K, asyncio.Future[V | None]]] = []
        self._dispatch_scheduled = False
        # The loop only keeps weak references to tasks
        self._batch_tasks: set[asyncio.Task[None]] = set()

    def load(self, key: K) -> asyncio.Future[V | None]:
        """
        Request the value for ``key``.

        Returns the cached future when the key was requested before,
        otherwise enqueues the key for the next batch.
        """
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        loop = asyncio.get_running_loop()
        future: asyncio.Future[V | None] = loop.create_future()
        self._cache[key] = future
        self._queue.append((key, future))

        if not self._dispatch_scheduled:
            self._dispatch_scheduled = True
            loop.call_soon(self._dispatch)

        return future

    async def load_many(self, keys: Iterable[K]) -> list[V | None]:
        return list(await asyncio.gather(*(self.load(key) for key in keys)))

    def clear_all(self) -> None:
        """Forget every cached key. Already dispatched batches still resolve."""
        self._cache.clear()

    def _dispatch(self) -> None:
        batch = self._queue
        self._queue = []
        self._dispatch_scheduled = False
        if batch:
            task = asyncio.ensure_future(self._run_batch(batch))
            self._batch_tasks.add(task)
            task.add_done_callback(self._batch_tasks.discard)

    async def _run_batch(self, batch: list[tuple[K, asyncio.Future[V | None]]]) -> None:
        keys = [key for key, _ in batch]
        metrics.loader_batch_size.labels(loader=self.name).observe(len(keys))
        logger.debug("%s dispatching batch of %d keys", self.name, len(keys))

        try:
            values = await self.batch_load_fn(keys)
            if len(values) != len(keys):
                raise UpstreamError(
                    f"{self.name} batch function returned {len(values)} values "
                    f"for {len(keys)} keys",
                    details={"loader": self.name},
                )
        except asyncio.CancelledError:
            cancelled = UpstreamError(
                f"{self.name} batch was cancelled", details={"loader": self.name}
            )
            self._fail(batch, cancelled)
            raise
        except Exception as e:
            if isinstance(e, UpstreamError):
                error = e
            else:
                error = UpstreamError(
                    f"{self.name} batch fetch failed",
                    details={"loader": self.name, "error": str(e)},
                )
            logger.warning("%s batch of %d keys failed: %s", self.name, len(keys), e)
            self._fail(batch, error)
            return

        for (_, future), value in zip(batch, values, strict=True):
            if not future.done():
                future.set_result(value)

    def _fail(
        self, batch: list[tuple[K, asyncio.Future[V | None]]], error: UpstreamError
    ) -> None:
        for key, future in batch:
            # Evict so a later load starts a fresh batch
            if self._cache.get(key) is future:
                del self._cache[key]
            if not future.done():
                future.set_exception(error)
