from __future__ import annotations

import asyncio
import uuid
from typing import Awaitable, Callable

from app.core.logging import get_logger
from app.modules.study.jobs import DocumentProcessor

logger = get_logger(__name__)


JobCallable = Callable[[], Awaitable[None]]


class BackgroundQueue:
    """Simple in-process async job queue with fixed concurrency.

    The queue is unbounded (no backpressure) and does not deduplicate jobs.
    """

    def __init__(self, *, concurrency: int = 2) -> None:
        self.concurrency = max(1, int(concurrency))
        self._queue: asyncio.Queue[JobCallable] = asyncio.Queue()
        self._workers: list[asyncio.Task[None]] = []
        self._started = False

    @property
    def started(self) -> bool:
        return self._started

    async def _worker(self, idx: int) -> None:
        while True:
            job = await self._queue.get()
            try:
                await job()
            except Exception as e:  # noqa: BLE001
                # Avoid crashing the worker
                logger.error("[queue] Worker %d job failed: %s", idx, e)
            finally:
                self._queue.task_done()

    def start(self) -> None:
        if self._started:
            return
        self._started = True
        for i in range(self.concurrency):
            self._workers.append(asyncio.create_task(self._worker(i)))

    async def join(self) -> None:
        await self._queue.join()

    async def stop(self) -> None:
        # Drain queue and cancel workers
        await self._queue.join()
        for t in self._workers:
            t.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers.clear()
        self._started = False

    def enqueue(self, fn: JobCallable) -> None:
        self._queue.put_nowait(fn)


def enqueue_document_processing(
    queue: BackgroundQueue,
    processor: DocumentProcessor,
    document_id: uuid.UUID,
) -> None:
    """Queue a document for processing and return immediately."""

    async def _job() -> None:
        await processor.process(document_id)

    logger.info("Queueing document for processing: %s", document_id)
    queue.enqueue(_job)
