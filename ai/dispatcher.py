"""
Forward Dispatcher

Detached, bounded delivery of ChatRequests to the AI assistant.

- Fixed pool of worker tasks draining a bounded asyncio.Queue
- submit() never blocks; a full queue drops the request (logged)
- Each forward runs under its own timeout
- Outcomes are logged only; nothing is surfaced to the webhook caller
- Workers are independent of the request that submitted the work
"""

import asyncio
import logging
from typing import List, Optional

from .base import AIForwarder, ForwardError
from .types import ChatRequest

logger = logging.getLogger(__name__)


class ForwardDispatcher:
    """Bounded worker pool in front of an AIForwarder."""

    def __init__(
        self,
        forwarder: AIForwarder,
        workers: int = 4,
        queue_size: int = 100,
        timeout_s: float = 30.0,
    ):
        if workers < 1:
            raise ValueError("workers must be at least 1")
        if queue_size < 1:
            raise ValueError("queue_size must be at least 1")

        self.forwarder = forwarder
        self.workers = workers
        self.queue_size = queue_size
        self.timeout_s = timeout_s
        self._queue: Optional[asyncio.Queue] = None
        self._tasks: List[asyncio.Task] = []

    @property
    def running(self) -> bool:
        return bool(self._tasks)

    @property
    def pending(self) -> int:
        """Requests queued but not yet picked up by a worker."""
        return self._queue.qsize() if self._queue is not None else 0

    async def start(self) -> None:
        """Spawn the worker tasks on the running loop."""
        if self.running:
            return

        self._queue = asyncio.Queue(maxsize=self.queue_size)
        self._tasks = [
            asyncio.create_task(self._worker(), name=f"forward-worker-{i}")
            for i in range(self.workers)
        ]
        logger.info(
            f"Forward dispatcher started: {self.workers} workers, "
            f"queue {self.queue_size}, timeout {self.timeout_s}s"
        )

    async def stop(self) -> None:
        """Cancel the workers. Queued and in-flight forwards are abandoned."""
        if not self.running:
            return

        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []

        dropped = self.pending
        if dropped:
            logger.warning(f"Forward dispatcher stopped with {dropped} queued requests dropped")
        self._queue = None
        logger.info("Forward dispatcher stopped")

    async def join(self) -> None:
        """Wait until every queued request has been processed."""
        if self._queue is not None:
            await self._queue.join()

    def submit(self, request: ChatRequest) -> bool:
        """
        Queue a request without waiting for it.

        Returns:
            True if queued, False if the dispatcher is not running or full
        """
        if self._queue is None:
            logger.error(
                "Forward dispatcher not running, dropping request",
                extra={"user_id": request.user_id},
            )
            return False

        try:
            self._queue.put_nowait(request)
        except asyncio.QueueFull:
            logger.warning(
                f"Forward queue full ({self.queue_size}), dropping request",
                extra={"user_id": request.user_id},
            )
            return False
        return True

    async def _worker(self) -> None:
        queue = self._queue
        while True:
            request = await queue.get()
            try:
                await self._forward_one(request)
            finally:
                queue.task_done()

    async def _forward_one(self, request: ChatRequest) -> None:
        try:
            response = await asyncio.wait_for(
                self.forwarder.forward(request),
                timeout=self.timeout_s,
            )
        except asyncio.TimeoutError:
            logger.error(
                f"Forward to AI timed out after {self.timeout_s}s",
                extra={"user_id": request.user_id},
            )
        except ForwardError as e:
            logger.error(
                f"Failed to forward message to AI: {e}",
                extra={"user_id": request.user_id},
            )
        except Exception as e:
            logger.error(
                f"Unexpected error forwarding message to AI: {e}",
                exc_info=True,
                extra={"user_id": request.user_id},
            )
        else:
            logger.info(
                "Message forwarded to AI",
                extra={
                    "user_id": request.user_id,
                    "reply_length": len(response.reply),
                },
            )
