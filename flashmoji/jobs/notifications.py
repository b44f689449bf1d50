"""
Per-job completion notifications.

The queue owns one NotificationBridge. Each job id holds at most one
completion/error callback pair; the queue fires exactly one of them when
the job reaches a terminal state, then both are cleared.

HTTP handlers normally use ``wait_for`` instead of raw callbacks:

    job_id = await queue.enqueue(entry_id, word, prompt)
    result = await queue.notifications.wait_for(job_id, timeout=300)
"""

import asyncio
from typing import Callable, Dict

from flashmoji.errors import JobFailedError, JobTimeoutError
from flashmoji.jobs.models import JobResult
from flashmoji.utils.logging import queue_logger as logger


CompletionCallback = Callable[[JobResult], None]
ErrorCallback = Callable[[str], None]


class NotificationBridge:
    """Single-shot callback registry keyed by job id."""

    def __init__(self):
        self._on_complete: Dict[str, CompletionCallback] = {}
        self._on_error: Dict[str, ErrorCallback] = {}
        self._futures: Dict[str, asyncio.Future] = {}
        self._waiters: Dict[str, int] = {}

    # =========================================================================
    # Registration
    # =========================================================================

    def register_completion(self, job_id: str, callback: CompletionCallback):
        self._on_complete[job_id] = callback

    def register_error(self, job_id: str, callback: ErrorCallback):
        self._on_error[job_id] = callback

    def unregister(self, job_id: str):
        """Drop both callbacks for a job. Safe to call more than once."""
        self._on_complete.pop(job_id, None)
        self._on_error.pop(job_id, None)

    def is_registered(self, job_id: str) -> bool:
        return job_id in self._on_complete or job_id in self._on_error

    # =========================================================================
    # Delivery (called by the queue)
    # =========================================================================

    def notify_completion(self, job_id: str, result: JobResult) -> bool:
        """Fire the completion callback, if any. Returns True if one ran."""
        callback = self._on_complete.pop(job_id, None)
        self._on_error.pop(job_id, None)
        if callback is None:
            return False
        try:
            callback(result)
        except Exception as e:
            logger.error("Completion callback raised", job_id=job_id, error=str(e))
        return True

    def notify_error(self, job_id: str, message: str) -> bool:
        """Fire the error callback, if any. Returns True if one ran."""
        callback = self._on_error.pop(job_id, None)
        self._on_complete.pop(job_id, None)
        if callback is None:
            return False
        try:
            callback(message)
        except Exception as e:
            logger.error("Error callback raised", job_id=job_id, error=str(e))
        return True

    # =========================================================================
    # Awaiting
    # =========================================================================

    async def wait_for(self, job_id: str, timeout: float) -> JobResult:
        """
        Wait until ``job_id`` finishes.

        Several callers may wait on the same job; they share one callback
        pair. When the last waiter leaves before the job finishes, the
        callbacks are unregistered so nothing stale fires later.

        Raises:
            JobFailedError: the job ended in error (message from the last attempt)
            JobTimeoutError: ``timeout`` seconds passed first
        """
        future = self._futures.get(job_id)
        if future is None:
            future = self._watch(job_id)
        self._waiters[job_id] = self._waiters.get(job_id, 0) + 1

        try:
            return await asyncio.wait_for(asyncio.shield(future), timeout)
        except asyncio.TimeoutError:
            logger.warning("Gave up waiting for job", job_id=job_id, timeout=timeout)
            raise JobTimeoutError(
                f"Job {job_id} did not finish within {timeout:g}s"
            ) from None
        finally:
            self._release(job_id, future)

    def _watch(self, job_id: str) -> asyncio.Future:
        future = asyncio.get_running_loop().create_future()

        def on_complete(result: JobResult):
            if not future.done():
                future.set_result(result)

        def on_error(message: str):
            if not future.done():
                future.set_exception(JobFailedError(message))

        self.register_completion(job_id, on_complete)
        self.register_error(job_id, on_error)
        self._futures[job_id] = future
        return future

    def _release(self, job_id: str, future: asyncio.Future):
        remaining = self._waiters.get(job_id, 1) - 1
        if remaining > 0:
            self._waiters[job_id] = remaining
            return

        self._waiters.pop(job_id, None)
        if self._futures.get(job_id) is future:
            del self._futures[job_id]
        if not future.done():
            self.unregister(job_id)
            future.cancel()
