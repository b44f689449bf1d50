"""
In-memory image generation queue.

Jobs are processed strictly one at a time by a single background task so
that a rate-limited provider never sees two of our requests at once.
Failed attempts are retried with linear backoff; every job ends either
completed or error, is reported to the entry store and to its subscribers,
and is then removed.

Nothing here is persisted. After a restart the queue is empty and entries
left in queued/processing must be reconciled separately
(see WordEntryService.reset_stale_image_statuses).
"""

import asyncio
import contextlib
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Set

from flashmoji.config import AppConfig, config
from flashmoji.database.entries import (
    EntryStore,
    IMAGE_STATUS_COMPLETED,
    IMAGE_STATUS_ERROR,
)
from flashmoji.jobs.models import ImageJob, JobResult, JobStatus, JobSummary, QueueStatus
from flashmoji.jobs.notifications import NotificationBridge
from flashmoji.utils.logging import queue_logger as logger


CLEARED_MESSAGE = "Removed from queue before it finished"


class ImageGenerationQueue:
    """
    Sequential image generation queue.

    Usage:
        queue = ImageGenerationQueue(generator, publisher, entry_store)

        job_id = await queue.enqueue(42, "happy", "smiling face")
        result = await queue.notifications.wait_for(job_id, timeout=300)

        queue.get_status()   # counts for polling UIs
        queue.get_items()    # per-job summaries
        queue.clear_queue()  # admin reset
    """

    def __init__(
        self,
        generator,
        publisher,
        entry_store: Optional[EntryStore] = None,
        max_retries: Optional[int] = None,
        retry_base_delay: Optional[float] = None,
        inter_job_delay: Optional[float] = None,
        idle_poll_interval: Optional[float] = None,
        settings: AppConfig = config
    ):
        self.generator = generator
        self.publisher = publisher
        self.entry_store = entry_store
        self.notifications = NotificationBridge()

        self.max_retries = settings.QUEUE_MAX_RETRIES if max_retries is None else max_retries
        self.retry_base_delay = (
            settings.QUEUE_RETRY_BASE_DELAY if retry_base_delay is None else retry_base_delay
        )
        self.inter_job_delay = (
            settings.QUEUE_INTER_JOB_DELAY if inter_job_delay is None else inter_job_delay
        )
        self.idle_poll_interval = (
            settings.QUEUE_IDLE_POLL_INTERVAL if idle_poll_interval is None else idle_poll_interval
        )

        self._jobs: List[ImageJob] = []
        self._processing = False  # True while a processing loop owns the queue
        self._run_id = 0  # bumped on clear/shutdown so an abandoned loop stops touching state
        self._task: Optional[asyncio.Task] = None
        self._abandoned_tasks: Set[asyncio.Task] = set()

        self._completed_count = 0
        self._error_count = 0

    # =========================================================================
    # Caller API
    # =========================================================================

    async def enqueue(self, entry_id: int, word: str, prompt: str) -> str:
        """
        Queue an image for an entry and return the job id.

        If the entry already has a job in the queue, that job's id is
        returned and nothing changes.
        """
        existing = self._find_by_entry(entry_id)
        if existing is not None:
            logger.info(
                "Entry already queued",
                entry_id=entry_id,
                job_id=existing.id,
                status=existing.status.value
            )
            return existing.id

        job = ImageJob(entry_id, word, prompt)
        self._jobs.append(job)
        logger.info(f"Added to queue: {word}", job_id=job.id, entry_id=entry_id, total=len(self._jobs))

        if not self._processing:
            self._start()

        return job.id

    def get_status(self) -> QueueStatus:
        return QueueStatus(
            total=len(self._jobs),
            pending=sum(1 for j in self._jobs if j.status == JobStatus.PENDING),
            processing=sum(1 for j in self._jobs if j.status == JobStatus.PROCESSING),
            completed=self._completed_count,
            errors=self._error_count,
            is_processing=self._processing,
        )

    def get_items(self) -> List[JobSummary]:
        return [job.summary() for job in self._jobs]

    def get_job(self, job_id: str) -> Optional[JobSummary]:
        for job in self._jobs:
            if job.id == job_id:
                return job.summary()
        return None

    def clear_queue(self) -> int:
        """
        Drop every job and mark the queue idle. Returns how many were removed.

        A provider call already in flight is not cancelled; whatever it
        returns is discarded. Anyone waiting on a removed job is told it
        was removed, unless the job had already reached completed or error:
        that outcome is being saved and is still delivered.
        """
        removed = list(self._jobs)
        self._jobs.clear()
        self._abandon_loop()

        for job in removed:
            if not job.status.is_terminal:
                self.notifications.notify_error(job.id, CLEARED_MESSAGE)

        logger.warning("Cleared image queue", removed=len(removed))
        return len(removed)

    async def shutdown(self):
        """
        Stop the processing loop. Queued jobs are left where they are.

        A job interrupted mid-attempt goes back to pending, so a later
        enqueue on this instance picks it up again.
        """
        task = self._task
        self._processing = False
        self._run_id += 1
        self._task = None

        pending_tasks = [t for t in (task, *self._abandoned_tasks) if t and not t.done()]
        for t in pending_tasks:
            t.cancel()
        for t in pending_tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await t

        for job in self._jobs:
            if job.status != JobStatus.PENDING:
                logger.info("Interrupted job returned to pending", job_id=job.id)
                job.status = JobStatus.PENDING

    @property
    def is_processing(self) -> bool:
        return self._processing

    # =========================================================================
    # Processing Loop
    # =========================================================================

    def _start(self):
        self._processing = True
        self._run_id += 1
        self._task = asyncio.create_task(
            self._run(self._run_id), name=f"image-queue-{self._run_id}"
        )

    def _abandon_loop(self):
        self._processing = False
        self._run_id += 1
        if self._task is not None and not self._task.done():
            self._abandoned_tasks.add(self._task)
            self._task.add_done_callback(self._abandoned_tasks.discard)
        self._task = None

    def _is_current(self, run_id: int) -> bool:
        return run_id == self._run_id

    async def _run(self, run_id: int):
        logger.info("Starting image queue processing", total=len(self._jobs))
        try:
            while self._is_current(run_id) and self._jobs:
                job = self._next_pending()
                if job is None:
                    await asyncio.sleep(self.idle_poll_interval)
                    continue

                finished = await self._process(job, run_id)

                if finished and self._is_current(run_id):
                    await asyncio.sleep(self.inter_job_delay)
        finally:
            if self._is_current(run_id):
                self._processing = False
                self._task = None
                logger.info("Queue processing finished - no more items")

    def _next_pending(self) -> Optional[ImageJob]:
        for job in self._jobs:
            if job.status == JobStatus.PENDING:
                return job
        return None

    async def _process(self, job: ImageJob, run_id: int) -> bool:
        """
        Run one attempt for ``job``.

        Returns True when the job left the queue (terminal outcome or
        abandoned by clear), False when it went back to pending.
        """
        job.status = JobStatus.PROCESSING
        logger.info(
            f"Processing: {job.word}",
            job_id=job.id,
            entry_id=job.entry_id,
            attempt=job.retries + 1,
            max_retries=self.max_retries
        )

        try:
            handle = await self.generator.submit(job.prompt)
            job.provider_handle = handle
            original_url = await self.generator.await_result(handle)
            image_url = await self.publisher.publish(original_url, job.entry_id)
        except Exception as e:
            if self._abandoned(job, run_id):
                logger.info("Discarding failure of cleared job", job_id=job.id, error=str(e))
                return True
            return await self._handle_failure(job, e)

        if self._abandoned(job, run_id):
            logger.info("Discarding result of cleared job", job_id=job.id)
            return True

        await self._handle_success(job, image_url, original_url)
        return True

    async def _handle_success(self, job: ImageJob, image_url: str, original_url: str):
        # From here on the outcome is committed; a clear no longer discards it
        job.status = JobStatus.COMPLETED
        result = JobResult(
            image_url=image_url,
            original_url=original_url,
            provider_handle=job.provider_handle,
            generated_at=datetime.now(timezone.utc).isoformat(),
        )
        logger.info(f"Completed: {job.word}", job_id=job.id, entry_id=job.entry_id, image_url=image_url)

        await self._persist(job, {
            "image_url": result.image_url,
            "image_status": IMAGE_STATUS_COMPLETED,
            "replicate_id": result.provider_handle,
            "image_generated_at": result.generated_at,
        })

        self._completed_count += 1
        self._remove(job)
        self.notifications.notify_completion(job.id, result)

    async def _handle_failure(self, job: ImageJob, error: Exception) -> bool:
        job.retries += 1
        job.last_error = str(error) or error.__class__.__name__

        if job.retries < self.max_retries:
            job.status = JobStatus.PENDING
            delay = self.retry_base_delay * job.retries
            logger.warning(
                f"Attempt {job.retries} failed for {job.word}, retrying",
                job_id=job.id,
                error=job.last_error,
                delay=delay
            )
            await asyncio.sleep(delay)
            return False

        job.status = JobStatus.ERROR
        logger.error(
            f"Max retries reached for {job.word}",
            job_id=job.id,
            entry_id=job.entry_id,
            error=job.last_error
        )

        await self._persist(job, {
            "image_status": IMAGE_STATUS_ERROR,
            "replicate_id": job.provider_handle,
        })

        self._error_count += 1
        self._remove(job)
        self.notifications.notify_error(job.id, job.last_error)
        return True

    async def _persist(self, job: ImageJob, fields: Dict[str, Any]):
        """Best-effort write of the outcome to the entry store."""
        if self.entry_store is None:
            return
        try:
            await self.entry_store.update(job.entry_id, fields)
        except Exception as e:
            logger.error(
                "Failed to persist image status",
                job_id=job.id,
                entry_id=job.entry_id,
                status=fields.get("image_status"),
                error=str(e)
            )

    # =========================================================================
    # Collection Helpers
    # =========================================================================

    def _find_by_entry(self, entry_id: int) -> Optional[ImageJob]:
        for job in self._jobs:
            if job.entry_id == entry_id:
                return job
        return None

    def _abandoned(self, job: ImageJob, run_id: int) -> bool:
        return not self._is_current(run_id) or job not in self._jobs

    def _remove(self, job: ImageJob):
        """Drop a finished job. A clear may already have taken it out."""
        if job not in self._jobs:
            return
        self._jobs.remove(job)
        logger.info(f"Removed from queue: {job.word}", job_id=job.id, remaining=len(self._jobs))


# Global queue instance (created on first use)
_queue_instance: Optional[ImageGenerationQueue] = None


def build_queue(settings: AppConfig = config) -> ImageGenerationQueue:
    """Wire the production queue from configuration."""
    from flashmoji.database.entries import WordEntryService
    from flashmoji.images.generation import GenerationClient
    from flashmoji.images.publisher import AssetPublisher
    from flashmoji.storage import get_image_storage

    entry_store = WordEntryService() if settings.supabase_configured else None
    if entry_store is None:
        logger.warning("Supabase not configured; image outcomes will not be saved to entries")

    return ImageGenerationQueue(
        generator=GenerationClient(settings=settings),
        publisher=AssetPublisher(get_image_storage(settings)),
        entry_store=entry_store,
        settings=settings,
    )


def get_queue() -> ImageGenerationQueue:
    """
    Get or create the process-wide queue instance.

    Tests should construct ImageGenerationQueue directly instead.
    """
    global _queue_instance

    if _queue_instance is None:
        _queue_instance = build_queue()

    return _queue_instance


async def close_queue():
    """Stop and forget the global queue instance"""
    global _queue_instance

    if _queue_instance is not None:
        await _queue_instance.shutdown()
        _queue_instance = None
