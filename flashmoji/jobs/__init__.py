"""
Image job queue for background generation.

Components:
- ImageJob / JobStatus: the unit of work and its states
- NotificationBridge: per-job completion/error subscriptions
- ImageGenerationQueue: sequential processing with retries

Usage:
    # In an API endpoint - queue a job and wait for it
    from flashmoji.jobs import get_queue
    queue = get_queue()
    job_id = await queue.enqueue(entry_id, word, prompt)
    result = await queue.notifications.wait_for(job_id, timeout=300)

    # In FastAPI shutdown
    from flashmoji.jobs import close_queue
    await close_queue()
"""

from flashmoji.jobs.models import ImageJob, JobStatus, JobSummary, JobResult, QueueStatus
from flashmoji.jobs.notifications import NotificationBridge
from flashmoji.jobs.queue import ImageGenerationQueue, build_queue, get_queue, close_queue

__all__ = [
    # Models
    "ImageJob",
    "JobStatus",
    "JobSummary",
    "JobResult",
    "QueueStatus",

    # Notifications
    "NotificationBridge",

    # Queue
    "ImageGenerationQueue",
    "build_queue",
    "get_queue",
    "close_queue",
]
