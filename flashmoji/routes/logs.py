"""
Log API Routes

Recent entries from the in-memory log buffer, filterable by the job or
flashcard entry they concern.
"""

from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from flashmoji.utils.logging import LogLevel, get_log_buffer


router = APIRouter(prefix="/api/logs", tags=["logs"])


@router.get("")
async def get_logs(
    limit: int = Query(100, ge=1, le=500),
    level: Optional[str] = Query(None, description="Filter by level (debug, info, warning, error)"),
    source: Optional[str] = Query(None, description="Filter by source, e.g. image_queue"),
    job_id: Optional[str] = Query(None, description="Only entries for this queue job"),
    entry_id: Optional[int] = Query(None, description="Only entries for this flashcard entry")
):
    """Get recent log entries from the in-memory buffer."""
    log_buffer = get_log_buffer()

    level_filter = None
    if level:
        try:
            level_filter = LogLevel(level.lower())
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Invalid log level: {level}")

    return {
        "logs": log_buffer.get_recent(
            limit=limit,
            level=level_filter,
            source=source,
            job_id=job_id,
            entry_id=entry_id,
        ),
        "stats": log_buffer.get_stats()
    }


@router.get("/errors")
async def get_error_logs(limit: int = Query(50, ge=1, le=200)):
    """Get recent error log entries."""
    return {"errors": get_log_buffer().get_errors(limit=limit)}


@router.get("/jobs/{job_id}")
async def get_job_logs(job_id: str):
    """Everything logged for one queue job, oldest first."""
    trail = get_log_buffer().get_job_trail(job_id)
    if not trail:
        raise HTTPException(status_code=404, detail=f"No log entries for job {job_id}")
    return {"job_id": job_id, "logs": trail}
