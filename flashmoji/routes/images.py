"""
Image Queue API Routes

Endpoints for queueing image generation, waiting for a single image,
polling queue status and clearing the queue.
"""

from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from flashmoji.config import config
from flashmoji.errors import JobFailedError, JobTimeoutError
from flashmoji.jobs import ImageGenerationQueue, get_queue
from flashmoji.utils.logging import api_logger as logger


router = APIRouter(prefix="/api", tags=["images"])


# =============================================================================
# Dependencies
# =============================================================================

def get_image_queue() -> ImageGenerationQueue:
    return get_queue()


def get_generation_timeout() -> float:
    return config.GENERATION_TIMEOUT_SECONDS


# =============================================================================
# Request Models
# =============================================================================

class ImageEntry(BaseModel):
    """One entry to generate an image for. Accepts camelCase keys too."""
    model_config = ConfigDict(populate_by_name=True)

    entry_id: Optional[int] = Field(default=None, alias="entryId")
    english_word: Optional[str] = Field(default=None, alias="englishWord")
    prompt: Optional[str] = None

    def missing_fields(self) -> List[str]:
        missing = []
        if not self.entry_id:
            missing.append("entry_id")
        if not self.english_word or not self.english_word.strip():
            missing.append("english_word")
        if not self.prompt or not self.prompt.strip():
            missing.append("prompt")
        return missing


class QueueImageRequest(ImageEntry):
    """Request for the combined queue endpoint."""
    action: Literal["add", "status", "items"]


class BatchImageRequest(BaseModel):
    """Request to queue many images without waiting."""
    entries: List[ImageEntry]


class ClearQueueResponse(BaseModel):
    success: bool
    message: str
    cleared_count: int


# =============================================================================
# Queue Routes
# =============================================================================

@router.post("/queue-image")
async def queue_image(
    request: QueueImageRequest,
    queue: ImageGenerationQueue = Depends(get_image_queue),
    timeout: float = Depends(get_generation_timeout)
):
    """
    Queue operations.

    action=add queues the entry and waits for its image (up to the
    generation timeout). action=status and action=items are read-only.
    """
    if request.action == "status":
        return queue.get_status().to_dict()

    if request.action == "items":
        return {"items": [item.to_dict() for item in queue.get_items()]}

    missing = request.missing_fields()
    if missing:
        raise HTTPException(
            status_code=400,
            detail=f"Missing required fields: {', '.join(missing)}"
        )

    job_id = await queue.enqueue(request.entry_id, request.english_word, request.prompt)
    logger.info("Waiting for image", job_id=job_id, entry_id=request.entry_id)

    try:
        result = await queue.notifications.wait_for(job_id, timeout=timeout)
    except JobTimeoutError:
        raise HTTPException(status_code=504, detail="Generation timeout")
    except JobFailedError as e:
        raise HTTPException(status_code=500, detail=str(e) or "Failed to generate image")

    return {
        "queue_id": job_id,
        "status": "completed",
        **result.to_dict()
    }


@router.post("/generate-images-batch")
async def generate_images_batch(
    request: BatchImageRequest,
    queue: ImageGenerationQueue = Depends(get_image_queue)
):
    """Queue every valid entry and return immediately."""
    if not request.entries:
        raise HTTPException(status_code=400, detail="entries must be a non-empty list")

    queued_count = 0
    errors = []

    for entry in request.entries:
        missing = entry.missing_fields()
        if missing:
            logger.warning("Skipping invalid batch entry", entry_id=entry.entry_id, missing=missing)
            errors.append({
                "entry_id": entry.entry_id if entry.entry_id else -1,
                "error": "Missing entry_id, prompt, or english_word."
            })
            continue

        await queue.enqueue(entry.entry_id, entry.english_word, entry.prompt)
        queued_count += 1

    if errors and queued_count == 0:
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "message": f"Failed to queue all {len(errors)} images.",
                "queued_count": 0,
                "error_count": len(errors),
                "errors": errors,
            }
        )

    message = f"Successfully queued {queued_count} images for generation."
    if errors:
        message += f" Failed to queue {len(errors)} images."

    return {
        "success": True,
        "message": message,
        "queued_count": queued_count,
        "error_count": len(errors),
        "errors": errors or None,
    }


@router.get("/queue-status")
async def queue_status(queue: ImageGenerationQueue = Depends(get_image_queue)):
    """Queue counts for polling UIs."""
    return queue.get_status().to_dict()


@router.post("/clear-queue", response_model=ClearQueueResponse)
async def clear_queue(queue: ImageGenerationQueue = Depends(get_image_queue)):
    """Administrative reset of the image queue."""
    cleared = queue.clear_queue()
    return ClearQueueResponse(
        success=True,
        message=f"Cleared {cleared} items from the image generation queue",
        cleared_count=cleared,
    )
