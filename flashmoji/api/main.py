"""
FastAPI application for the Flashmoji image service.

This module sets up the main FastAPI app with routes, middleware,
and startup/shutdown hooks for the image queue.
"""

import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from flashmoji.config import config
from flashmoji.routes import images_router, logs_router
from flashmoji.utils.logging import api_logger as logger, configure_logging


configure_logging(config.LOG_LEVEL)

app = FastAPI(
    title="Flashmoji API",
    description="Emoji image generation for language-learning flashcards",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(images_router)
app.include_router(logs_router)

# Serve locally published images in development
if config.STORAGE_BACKEND == "local":
    os.makedirs(config.LOCAL_IMAGES_DIR, exist_ok=True)
    app.mount("/images", StaticFiles(directory=config.LOCAL_IMAGES_DIR), name="images")


@app.get("/health")
async def health():
    """Health check with capability flags."""
    return {
        "status": "ok",
        "environment": config.ENVIRONMENT,
        "image_generation": config.can_generate_images,
        "supabase": config.supabase_configured,
        "storage_backend": config.STORAGE_BACKEND,
    }


# ===== Startup Event =====

@app.on_event("startup")
async def startup_event():
    """Reconcile entries a previous process left in flight."""
    logger.info(
        "Flashmoji API starting",
        environment=config.ENVIRONMENT,
        storage=config.STORAGE_BACKEND,
        image_generation=config.can_generate_images
    )

    if not config.can_generate_images:
        logger.warning("REPLICATE_API_TOKEN not set; queued jobs will fail")

    if not config.supabase_configured:
        return

    try:
        from flashmoji.database import WordEntryService
        reset = await WordEntryService().reset_stale_image_statuses()
        logger.info("Stale image statuses reconciled", count=reset)
    except Exception as e:
        # Don't raise - the queue works without reconciliation
        logger.error("Startup reconciliation failed", error=str(e))


# ===== Shutdown Event =====

@app.on_event("shutdown")
async def shutdown_event():
    """Stop the image queue loop."""
    from flashmoji.jobs import close_queue
    await close_queue()
    logger.info("Flashmoji API stopped")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "flashmoji.api.main:app",
        host=config.API_HOST,
        port=config.API_PORT,
        reload=config.DEBUG,
        log_level=config.LOG_LEVEL.lower()
    )
