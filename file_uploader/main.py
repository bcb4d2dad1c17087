import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from . import __version__
from .api import uploads
from .dependencies import (
    get_outputs_config,
    get_settings,
    init_file_uploader,
    scan_pending_uploads,
    shutdown_file_uploader,
)
from .logging_config import setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    settings = get_settings()
    setup_logging(settings)

    logging.info("File Uploader starting up...")
    logging.info(f"Outputs file: {settings.outputs_file}")

    outputs = get_outputs_config()
    logging.info(
        f"Loaded {len(outputs.devices)} device(s) and {len(outputs.mixers)} mixer(s)"
    )

    await init_file_uploader()

    if settings.scan_pending_on_startup:
        await scan_pending_uploads()

    yield

    logging.info("File Uploader shutting down...")
    await shutdown_file_uploader()
    logging.info("File Uploader stopped")


app = FastAPI(
    title="File Uploader",
    description="Uploads recorded output files to HTTP endpoints with durable retry",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(uploads.router)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "service": "file-uploader"}


if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(
        "file_uploader.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=False,
        log_level="info",
    )
