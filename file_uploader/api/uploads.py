import logging

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from file_uploader.dependencies import get_file_uploader, get_outputs_config
from file_uploader.models import OutputsConfig, UploadConfig
from file_uploader.services.file_uploader import FileUploader

router = APIRouter(prefix="/api/uploads", tags=["uploads"])


class EnqueueRequest(BaseModel):
    path: str = Field(..., description="File to upload, as seen by this process")
    config: UploadConfig


@router.get("")
async def get_upload_status(uploader: FileUploader = Depends(get_file_uploader)):
    """Worker state, counters and the queued uploads in due order."""
    return uploader.get_status()


@router.post("", status_code=status.HTTP_202_ACCEPTED)
async def enqueue_upload(
    request: EnqueueRequest, uploader: FileUploader = Depends(get_file_uploader)
):
    logging.info(
        f"Upload requested via API: {request.path}",
        extra={"operation": "api_enqueue_upload"},
    )
    accepted = uploader.enqueue_upload(request.path, request.config)
    return {"path": request.path, "accepted": accepted}


@router.post("/scan", status_code=status.HTTP_202_ACCEPTED)
async def rescan_outputs(
    uploader: FileUploader = Depends(get_file_uploader),
    outputs: OutputsConfig = Depends(get_outputs_config),
):
    """Rescan all outputs with upload_pending_on_start for leftover files."""
    queued = await uploader.scan_pending_uploads(outputs.iter_outputs())
    return {"queued": queued}
