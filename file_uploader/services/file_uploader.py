"""
FileUploader - owns the retry queue, HTTP client, worker and scanner.
"""

import logging
import time
from typing import Callable, Iterable, Optional

import httpx

from file_uploader.config import Settings
from file_uploader.models import HasFileOutput, UploadConfig
from file_uploader.services.scanner.directory_scanner import DirectoryScanner
from file_uploader.services.upload.retry_queue import RetryQueue
from file_uploader.services.upload.upload_client import UploadClient
from file_uploader.services.upload.upload_worker import UploadWorker


class FileUploader:
    """Lifecycle controller and public entry points of the upload subsystem."""

    def __init__(
        self,
        settings: Settings,
        client: Optional[UploadClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings
        self.queue = RetryQueue(clock=clock)
        self.client = client or UploadClient(settings, transport=transport)
        self.worker = UploadWorker(self.queue, self.client)
        self.scanner = DirectoryScanner(self.queue)

        logging.info("FileUploader initialiseret")

    @property
    def is_running(self) -> bool:
        return self.worker.is_running

    def enqueue_upload(self, path: str, config: UploadConfig) -> bool:
        """Fire-and-forget: queue path for upload. Safe from any thread."""
        return self.queue.enqueue(path, config)

    async def scan_pending_uploads(self, outputs: Iterable[HasFileOutput]) -> int:
        return await self.scanner.scan_pending_uploads(outputs)

    async def start(self) -> None:
        if self.is_running:
            logging.warning("FileUploader is already running")
            return

        await self.client.start()
        await self.worker.start()
        logging.info("FileUploader started")

    async def shutdown(self) -> None:
        if not self.is_running and not self.client.is_started:
            logging.debug("FileUploader already shut down")
            return

        await self.worker.stop(timeout=self.settings.shutdown_timeout_seconds)
        await self.client.aclose()

        remaining = len(self.queue)
        if remaining:
            logging.info(
                f"FileUploader stopped with {remaining} upload(s) pending - "
                f"they will be rediscovered on next start"
            )
        else:
            logging.info("FileUploader stopped")

    def get_status(self) -> dict:
        return {
            "worker": self.worker.get_worker_info(),
            "queue_size": len(self.queue),
            "queue": self.queue.snapshot(),
        }
