import asyncio
import logging
from datetime import datetime
from typing import Optional

import aiofiles.os

from file_uploader.services.upload.retry_queue import RetryQueue
from file_uploader.services.upload.upload_client import UploadClient
from file_uploader.services.upload.upload_models import (
    DueStatus,
    UploadTask,
    WorkerState,
)
from file_uploader.utils.file_operations import uploaded_path


class UploadWorker:
    """
    Single background task draining the retry queue.

    Sleeps until the head task is due or the queue changes, uploads one file
    at a time, and puts failures back with the configured retry interval.
    """

    def __init__(self, queue: RetryQueue, client: UploadClient):
        self.queue = queue
        self.client = client
        self.state = WorkerState.STOPPED

        self._running = False
        self._task: Optional[asyncio.Task] = None

        self.uploads_succeeded = 0
        self.uploads_failed = 0
        self.files_dropped = 0
        self._start_time: Optional[datetime] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.is_running:
            logging.warning("Upload worker is already running")
            return

        self.queue.attach(asyncio.get_running_loop())
        self._running = True
        self._start_time = datetime.now()
        self.state = WorkerState.IDLE
        self._task = asyncio.create_task(self._worker_loop(), name="upload-worker")
        logging.info("Upload worker started")

    async def stop(self, timeout: Optional[float] = None) -> None:
        if self._task is None:
            return

        logging.info("Stopping upload worker...")
        self._running = False
        self.queue.wake()

        done, _ = await asyncio.wait({self._task}, timeout=timeout)
        if not done:
            logging.warning(
                f"Upload worker did not finish within {timeout}s - cancelling in-flight upload"
            )
            self._task.cancel()
        await asyncio.gather(self._task, return_exceptions=True)

        self._task = None
        self.queue.detach()
        self.state = WorkerState.STOPPED
        logging.info("Upload worker stopped")

    async def _worker_loop(self) -> None:
        try:
            while self._running:
                self.queue.clear_wakeup()
                result = self.queue.pop_due()

                if result.status is DueStatus.READY:
                    self.state = WorkerState.ATTEMPTING
                    await self._process_task(result.task)
                    continue

                if result.status is DueStatus.EMPTY:
                    self.state = WorkerState.IDLE
                    await self.queue.wait_for_change()
                else:
                    self.state = WorkerState.WAITING
                    logging.debug(f"Next upload due in {result.wait_seconds:.2f}s")
                    await self.queue.wait_for_change(timeout=result.wait_seconds)
        finally:
            self.state = WorkerState.STOPPED

    async def _process_task(self, task: UploadTask) -> None:
        try:
            if not await aiofiles.os.path.exists(task.path):
                logging.warning(f"SOURCE MISSING: {task.path} - dropping upload")
                self.files_dropped += 1
                self.queue.finish(task)
                return

            result = await self.client.attempt(task)
        except asyncio.CancelledError:
            self.queue.retry(task, task.config.upload_retry_interval, "upload cancelled")
            raise
        except Exception as e:
            logging.error(f"Unexpected error uploading {task.path}: {e}")
            self._schedule_retry(task, f"unexpected error: {e}")
            return

        if result.success:
            self.uploads_succeeded += 1
            try:
                await self._finalize_success(task)
            finally:
                self.queue.finish(task)
        else:
            self._schedule_retry(task, result.error_message)

    def _schedule_retry(self, task: UploadTask, error_message: Optional[str]) -> None:
        self.uploads_failed += 1
        interval = task.config.upload_retry_interval
        retried = self.queue.retry(task, interval, error_message)
        logging.warning(
            f"RETRY SCHEDULED: {task.path} in {interval}s (attempt {retried.attempts})"
        )

    async def _finalize_success(self, task: UploadTask) -> None:
        try:
            if task.config.delete_after_upload:
                await aiofiles.os.remove(task.path)
                logging.info(f"Deleted after upload: {task.path}")
            else:
                target = uploaded_path(task.path)
                await aiofiles.os.rename(task.path, target)
                logging.info(f"Marked as uploaded: {task.path} -> {target}")
        except OSError as e:
            # The upload itself succeeded; never send the file again
            logging.error(f"Uploaded {task.path} but could not finalize it: {e}")

    def get_worker_info(self) -> dict:
        return {
            "state": self.state.value,
            "is_running": self.is_running,
            "started_at": self._start_time.isoformat() if self._start_time else None,
            "uploads_succeeded": self.uploads_succeeded,
            "uploads_failed": self.uploads_failed,
            "files_dropped": self.files_dropped,
            "in_flight": self.queue.in_flight,
        }
