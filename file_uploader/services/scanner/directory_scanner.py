import logging
import os
from datetime import datetime
from typing import Iterable

import aiofiles.os

from file_uploader.models import HasFileOutput, UploadConfig
from file_uploader.services.upload.retry_queue import RetryQueue
from file_uploader.utils.file_operations import (
    is_hidden_name,
    is_uploaded_name,
    matches_suffix,
)


class DirectoryScanner:
    """
    Finds files that were written but never uploaded and queues them.

    Pure discovery: no network I/O and no file mutation happens here.
    """

    def __init__(self, queue: RetryQueue):
        self.queue = queue

    async def scan(self, config: UploadConfig, directory: str) -> int:
        """Queue every eligible file below directory. Returns the number queued."""
        if not await aiofiles.os.path.isdir(directory):
            logging.warning(f"Upload directory does not exist or is not a directory: {directory}")
            return 0

        queued = self._scan_directory(config, directory)
        logging.info(f"Scanned {directory}: {queued} file(s) queued for upload")
        return queued

    def _scan_directory(self, config: UploadConfig, directory: str) -> int:
        queued = 0

        try:
            with os.scandir(directory) as it:
                entries = list(it)
        except OSError as e:
            logging.error(f"Error listing {directory}: {e}")
            return 0

        for entry in entries:
            if is_hidden_name(entry.name):
                continue

            path = os.path.join(directory, entry.name)

            try:
                if entry.is_dir(follow_symlinks=False):
                    if config.dated_subdirectories:
                        queued += self._scan_directory(config, path)
                    continue

                if not entry.is_file(follow_symlinks=False):
                    continue
            except OSError as e:
                logging.error(f"Error inspecting {path}: {e}")
                continue

            if is_uploaded_name(entry.name):
                continue

            if matches_suffix(path, config.suffix) and self.queue.enqueue(path, config):
                queued += 1

        return queued

    async def scan_pending_uploads(self, outputs: Iterable[HasFileOutput]) -> int:
        """Rescan the base directory of every file output that asks for it."""
        scan_start = datetime.now()
        total = 0

        for output in outputs:
            config = output.upload_config()
            if config is None:
                continue
            if not config.upload_url or not config.upload_pending_on_start:
                continue

            total += await self.scan(config, config.basedir)

        scan_duration = (datetime.now() - scan_start).total_seconds()
        logging.info(
            f"Pending upload scan completed in {scan_duration:.2f}s - {total} file(s) queued"
        )
        return total
