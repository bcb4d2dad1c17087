"""
Upload Client - one multipart POST per attempt, classified as success or failure.
"""

import logging
import os
import time
from typing import Optional

import httpx

from file_uploader.config import Settings
from file_uploader.core.exceptions import (
    SourceFileError,
    UploadError,
    UploadStatusError,
    UploadTransportError,
)
from file_uploader.services.upload.upload_models import UploadResult, UploadTask


class UploadClient:
    """Thin wrapper around a shared httpx.AsyncClient."""

    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def is_started(self) -> bool:
        return self._client is not None

    async def start(self) -> None:
        if self._client is not None:
            return

        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(self.settings.upload_timeout_seconds),
            transport=self._transport,
        )
        logging.debug(
            f"HTTP client started (timeout {self.settings.upload_timeout_seconds}s)"
        )

    async def aclose(self) -> None:
        if self._client is None:
            return

        await self._client.aclose()
        self._client = None
        logging.debug("HTTP client closed")

    async def attempt(self, task: UploadTask) -> UploadResult:
        started = time.monotonic()

        try:
            status_code = await self._post_file(task)
        except UploadError as e:
            logging.error(str(e))
            return UploadResult(
                success=False,
                file_path=task.path,
                status_code=getattr(e, "status_code", None),
                error_message=e.reason,
                duration_seconds=time.monotonic() - started,
            )

        result = UploadResult(
            success=True,
            file_path=task.path,
            status_code=status_code,
            duration_seconds=time.monotonic() - started,
        )
        logging.info(f"UPLOADED: {result}")
        return result

    async def _post_file(self, task: UploadTask) -> int:
        if self._client is None:
            await self.start()

        try:
            source = open(task.path, "rb")
        except OSError as e:
            raise SourceFileError(task.path, f"cannot read file: {e}") from e

        # httpx reads the file object in chunks while sending the multipart body
        with source:
            files = {"file": (os.path.basename(task.path), source)}
            try:
                response = await self._client.post(task.config.upload_url, files=files)
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                reason = str(e) or e.__class__.__name__
                raise UploadTransportError(task.path, reason) from e
            except OSError as e:
                raise SourceFileError(task.path, f"cannot read file: {e}") from e

        if not 200 <= response.status_code < 300:
            raise UploadStatusError(task.path, response.status_code)

        return response.status_code
