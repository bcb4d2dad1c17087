from .retry_queue import RetryQueue
from .upload_client import UploadClient
from .upload_worker import UploadWorker

__all__ = [
    "RetryQueue",
    "UploadClient",
    "UploadWorker",
]
