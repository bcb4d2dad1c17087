from functools import lru_cache
from typing import Any, Dict

from file_uploader.config import Settings
from file_uploader.models import OutputsConfig, UploadConfig
from file_uploader.services.file_uploader import FileUploader

# Global singleton instances
_singletons: Dict[str, Any] = {}


@lru_cache
def get_settings() -> Settings:
    """Hent Settings singleton instance."""
    return Settings()


def get_outputs_config() -> OutputsConfig:
    if "outputs_config" not in _singletons:
        _singletons["outputs_config"] = OutputsConfig.load(get_settings().outputs_file)
    return _singletons["outputs_config"]


def get_file_uploader() -> FileUploader:
    if "file_uploader" not in _singletons:
        _singletons["file_uploader"] = FileUploader(settings=get_settings())
    return _singletons["file_uploader"]


async def init_file_uploader() -> FileUploader:
    uploader = get_file_uploader()
    await uploader.start()
    return uploader


async def shutdown_file_uploader() -> None:
    uploader = _singletons.get("file_uploader")
    if uploader is not None:
        await uploader.shutdown()


def enqueue_upload(path: str, config: UploadConfig) -> None:
    get_file_uploader().enqueue_upload(path, config)


async def scan_pending_uploads() -> int:
    return await get_file_uploader().scan_pending_uploads(
        get_outputs_config().iter_outputs()
    )


def reset_singletons() -> None:
    """Nulstil alle singletons (bruges i tests)."""
    _singletons.clear()
    get_settings.cache_clear()
