"""
Pytest configuration og shared fixtures.
"""

import pytest

from file_uploader.config import Settings
from file_uploader.dependencies import reset_singletons
from file_uploader.models import UploadConfig


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def clean_singletons():
    """Automatically reset singletons before hver test."""
    reset_singletons()
    yield
    reset_singletons()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings(tmp_path):
    return Settings(
        outputs_file=str(tmp_path / "outputs.json"),
        upload_timeout_seconds=5.0,
        shutdown_timeout_seconds=2.0,
        log_file_path=str(tmp_path / "logs" / "file_uploader.log"),
    )


@pytest.fixture
def upload_config(tmp_path):
    return UploadConfig(
        upload_url="http://uploads.test/upload",
        upload_retry_interval=5,
        basedir=str(tmp_path),
    )
