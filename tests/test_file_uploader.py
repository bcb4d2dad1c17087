"""
Integration tests for FileUploader and the dependency-level entry points.

Uploads go through a real UploadClient backed by httpx.MockTransport.
"""

import asyncio
import json
import time

import httpx
import pytest

from file_uploader import dependencies
from file_uploader.services.file_uploader import FileUploader
from file_uploader.services.upload.upload_models import WorkerState


async def wait_until(predicate, timeout=3.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        await asyncio.sleep(0.01)
    return predicate()


class ScriptedServer:
    """MockTransport handler answering with a scripted sequence of status codes."""

    def __init__(self, *status_codes):
        self.status_codes = list(status_codes) or [201]
        self.uploaded = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        status = self.status_codes.pop(0) if len(self.status_codes) > 1 else self.status_codes[0]
        self.uploaded.append(request.content)
        return httpx.Response(status)


class TestFileUploader:
    @pytest.mark.asyncio
    async def test_enqueue_uploads_and_marks_file(self, settings, upload_config, tmp_path):
        server = ScriptedServer(201)
        uploader = FileUploader(settings, transport=httpx.MockTransport(server))
        source = tmp_path / "show.wav"
        source.write_bytes(b"first broadcast")

        await uploader.start()
        try:
            assert uploader.enqueue_upload(str(source), upload_config) is True
            assert await wait_until(lambda: (tmp_path / "show_uploaded.wav").exists())
        finally:
            await uploader.shutdown()

        assert len(server.uploaded) == 1
        assert b"first broadcast" in server.uploaded[0]
        assert not source.exists()

    @pytest.mark.asyncio
    async def test_failed_upload_stays_pending(self, settings, upload_config, tmp_path):
        server = ScriptedServer(500)
        uploader = FileUploader(settings, transport=httpx.MockTransport(server))
        source = tmp_path / "b.wav"
        source.write_bytes(b"data")

        await uploader.start()
        try:
            uploader.enqueue_upload(str(source), upload_config)
            assert await wait_until(lambda: uploader.worker.uploads_failed == 1)

            status = uploader.get_status()
            assert status["queue_size"] == 1
            assert status["queue"][0]["path"] == str(source)
            assert status["queue"][0]["attempts"] == 1
        finally:
            await uploader.shutdown()

        assert source.exists()
        assert len(uploader.queue) == 1

    @pytest.mark.asyncio
    async def test_enqueue_before_start_is_kept(self, settings, upload_config, tmp_path):
        server = ScriptedServer(201)
        uploader = FileUploader(settings, transport=httpx.MockTransport(server))
        source = tmp_path / "early.wav"
        source.write_bytes(b"data")

        uploader.enqueue_upload(str(source), upload_config)
        await uploader.start()
        try:
            assert await wait_until(lambda: (tmp_path / "early_uploaded.wav").exists())
        finally:
            await uploader.shutdown()

    @pytest.mark.asyncio
    async def test_scan_then_upload(self, settings, upload_config, tmp_path):
        server = ScriptedServer(201)
        uploader = FileUploader(settings, transport=httpx.MockTransport(server))
        (tmp_path / "left.wav").write_bytes(b"data")
        (tmp_path / "done_uploaded.wav").write_bytes(b"data")

        await uploader.start()
        try:
            queued = await uploader.scanner.scan(upload_config, str(tmp_path))
            assert queued == 1
            assert await wait_until(lambda: (tmp_path / "left_uploaded.wav").exists())
        finally:
            await uploader.shutdown()

        assert len(server.uploaded) == 1

    @pytest.mark.asyncio
    async def test_shutdown_is_idempotent(self, settings):
        uploader = FileUploader(settings, transport=httpx.MockTransport(ScriptedServer()))

        await uploader.shutdown()
        await uploader.start()
        assert uploader.is_running
        assert uploader.client.is_started

        await uploader.shutdown()
        await uploader.shutdown()

        assert not uploader.is_running
        assert not uploader.client.is_started
        assert uploader.worker.state is WorkerState.STOPPED

    @pytest.mark.asyncio
    async def test_start_twice_keeps_single_worker(self, settings):
        uploader = FileUploader(settings, transport=httpx.MockTransport(ScriptedServer()))

        await uploader.start()
        task = uploader.worker._task
        await uploader.start()

        assert uploader.worker._task is task
        await uploader.shutdown()


class TestDependencies:
    @pytest.fixture
    def env(self, monkeypatch, tmp_path):
        outputs_file = tmp_path / "outputs.json"
        monkeypatch.setenv("OUTPUTS_FILE", str(outputs_file))
        monkeypatch.setenv("LOG_FILE_PATH", str(tmp_path / "logs" / "file_uploader.log"))
        monkeypatch.setenv("SHUTDOWN_TIMEOUT_SECONDS", "1")
        return outputs_file

    def test_settings_from_environment(self, env):
        settings = dependencies.get_settings()

        assert settings.outputs_file == str(env)
        assert settings.shutdown_timeout_seconds == 1.0
        assert dependencies.get_settings() is settings

    def test_singletons_are_shared(self, env):
        assert dependencies.get_file_uploader() is dependencies.get_file_uploader()
        assert dependencies.get_outputs_config() is dependencies.get_outputs_config()

    @pytest.mark.asyncio
    async def test_init_scan_and_shutdown(self, env, tmp_path):
        recordings = tmp_path / "recordings"
        recordings.mkdir()
        (recordings / "a.wav").write_bytes(b"data")
        env.write_text(
            json.dumps(
                {
                    "devices": [
                        {
                            "channels": [
                                {
                                    "outputs": [
                                        {
                                            "type": "file",
                                            "file": {
                                                "upload_url": "http://uploads.test/upload",
                                                "upload_pending_on_start": True,
                                                "upload_retry_interval": 60,
                                                "basedir": str(recordings),
                                            },
                                        }
                                    ]
                                }
                            ]
                        }
                    ]
                }
            )
        )
        server = ScriptedServer(201)
        dependencies._singletons["file_uploader"] = FileUploader(
            dependencies.get_settings(), transport=httpx.MockTransport(server)
        )

        uploader = await dependencies.init_file_uploader()
        try:
            assert uploader.is_running
            assert await dependencies.scan_pending_uploads() == 1
            assert await wait_until(lambda: (recordings / "a_uploaded.wav").exists())
        finally:
            await dependencies.shutdown_file_uploader()

        assert not uploader.is_running

    def test_module_level_enqueue(self, env, upload_config, tmp_path):
        source = tmp_path / "api.wav"
        source.write_bytes(b"data")

        dependencies.enqueue_upload(str(source), upload_config)

        assert str(source) in dependencies.get_file_uploader().queue

    @pytest.mark.asyncio
    async def test_shutdown_without_init(self, env):
        await dependencies.shutdown_file_uploader()
