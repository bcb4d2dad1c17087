import json
import logging
from enum import Enum
from pathlib import Path
from typing import Iterator, List, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .core.exceptions import OutputsConfigError


class UploadConfig(BaseModel):
    """
    Upload configuration for a single file output.

    The capture pipeline owns the live object; the uploader only ever keeps
    a snapshot taken at enqueue time.
    """

    upload_url: str = Field(default="", description="Endpoint receiving the multipart POST")

    delete_after_upload: bool = Field(
        default=False,
        description="Delete the file after upload instead of renaming it with the _uploaded marker",
    )

    upload_retry_interval: int = Field(
        default=60, ge=0, description="Seconds to wait before retrying a failed upload"
    )

    suffix: str = Field(
        default="", description="Only files whose path ends with this suffix are picked up by the scanner"
    )

    dated_subdirectories: bool = Field(
        default=False, description="Recordings are written to dated subdirectories below basedir"
    )

    upload_pending_on_start: bool = Field(
        default=False, description="Rescan basedir at startup for files that were never uploaded"
    )

    basedir: str = Field(default=".", description="Directory the output writes its files to")

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "upload_url": "https://archive.example.org/upload",
                "delete_after_upload": False,
                "upload_retry_interval": 60,
                "suffix": ".mp3",
                "dated_subdirectories": True,
                "upload_pending_on_start": True,
                "basedir": "/var/lib/recordings",
            }
        },
    )


class OutputType(str, Enum):
    """Output kinds a channel can feed."""

    FILE = "file"
    RAWFILE = "rawfile"
    ICECAST = "icecast"
    UDP_STREAM = "udp_stream"
    PULSE = "pulse"


@runtime_checkable
class HasFileOutput(Protocol):
    """Anything that may carry an uploadable file output."""

    def upload_config(self) -> Optional[UploadConfig]:
        ...


class OutputConfig(BaseModel):
    type: OutputType
    file: Optional[UploadConfig] = Field(
        default=None, description="File output settings (only meaningful for type=file)"
    )

    def upload_config(self) -> Optional[UploadConfig]:
        if self.type != OutputType.FILE:
            return None
        return self.file


class ChannelConfig(BaseModel):
    name: str = ""
    outputs: List[OutputConfig] = Field(default_factory=list)


class DeviceConfig(BaseModel):
    name: str = ""
    channels: List[ChannelConfig] = Field(default_factory=list)


class MixerConfig(BaseModel):
    name: str = ""
    enabled: bool = True
    channel: ChannelConfig = Field(default_factory=ChannelConfig)


class OutputsConfig(BaseModel):
    """Every output of every device channel and mixer."""

    devices: List[DeviceConfig] = Field(default_factory=list)
    mixers: List[MixerConfig] = Field(default_factory=list)

    def iter_outputs(self) -> Iterator[HasFileOutput]:
        """Yield device channel outputs first, then outputs of enabled mixers."""
        for device in self.devices:
            for channel in device.channels:
                yield from channel.outputs

        for mixer in self.mixers:
            if not mixer.enabled:
                continue
            yield from mixer.channel.outputs

    @classmethod
    def load(cls, outputs_file: str) -> "OutputsConfig":
        path = Path(outputs_file)
        if not path.exists():
            logging.warning(f"Outputs file not found: {outputs_file} - no outputs configured")
            return cls()

        try:
            with open(path, "r", encoding="utf-8") as f:
                return cls.model_validate(json.load(f))
        except (json.JSONDecodeError, ValidationError) as e:
            raise OutputsConfigError(outputs_file, str(e)) from e
