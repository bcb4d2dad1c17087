# file_uploader/core/exceptions.py


class UploadError(Exception):
    """Base class for a failed upload attempt. Always transient."""

    def __init__(self, file_path: str, reason: str):
        self.file_path = file_path
        self.reason = reason
        super().__init__(f"Upload of {file_path} failed: {reason}")


class UploadTransportError(UploadError):
    """The HTTP request could not be completed (DNS, connect, TLS, I/O)."""


class UploadStatusError(UploadError):
    """The request completed but the server answered outside 2xx."""

    def __init__(self, file_path: str, status_code: int):
        self.status_code = status_code
        super().__init__(file_path, f"server returned HTTP {status_code}")


class SourceFileError(UploadError):
    """The local file could not be read for upload."""


class OutputsConfigError(Exception):
    """Raised when the outputs file exists but cannot be parsed."""

    def __init__(self, outputs_file: str, reason: str):
        self.outputs_file = outputs_file
        super().__init__(f"Invalid outputs configuration in {outputs_file}: {reason}")
