from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Output configuration (devices, channels, mixers) as JSON
    outputs_file: str = "outputs.json"

    # Upload transport
    upload_timeout_seconds: float = 60.0  # Bounds a single ATTEMPTING phase
    shutdown_timeout_seconds: float = 30.0  # Max wait for an in-flight upload on shutdown

    # Crash recovery
    scan_pending_on_startup: bool = True

    # Logging konfiguration
    log_level: str = "INFO"
    log_file_path: str = "logs/file_uploader.log"
    log_retention_days: int = 30

    # Service host
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    model_config = SettingsConfigDict(env_file="settings.env", extra="ignore")

    @property
    def log_directory(self) -> Path:
        """Returnerer log directory som Path objekt"""
        return Path(self.log_file_path).parent
