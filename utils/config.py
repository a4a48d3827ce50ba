"""Application settings pulled from ``FLEET_*`` environment variables."""

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).parent.parent


class Settings(BaseSettings):
    """Environment-driven configuration shared by the web app and the CLI."""

    model_config = SettingsConfigDict(env_prefix="FLEET_", extra="ignore")

    data_dir: Path = PROJECT_ROOT / "data"
    blob_dir: Path = PROJECT_ROOT / "blobs"
    secret_key: str = "dev-secret-key-change-in-prod"
    functions_url: str = "http://localhost:54321"
    functions_api_key: str = ""
    request_timeout_seconds: float = 30.0
    warning_days: int = 30
    max_upload_bytes: int = 50 * 1024 * 1024
    storage_quota_bytes: int = 10 * 1024 * 1024 * 1024
    log_level: str = "INFO"

    @field_validator("functions_url", mode="after")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize the functions base URL to avoid double slashes."""
        return str(v).rstrip("/")


settings = Settings()
