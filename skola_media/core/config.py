"""
Application configuration using Pydantic Settings
"""

from dataclasses import dataclass
from typing import Literal, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings


@dataclass(frozen=True, slots=True)
class BackendConfig:
    """Connection data for the Parse backend, passed explicitly to clients."""

    app_id: str
    server_url: str
    client_key: str
    session_token: Optional[str] = None

    @property
    def functions_url(self) -> str:
        return f"{self.server_url.rstrip('/')}/functions"


# Named backend hosts the app can be pointed at. Keys are provided through
# the environment; only the public endpoint and app id are fixed here.
BACKEND_HOSTS: dict = {
    "skola": {
        "app_id": "skolaAppId",
        "server_url": "https://skola-server.herokuapp.com/parse",
    },
    "mt_toluca": {
        "app_id": "skolamomstotstolucaAppId",
        "server_url": "https://skola-momstotstoluca-server.herokuapp.com/parse",
    },
    "mt_metepec": {
        "app_id": "skolamomstotsmetepecAppId",
        "server_url": "https://skola-momstotsmetepec-server.herokuapp.com/parse",
    },
}


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # Backend (Parse Server) Settings
    backend_host: str = "skola"
    parse_server_url: str = ""
    parse_app_id: str = ""
    parse_client_key: str = ""
    parse_session_token: str = ""

    # Storage backend: "cloud" goes through Parse cloud functions,
    # "s3" talks to the bucket directly with boto3
    storage_backend: Literal["cloud", "s3"] = "cloud"

    # AWS S3 Settings (only used when storage_backend == "s3")
    aws_s3_bucket: str = ""
    aws_s3_legacy_bucket: str = ""
    aws_s3_region: str = "us-east-1"
    aws_access_key_id: str = ""
    aws_secret_access_key: str = ""
    aws_s3_signed_url_ttl: int = 900  # seconds

    # Chunked (multipart) upload Settings
    chunk_size_bytes: int = 5 * 1024 * 1024  # 5 MiB
    chunk_max_attempts: int = 3
    chunk_backoff_base: float = 2.0  # sleep base ** attempt seconds
    chunked_upload_threshold_bytes: int = 5 * 1024 * 1024
    abort_on_failure: bool = True

    # Per-call timeouts (seconds)
    chunk_upload_timeout: float = 120.0
    session_call_timeout: float = 60.0
    upload_object_timeout: float = 300.0
    signed_url_timeout: float = 30.0
    download_timeout: int = 300

    # Image Settings
    thumbnail_width: int = 200
    thumbnail_prefix: str = "resized-"
    heic_jpeg_quality: float = 0.9

    # Scratch Directory Settings
    scratch_dir: str = "data/scratch"
    scratch_delayed_cleanup_delay: float = 30.0

    # Logging Settings
    log_level: str = "INFO"
    log_format: str = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"
    log_date_format: str = "%Y-%m-%d %H:%M:%S"
    log_file: str = ""

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    @field_validator("heic_jpeg_quality")
    @classmethod
    def check_quality(cls, v):
        """JPEG quality is expressed as a 0..1 factor."""
        if not 0.0 < float(v) <= 1.0:
            raise ValueError("heic_jpeg_quality must be in (0, 1]")
        return float(v)

    @field_validator("chunk_size_bytes", "chunk_max_attempts")
    @classmethod
    def check_positive(cls, v):
        if int(v) <= 0:
            raise ValueError("must be a positive integer")
        return int(v)

    def backend_config(self) -> BackendConfig:
        """Resolve the backend connection for the selected host.

        Explicit ``parse_*`` values override the named host preset, which
        allows pointing at a ``custom`` host entirely from the environment.
        """
        preset = BACKEND_HOSTS.get(self.backend_host.strip().lower(), {})
        server_url = self.parse_server_url or preset.get("server_url", "")
        app_id = self.parse_app_id or preset.get("app_id", "")
        if not server_url or not app_id:
            from skola_media.core.exceptions import ConfigurationError

            raise ConfigurationError(
                f"Backend host '{self.backend_host}' is not configured",
                config_key="backend_host",
            )
        return BackendConfig(
            app_id=app_id,
            server_url=server_url,
            client_key=self.parse_client_key,
            session_token=self.parse_session_token or None,
        )


# Global settings instance
settings = Settings()
