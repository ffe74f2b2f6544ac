"""Application configuration via environment variables.

Uses pydantic-settings to load config from env vars with REVIEWDESK_ prefix.
No YAML files, no file-based config: just env vars (12-factor app style).

Learn: The settings object is frozen. It is built once at import time and
handed to the components that need it (token codec, storage factory, admin
seeding) instead of being mutated at runtime.
"""

from typing import Literal

from pydantic import model_validator
from pydantic_settings import BaseSettings

PLACEHOLDER_JWT_SECRET = "change-me-in-production"


class Settings(BaseSettings):
    """All app configuration. Set via REVIEWDESK_* env vars."""

    # Database
    database_url: str = "sqlite+aiosqlite:///./reviewdesk.db"

    # Auth
    jwt_secret: str = PLACEHOLDER_JWT_SECRET
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 7 * 24 * 60  # 7 days
    bcrypt_rounds: int = 12

    # Default administrator (seeded at startup when a password is set)
    default_admin_email: str = "admin"
    default_admin_password: str = ""

    # Server
    environment: str = "development"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000

    # CORS
    cors_origins: list[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
    ]

    # Document storage
    storage_backend: Literal["s3", "local"] = "local"
    storage_bucket: str = ""
    storage_prefix: str = ""
    storage_region: str = "us-east-1"
    storage_endpoint_url: str = ""  # for S3-compatible stores (MinIO etc.)
    local_storage_dir: str = "./documents"
    signed_url_ttl_seconds: int = 60 * 60
    max_upload_bytes: int = 50 * 1024 * 1024

    model_config = {"env_prefix": "REVIEWDESK_", "frozen": True}

    @model_validator(mode="after")
    def validate_production_settings(self):
        """Ensure sensitive defaults are changed in non-development environments."""
        if (
            self.environment != "development"
            and self.jwt_secret == PLACEHOLDER_JWT_SECRET
        ):
            raise ValueError(
                "REVIEWDESK_JWT_SECRET must be set to a secure value in "
                "non-development environments. Generate one with: "
                'python -c "import secrets; print(secrets.token_urlsafe(32))"'
            )
        if self.storage_backend == "s3" and not self.storage_bucket:
            raise ValueError(
                "REVIEWDESK_STORAGE_BUCKET is required when REVIEWDESK_STORAGE_BACKEND=s3"
            )
        return self


# Singleton: import this everywhere
settings = Settings()
