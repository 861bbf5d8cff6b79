"""Configuration for docmigrate."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from docmigrate.core.exceptions import ConfigurationError


class MigrationSettings(BaseSettings):
    """Settings loaded from the environment or a ``.env`` file.

    AWS settings use the standard AWS variable names so the runner picks up
    the same credentials as the rest of the toolchain.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    aws_access_key_id: str | None = None
    aws_secret_access_key: str | None = None
    aws_default_region: str = "us-east-1"
    aws_url: str | None = Field(
        default=None, description="Endpoint override, e.g. LocalStack"
    )
    aws_bucket_name: str | None = None
    aws_retry_attempts: int = Field(default=3, ge=1)

    s3_base_path: str = "docmigrate/"
    migrations_dir: Path = Path("migrations")
    migrations_collection: str = Field(default="migrations", min_length=1)
    log_level: str = "INFO"

    def require_bucket(self) -> str:
        """Return the configured bucket name.

        Raises:
            ConfigurationError: If no bucket is configured
        """
        if not self.aws_bucket_name:
            raise ConfigurationError(missing_fields=["AWS_BUCKET_NAME"])
        return self.aws_bucket_name
