"""S3 client manager for the S3 document backend."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from aiobotocore.client import AioBaseClient
from aiobotocore.session import get_session
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from docmigrate.core.exceptions import StorageConnectionError, StorageOperationError
from docmigrate.core.settings import MigrationSettings


def adjust_endpoint_url(
    endpoint_url: str | None, bucket_name: str | None
) -> str | None:
    """Adjust endpoint URL for path-style addressing if needed.

    Args:
        endpoint_url: The S3 endpoint URL
        bucket_name: The S3 bucket name

    Returns:
        Adjusted endpoint URL or None
    """
    if not endpoint_url:
        return None
    if bucket_name and f"{bucket_name}." in endpoint_url:
        return endpoint_url.replace(f"{bucket_name}.", "")
    return endpoint_url


class S3ClientManager:
    """Creates aiobotocore S3 clients from settings.

    One manager is constructed per process entry point (the CLI or an
    embedding application) and passed to whatever needs a client.
    """

    def __init__(self, settings: MigrationSettings):
        """Initialize the client manager.

        Args:
            settings: docmigrate settings
        """
        self.settings = settings
        self._session = None
        self._endpoint_url = adjust_endpoint_url(
            settings.aws_url, settings.aws_bucket_name
        )
        self._client_config = Config(
            s3={"addressing_style": "path"},
            retries={
                "max_attempts": settings.aws_retry_attempts,
                "mode": "standard",
            },
        )

    @asynccontextmanager
    async def get_async_client(self) -> AsyncGenerator[AioBaseClient, None]:
        """Get an async S3 client within a context manager.

        Yields:
            An aiobotocore S3 client

        Raises:
            StorageConnectionError: If client creation fails
            StorageOperationError: If client operations fail
        """
        if self._session is None:
            self._session = get_session()

        try:
            async with self._session.create_client(
                "s3",
                region_name=self.settings.aws_default_region,
                aws_access_key_id=self.settings.aws_access_key_id,
                aws_secret_access_key=self.settings.aws_secret_access_key,
                endpoint_url=self._endpoint_url,
                config=self._client_config,
            ) as client:
                yield client
        except ClientError as e:
            raise StorageOperationError(
                f"S3 client operation failed: {e}", original_error=e
            )
        except BotoCoreError as e:
            raise StorageConnectionError(
                message=f"Failed to create async S3 client: {e}",
                original_error=e,
                endpoint=self._endpoint_url,
            )

    async def ensure_bucket_exists(self, client: AioBaseClient) -> None:
        """Ensure the configured bucket exists, creating it if necessary.

        Args:
            client: An open async S3 client

        Raises:
            StorageOperationError: If the bucket check or creation fails
        """
        bucket = self.settings.require_bucket()
        try:
            await client.head_bucket(Bucket=bucket)
        except ClientError as e:
            error_code = e.response["Error"]["Code"]
            # Handle both numeric codes and named codes
            if error_code in ("404", "NoSuchBucket", "NotFound"):
                try:
                    await client.create_bucket(Bucket=bucket)
                except ClientError as create_error:
                    raise StorageOperationError(
                        f"Failed to create bucket: {create_error}",
                        operation="create_bucket",
                        original_error=create_error,
                    )
            elif error_code == "403":
                raise StorageOperationError(
                    "Permission denied checking bucket existence (AccessDenied)",
                    operation="head_bucket",
                    original_error=e,
                )
            else:
                raise StorageOperationError(
                    f"Error checking bucket: {e}",
                    operation="head_bucket",
                    original_error=e,
                )
