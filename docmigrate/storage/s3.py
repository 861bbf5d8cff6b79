"""S3-backed document store for docmigrate.

Each collection is a key prefix in the bucket and each document is a JSON
object under that prefix. A small marker object records that the collection
has been created, so an empty collection still exists.
"""

import json
import logging
from typing import Any

from botocore.exceptions import ClientError

from docmigrate.core.exceptions import DuplicateKeyError, StorageOperationError
from docmigrate.storage.base import DocumentStore

logger = logging.getLogger(__name__)

_MISSING_CODES = ("404", "NoSuchKey", "NotFound")


class S3DocumentStore(DocumentStore):
    """Document store over an S3 bucket.

    S3 offers no multi-document transactions, so supports_transactions()
    is always False and the runner falls back to unscoped execution.
    """

    COLLECTION_MARKER = ".collection"

    def __init__(self, s3_client, bucket_name: str, base_path: str = ""):
        """Initialize the store.

        Args:
            s3_client: The S3 client to use
            bucket_name: The S3 bucket name
            base_path: Key prefix for all collections
        """
        self.s3_client = s3_client
        self.bucket_name = bucket_name
        if base_path and not base_path.endswith("/"):
            base_path += "/"
        self.base_path = base_path

    def _prefix(self, collection: str) -> str:
        return f"{self.base_path}{collection}/"

    def _document_key(self, collection: str, key: str) -> str:
        return f"{self._prefix(collection)}{key}.json"

    async def _object_exists(self, key: str) -> bool:
        try:
            await self.s3_client.head_object(Bucket=self.bucket_name, Key=key)
            return True
        except ClientError as e:
            if e.response["Error"]["Code"] in _MISSING_CODES:
                return False
            raise StorageOperationError(
                f"Failed to check object: {e}",
                operation="head_object",
                key=key,
                original_error=e,
            )

    async def _put_json(self, key: str, data: Any) -> None:
        try:
            await self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=json.dumps(data).encode("utf-8"),
                ContentType="application/json",
            )
        except ClientError as e:
            raise StorageOperationError(
                f"Failed to write object: {e}",
                operation="put_object",
                key=key,
                original_error=e,
            )

    async def collection_exists(self, name: str) -> bool:
        return await self._object_exists(f"{self._prefix(name)}{self.COLLECTION_MARKER}")

    async def create_collection(self, name: str) -> None:
        await self._put_json(f"{self._prefix(name)}{self.COLLECTION_MARKER}", {"name": name})

    async def _list_keys(self, prefix: str) -> list[str]:
        keys = []
        continuation_token = None

        while True:
            params = {
                "Bucket": self.bucket_name,
                "Prefix": prefix,
                "MaxKeys": 1000,
            }
            if continuation_token:
                params["ContinuationToken"] = continuation_token

            try:
                response = await self.s3_client.list_objects_v2(**params)
            except ClientError as e:
                raise StorageOperationError(
                    f"Failed to list objects: {e}",
                    operation="list_objects_v2",
                    key=prefix,
                    original_error=e,
                )

            for obj_summary in response.get("Contents", []):
                keys.append(obj_summary["Key"])

            if not response.get("IsTruncated", False):
                break

            continuation_token = response.get("NextContinuationToken")

        return keys

    async def find(
        self,
        collection: str,
        sort_by: str | None = None,
    ) -> list[dict[str, Any]]:
        documents = []
        for key in await self._list_keys(self._prefix(collection)):
            if not key.endswith(".json"):
                continue
            try:
                response = await self.s3_client.get_object(
                    Bucket=self.bucket_name, Key=key
                )
                body = await response["Body"].read()
            except ClientError as e:
                if e.response["Error"]["Code"] in _MISSING_CODES:
                    # Deleted between list and get
                    logger.debug(f"Object {key} disappeared during scan")
                    continue
                raise StorageOperationError(
                    f"Failed to read object: {e}",
                    operation="get_object",
                    key=key,
                    original_error=e,
                )
            try:
                documents.append(json.loads(body.decode("utf-8")))
            except (UnicodeDecodeError, json.JSONDecodeError) as e:
                raise StorageOperationError(
                    f"Corrupt document at {key}: {e}",
                    operation="get_object",
                    key=key,
                    original_error=e,
                )

        if sort_by:
            documents.sort(key=lambda d: d.get(sort_by))
        return documents

    async def insert_one(
        self,
        collection: str,
        key: str,
        document: dict[str, Any],
    ) -> None:
        object_key = self._document_key(collection, key)
        # Not atomic: S3 has no conditional create here, one runner at a time
        if await self._object_exists(object_key):
            raise DuplicateKeyError(collection, key)
        await self._put_json(object_key, document)

    async def delete_one(self, collection: str, key: str) -> bool:
        object_key = self._document_key(collection, key)
        if not await self._object_exists(object_key):
            return False
        try:
            await self.s3_client.delete_object(Bucket=self.bucket_name, Key=object_key)
        except ClientError as e:
            raise StorageOperationError(
                f"Failed to delete object: {e}",
                operation="delete_object",
                key=object_key,
                original_error=e,
            )
        return True
