"""AWS S3 object store for camgate.

Reads from a single upstream S3 bucket via aiobotocore. Keys are used as-is
(``YYYY/MM/DD/filename``), with no prefix mapping.

Credentials are resolved via the standard AWS credential chain
(env vars, ~/.aws/credentials, IAM role, etc.).
"""

import logging
from collections.abc import AsyncIterator
from typing import Any

from aiobotocore.session import AioSession
from botocore.exceptions import BotoCoreError, ClientError

from camgate.errors import StoreError

logger = logging.getLogger(__name__)

# Streaming chunk size: 64 KB
_CHUNK_SIZE = 64 * 1024

_STORE_ERRORS = (ClientError, BotoCoreError, OSError)


class S3ObjectStore:
    """Object store backed by an AWS S3 bucket.

    Attributes:
        bucket_name: The upstream S3 bucket name.
        region: AWS region, or "" to let the credential chain decide.
        endpoint_url: Custom endpoint (MinIO, LocalStack), or "".
    """

    def __init__(
        self,
        bucket_name: str,
        region: str = "",
        endpoint_url: str = "",
    ) -> None:
        self.bucket_name = bucket_name
        self.region = region
        self.endpoint_url = endpoint_url
        self._session = AioSession()
        self._client = None
        self._client_ctx = None

    async def init(self) -> None:
        """Create the aiobotocore S3 client and probe the bucket.

        A failed probe is only logged: the gateway still starts and reports
        the store failure per request.
        """
        client_kwargs: dict[str, Any] = {}
        if self.region:
            client_kwargs["region_name"] = self.region
        if self.endpoint_url:
            client_kwargs["endpoint_url"] = self.endpoint_url

        self._client_ctx = self._session.create_client("s3", **client_kwargs)
        self._client = await self._client_ctx.__aenter__()

        try:
            await self._client.head_bucket(Bucket=self.bucket_name)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            logger.warning("Cannot access S3 bucket '%s': %s", self.bucket_name, code)
        else:
            logger.info(
                "S3 object store initialized: bucket=%s region=%s",
                self.bucket_name,
                self.region or "(default)",
            )

    async def close(self) -> None:
        """Close the aiobotocore client session."""
        if self._client_ctx is not None:
            await self._client_ctx.__aexit__(None, None, None)
            self._client = None
            self._client_ctx = None

    async def list_keys(self, prefix: str) -> list[str]:
        """List all keys under ``prefix``, following pagination.

        Raises:
            StoreError: If any page request fails.
        """
        keys: list[str] = []
        paginator = self._client.get_paginator("list_objects_v2")
        try:
            async for page in paginator.paginate(Bucket=self.bucket_name, Prefix=prefix):
                keys.extend(obj["Key"] for obj in page.get("Contents", []))
        except _STORE_ERRORS as e:
            raise StoreError("list", prefix, e) from e
        return keys

    async def open_stream(self, key: str) -> AsyncIterator[bytes]:
        """Issue GetObject and return an iterator over its body.

        Raises:
            StoreError: If the object does not exist or the request fails.
        """
        try:
            resp = await self._client.get_object(Bucket=self.bucket_name, Key=key)
        except _STORE_ERRORS as e:
            raise StoreError("get", key, e) from e
        return self._iter_body(key, resp["Body"])

    async def _iter_body(self, key: str, body) -> AsyncIterator[bytes]:
        """Yield the body in 64 KB chunks as they arrive."""
        try:
            async with body as stream:
                while True:
                    chunk = await stream.read(_CHUNK_SIZE)
                    if not chunk:
                        break
                    yield chunk
        except _STORE_ERRORS as e:
            raise StoreError("read", key, e) from e
