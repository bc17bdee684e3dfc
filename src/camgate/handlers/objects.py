"""Object streaming handler for camgate.

Implements: GET /YYYY/MM/DD/<filename>

The object is opened in the store before the status line is sent, so a
missing key or an unreachable store is still a clean 404. Once the first
chunk is on the wire the status cannot change: a failure after that point is
logged and the connection is dropped, leaving the client a truncated body.
"""

import logging
from collections.abc import AsyncIterator

from fastapi.responses import StreamingResponse

from camgate import metrics
from camgate.errors import StoreError, UnsupportedObjectType
from camgate.storage.backend import ObjectStore

logger = logging.getLogger(__name__)

# Suffix -> Content-Type. Anything else is not served.
CONTENT_TYPES = {
    ".jpg": "image/jpeg",
    ".avi": "video/x-msvideo",
}


def content_type_for(key: str) -> str | None:
    """Return the content type for ``key``'s suffix, or None if unsupported."""
    for suffix, content_type in CONTENT_TYPES.items():
        if key.endswith(suffix):
            return content_type
    return None


async def _relay(key: str, stream: AsyncIterator[bytes]) -> AsyncIterator[bytes]:
    """Pass chunks through, counting bytes and logging mid-stream failures."""
    sent = 0
    try:
        async for chunk in stream:
            sent += len(chunk)
            metrics.record_bytes_streamed(len(chunk))
            yield chunk
    except StoreError as exc:
        logger.error("Stream of %s aborted after %d bytes: %s", key, sent, exc)
        raise
    logger.debug("Streamed %s (%d bytes)", key, sent)


class ObjectHandler:
    """Streams single objects.

    Attributes:
        store: The object store to read from.
    """

    def __init__(self, store: ObjectStore) -> None:
        self.store = store

    async def stream_object(self, key: str) -> StreamingResponse:
        """Stream one object with a content type chosen by suffix.

        Args:
            key: Full object key, ``YYYY/MM/DD/filename``.

        Returns:
            A 200 StreamingResponse fed directly from the store.

        Raises:
            UnsupportedObjectType: For suffixes other than .jpg and .avi;
                the store is not contacted.
            StoreError: If the object cannot be opened.
        """
        content_type = content_type_for(key)
        if content_type is None:
            logger.info("Refusing unsupported object type: %s", key)
            raise UnsupportedObjectType(key)

        try:
            stream = await self.store.open_stream(key)
        except StoreError as exc:
            logger.error("Fetching %s failed: %s", key, exc)
            raise

        return StreamingResponse(
            content=_relay(key, stream),
            status_code=200,
            headers={"Content-Disposition": f"inline;filename={key}"},
            media_type=content_type,
        )
