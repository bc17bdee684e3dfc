"""Local filesystem object store for camgate.

Serves objects from ``{root}/{key}``, i.e. the same ``YYYY/MM/DD/filename``
layout as the bucket. Useful for development without AWS credentials.
"""

import logging
from collections.abc import AsyncIterator
from pathlib import Path

from camgate.errors import StoreError

logger = logging.getLogger(__name__)

# Streaming chunk size: 64 KB
_CHUNK_SIZE = 64 * 1024


class LocalObjectStore:
    """Object store reading files below a root directory.

    Attributes:
        root: The directory that plays the role of the bucket.
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def _object_path(self, key: str) -> Path:
        """Map a key to a path, refusing anything that escapes the root."""
        path = (self.root / key).resolve()
        if not path.is_relative_to(self.root.resolve()):
            raise StoreError("get", key, ValueError("key escapes store root"))
        return path

    async def init(self) -> None:
        """Check that the root directory exists."""
        if not self.root.is_dir():
            logger.warning("Local object store root %s does not exist", self.root)
        else:
            logger.info("Local object store initialized at %s", self.root)

    async def close(self) -> None:
        """Nothing to release."""

    async def list_keys(self, prefix: str) -> list[str]:
        """List files whose key starts with ``prefix``, sorted by key.

        A missing directory is an empty listing, as with S3.

        Raises:
            StoreError: If the directory cannot be read.
        """
        directory, _, name_prefix = prefix.rpartition("/")
        base = self.root / directory if directory else self.root
        if not base.is_dir():
            return []
        try:
            entries = sorted(p for p in base.iterdir() if p.is_file())
        except OSError as e:
            raise StoreError("list", prefix, e) from e
        return [
            f"{directory}/{p.name}" if directory else p.name
            for p in entries
            if p.name.startswith(name_prefix)
        ]

    async def open_stream(self, key: str) -> AsyncIterator[bytes]:
        """Open the file for ``key`` and return an iterator over its bytes.

        Raises:
            StoreError: If the file does not exist or cannot be opened.
        """
        path = self._object_path(key)
        try:
            fh = open(path, "rb")
        except OSError as e:
            raise StoreError("get", key, e) from e
        return self._iter_file(key, fh)

    async def _iter_file(self, key: str, fh) -> AsyncIterator[bytes]:
        try:
            with fh:
                while True:
                    chunk = fh.read(_CHUNK_SIZE)
                    if not chunk:
                        break
                    yield chunk
        except OSError as e:
            raise StoreError("read", key, e) from e
