"""Object store protocol for camgate."""

from typing import AsyncIterator, Protocol

ObjectStream = AsyncIterator[bytes]


class ObjectStore(Protocol):
    """Protocol defining the read-only object store interface.

    Implementations wrap any failure (including a missing key) in
    ``camgate.errors.StoreError``.
    """

    async def init(self) -> None:
        """Connect to the store."""
        ...

    async def close(self) -> None:
        """Release resources held by the store."""
        ...

    async def list_keys(self, prefix: str) -> list[str]:
        """List every key that starts with ``prefix``.

        Args:
            prefix: Key prefix, e.g. ``2024/05/01/``.

        Returns:
            The matching keys in the order the store returns them.
        """
        ...

    async def open_stream(self, key: str) -> ObjectStream:
        """Open one object for reading.

        The store call that locates the object happens here, before any
        chunk is consumed, so a missing key fails before a response starts.

        Args:
            key: The exact object key.

        Returns:
            An async iterator of byte chunks. It can be consumed once.
        """
        ...
