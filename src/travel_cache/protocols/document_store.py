"""Document store protocol."""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class DocumentStore(Protocol):
    """Protocol for keyed JSON documents with independent expiry.

    Keys are namespaced as ``{collection}:{id}``.
    """

    async def put(
        self,
        collection: str,
        id: str,
        record: dict[str, Any],
        ttl: int | None = None,
    ) -> None:
        """Write a document, then set its expiry when ttl is given.

        Raises:
            StoreUnavailable: If the write fails
        """
        ...

    async def get(self, collection: str, id: str) -> dict[str, Any] | None:
        """Read a document. None when expired or never written.

        Raises:
            StoreUnavailable: If the read fails
        """
        ...

    async def expire(self, collection: str, id: str, ttl: int) -> bool:
        """Set the expiry of an existing document.

        Returns:
            True if the document exists, False otherwise
        """
        ...

    async def delete(self, collection: str, id: str) -> bool:
        """Delete one document.

        Returns:
            True if deleted, False otherwise
        """
        ...

    async def delete_all(self, prefix: str) -> int:
        """Delete every document whose key starts with prefix.

        Returns:
            Number of documents deleted
        """
        ...
