"""
DocLedger Blob Storage - Base Interface
Abstract base class for all blob store backends.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass
class StoredBlob:
    """A blob held by a store, with the metadata it was written with."""
    locator: str
    size: int
    content_type: str
    stored_at: datetime
    content_metadata: dict[str, str] = field(default_factory=dict)


class BlobStore(ABC):
    """
    Abstract base class for blob stores.

    Locators are opaque to callers. Stores may or may not deduplicate
    identical bytes; nothing upstream relies on it. Backend failures are
    raised as StorageFailure.
    """

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Return backend name: memory, local"""
        pass

    @abstractmethod
    async def put(
        self,
        content: bytes,
        content_type: str,
        content_metadata: Optional[dict[str, str]] = None,
    ) -> str:
        """Store `content` and return its locator."""
        pass

    @abstractmethod
    async def get(self, locator: str) -> str:
        """Return a retrieval reference (URI) for a stored blob."""
        pass

    @abstractmethod
    async def read(self, locator: str) -> bytes:
        """Return the stored bytes."""
        pass

    @abstractmethod
    async def stat(self, locator: str) -> StoredBlob:
        """Return what the store knows about a blob."""
        pass

    async def is_connected(self) -> bool:
        """Check if the store is reachable."""
        return True
