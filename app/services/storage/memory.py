"""
DocLedger - In-Memory Blob Store
Process-local storage for development and tests. Contents are lost on restart.
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from app.core.errors import StorageFailure
from app.services.storage.base import BlobStore, StoredBlob


class InMemoryBlobStore(BlobStore):
    """Blobs kept in a dict keyed by locator."""

    SCHEME = "memory://"

    def __init__(self):
        self._blobs: dict[str, tuple[bytes, StoredBlob]] = {}

    @property
    def backend_name(self) -> str:
        return "memory"

    async def put(
        self,
        content: bytes,
        content_type: str,
        content_metadata: Optional[dict[str, str]] = None,
    ) -> str:
        locator = f"{self.SCHEME}{uuid4().hex}"
        self._blobs[locator] = (
            bytes(content),
            StoredBlob(
                locator=locator,
                size=len(content),
                content_type=content_type,
                stored_at=datetime.now(timezone.utc),
                content_metadata=dict(content_metadata or {}),
            ),
        )
        return locator

    def _lookup(self, locator: str) -> tuple[bytes, StoredBlob]:
        try:
            return self._blobs[locator]
        except KeyError:
            raise StorageFailure(f"memory: no blob at {locator}") from None

    async def get(self, locator: str) -> str:
        self._lookup(locator)
        return locator

    async def read(self, locator: str) -> bytes:
        return self._lookup(locator)[0]

    async def stat(self, locator: str) -> StoredBlob:
        return self._lookup(locator)[1]

    def __len__(self) -> int:
        return len(self._blobs)
