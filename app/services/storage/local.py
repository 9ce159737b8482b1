"""
DocLedger - Local Filesystem Blob Store

Layout under the root directory:
    <fp[:2]>/<fp>/<token>.blob   raw bytes
    <fp[:2]>/<fp>/<token>.json   content type and metadata sidecar

Blobs are grouped by content fingerprint, but every put gets its own
token, so identical uploads are not deduplicated.
"""

import asyncio
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional
from uuid import uuid4

from app.core.errors import StorageFailure
from app.services.hasher import fingerprint
from app.services.storage.base import BlobStore, StoredBlob

logger = logging.getLogger(__name__)


class LocalBlobStore(BlobStore):
    """Filesystem-backed blob store."""

    SCHEME = "local://"

    def __init__(self, root: str | Path):
        self.root = Path(root).resolve()

    @property
    def backend_name(self) -> str:
        return "local"

    def _path_for(self, locator: str) -> Path:
        if not locator.startswith(self.SCHEME):
            raise StorageFailure(f"local: not a local locator: {locator}")
        path = (self.root / locator[len(self.SCHEME):]).resolve()
        if self.root not in path.parents:
            raise StorageFailure(f"local: locator escapes storage root: {locator}")
        return path

    def _write(self, relative: str, content: bytes, sidecar: dict) -> None:
        blob_path = self.root / f"{relative}.blob"
        blob_path.parent.mkdir(parents=True, exist_ok=True)
        blob_path.write_bytes(content)
        blob_path.with_suffix(".json").write_text(json.dumps(sidecar, sort_keys=True))

    async def put(
        self,
        content: bytes,
        content_type: str,
        content_metadata: Optional[dict[str, str]] = None,
    ) -> str:
        digest = fingerprint(content)
        relative = f"{digest[:2]}/{digest}/{uuid4().hex}"
        sidecar = {
            "content_type": content_type,
            "size": len(content),
            "stored_at": datetime.now(timezone.utc).isoformat(),
            "content_metadata": dict(content_metadata or {}),
        }
        try:
            await asyncio.to_thread(self._write, relative, content, sidecar)
        except OSError as e:
            raise StorageFailure(f"local: write failed: {e}") from e

        logger.debug("Stored blob", extra={"fingerprint": digest, "size": len(content)})
        return f"{self.SCHEME}{relative}"

    async def get(self, locator: str) -> str:
        blob_path = self._path_for(locator).with_suffix(".blob")
        if not blob_path.exists():
            raise StorageFailure(f"local: no blob at {locator}")
        return blob_path.as_uri()

    async def read(self, locator: str) -> bytes:
        blob_path = self._path_for(locator).with_suffix(".blob")
        try:
            return await asyncio.to_thread(blob_path.read_bytes)
        except OSError as e:
            raise StorageFailure(f"local: read failed for {locator}: {e}") from e

    async def stat(self, locator: str) -> StoredBlob:
        sidecar_path = self._path_for(locator).with_suffix(".json")
        try:
            sidecar = json.loads(await asyncio.to_thread(sidecar_path.read_text))
        except (OSError, ValueError) as e:
            raise StorageFailure(f"local: no readable metadata for {locator}: {e}") from e
        return StoredBlob(
            locator=locator,
            size=sidecar["size"],
            content_type=sidecar["content_type"],
            stored_at=datetime.fromisoformat(sidecar["stored_at"]),
            content_metadata=sidecar.get("content_metadata", {}),
        )

    async def is_connected(self) -> bool:
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError:
            return False
        return self.root.is_dir()
