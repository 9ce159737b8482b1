"""
Document Registry

Upstream surface of the registration and verification engine:

- register(owner_id, content, metadata)   -> DocumentRecord
- verify_by_content(content)              -> VerificationOutcome
- verify_by_id(document_id)               -> VerificationOutcome
- list_for_owner(owner_id)                -> list[DocumentRecord]

plus get_document(document_id) for record lookup with a blob retrieval
reference, and verify_by_fingerprint(fp).

Identity is always passed in explicitly; the registry never looks up a
"current user". Blob store and ledger are process-wide; the metadata
store is bound to the caller's database session.
"""

import logging
from typing import Optional

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.core.errors import NotFoundError
from app.core.validation import validate_document_id, validate_owner_id
from app.services.ledger import Ledger, get_ledger
from app.services.metadata_store import DescriptiveMetadata, DocumentRecord, MetadataStore
from app.services.registration import RegistrationCoordinator
from app.services.storage import BlobStore, get_blob_store
from app.services.verification import VerificationOutcome, VerificationResolver

logger = logging.getLogger(__name__)


class DocumentRegistry:
    """Facade over the coordinator, the resolver and the backends."""

    def __init__(
        self,
        blob_store: BlobStore,
        ledger: Ledger,
        metadata_store: MetadataStore,
        settings: Optional[Settings] = None,
    ):
        settings = settings or get_settings()
        self.blob_store = blob_store
        self.ledger = ledger
        self.metadata_store = metadata_store
        self.coordinator = RegistrationCoordinator(
            blob_store=blob_store,
            ledger=ledger,
            metadata_store=metadata_store,
            accepted_content_types=settings.accepted_content_types,
            max_size_bytes=settings.max_upload_size_bytes,
        )
        self.resolver = VerificationResolver(metadata_store=metadata_store, ledger=ledger)

    async def register(
        self,
        owner_id: str,
        content: bytes,
        metadata: DescriptiveMetadata,
        file_name: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> DocumentRecord:
        return await self.coordinator.register(
            owner_id, content, metadata, file_name=file_name, content_type=content_type
        )

    async def verify_by_content(self, content: bytes) -> VerificationOutcome:
        return await self.resolver.verify_by_content(content)

    async def verify_by_id(self, document_id: str) -> VerificationOutcome:
        return await self.resolver.verify_by_id(document_id)

    async def verify_by_fingerprint(self, value: str) -> VerificationOutcome:
        return await self.resolver.verify_by_fingerprint(value)

    async def list_for_owner(self, owner_id: str) -> list[DocumentRecord]:
        """Owner's records, newest first."""
        return await self.metadata_store.list_by_owner(validate_owner_id(owner_id))

    async def get_document(self, document_id: str) -> tuple[DocumentRecord, str]:
        """Record plus a retrieval reference for its blob."""
        document_id = validate_document_id(document_id)
        record = await self.metadata_store.get_by_id(document_id)
        if record is None:
            raise NotFoundError("Document", document_id)
        return record, await self.blob_store.get(record.locator)


# =============================================================================
# BACKEND SINGLETONS
# =============================================================================

_blob_store: Optional[BlobStore] = None
_ledger: Optional[Ledger] = None


def build_blob_store(settings: Settings) -> BlobStore:
    if settings.blob_backend == "local":
        return get_blob_store("local", root=settings.blob_root)
    return get_blob_store(settings.blob_backend)


def build_ledger(settings: Settings) -> Ledger:
    if settings.ledger_backend == "http":
        return get_ledger(
            "http",
            base_url=settings.ledger_url,
            api_key=settings.ledger_api_key,
            timeout=settings.ledger_timeout_seconds,
        )
    if settings.ledger_backend == "jsonl":
        return get_ledger(
            "jsonl",
            path=settings.ledger_path,
            confirmation_delay=settings.ledger_confirmation_delay_seconds,
        )
    return get_ledger("memory", confirmation_delay=settings.ledger_confirmation_delay_seconds)


def get_blob_store_backend() -> BlobStore:
    """Get the process-wide blob store."""
    global _blob_store
    if _blob_store is None:
        _blob_store = build_blob_store(get_settings())
        logger.info("Blob store initialized", extra={"backend": _blob_store.backend_name})
    return _blob_store


def get_ledger_backend() -> Ledger:
    """Get the process-wide ledger."""
    global _ledger
    if _ledger is None:
        _ledger = build_ledger(get_settings())
        logger.info("Ledger initialized", extra={"backend": _ledger.backend_name})
    return _ledger


def configure_backends(
    blob_store: Optional[BlobStore] = None,
    ledger: Optional[Ledger] = None,
) -> None:
    """Replace the process-wide backends (None resets to settings on next use)."""
    global _blob_store, _ledger
    _blob_store = blob_store
    _ledger = ledger


async def get_document_registry(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> DocumentRegistry:
    """FastAPI dependency: a registry bound to the request's session."""
    return DocumentRegistry(
        blob_store=get_blob_store_backend(),
        ledger=get_ledger_backend(),
        metadata_store=MetadataStore(db),
        settings=settings,
    )
