"""
Registration Coordinator

Registers a document in four dependent steps:

1. fingerprint the bytes
2. store the blob                 -> StorageFailure aborts, nothing written
3. attest on the ledger           -> LedgerUnavailable is tolerated; the
                                     record is written without a receipt
4. persist the DocumentRecord     -> MetadataPersistFailure; blob and
                                     attestation stay behind as orphans

Input is validated before step 1; an InputInvalid rejection makes no
external calls. Calls run strictly in sequence.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from app.core.errors import (
    InputInvalid,
    LedgerUnavailable,
    MetadataPersistFailure,
    MetadataStoreError,
    StorageFailure,
)
from app.core.validation import (
    clean_text,
    sanitize_filename,
    validate_blob,
    validate_content_type,
    validate_owner_id,
)
from app.services.hasher import fingerprint
from app.services.ledger.base import Ledger
from app.services.metadata_store import DescriptiveMetadata, DocumentDraft, DocumentRecord, MetadataStore
from app.services.storage.base import BlobStore

logger = logging.getLogger(__name__)

DEFAULT_ACCEPTED_CONTENT_TYPES = ["application/pdf", "image/jpeg", "image/png", "image/webp"]


class RegistrationCoordinator:
    """Orchestrates hash -> store -> attest -> persist."""

    def __init__(
        self,
        blob_store: BlobStore,
        ledger: Ledger,
        metadata_store: MetadataStore,
        accepted_content_types: Optional[list[str]] = None,
        max_size_bytes: Optional[int] = None,
    ):
        self.blob_store = blob_store
        self.ledger = ledger
        self.metadata_store = metadata_store
        self.accepted_content_types = accepted_content_types or DEFAULT_ACCEPTED_CONTENT_TYPES
        self.max_size_bytes = max_size_bytes

    def _validate(
        self,
        owner_id: str,
        content: bytes,
        content_type: Optional[str],
        metadata: DescriptiveMetadata,
    ) -> tuple[str, DescriptiveMetadata]:
        validate_owner_id(owner_id)
        validate_blob(content, self.max_size_bytes)
        normalized_type = validate_content_type(content_type, self.accepted_content_types)

        name = clean_text(metadata.name)
        if not name:
            raise InputInvalid("Document name is required", details=[{"field": "name"}])
        cleaned = DescriptiveMetadata(
            name=name,
            category=clean_text(metadata.category, 100),
            issuer=clean_text(metadata.issuer),
            issue_date=clean_text(metadata.issue_date, 50),
            external_ref=clean_text(metadata.external_ref, 1000),
        )
        return normalized_type, cleaned

    async def register(
        self,
        owner_id: str,
        content: bytes,
        metadata: DescriptiveMetadata,
        file_name: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> DocumentRecord:
        """
        Register `content` for `owner_id`.

        Returns the created record. Its `attestation_id` is None when the
        ledger could not be reached.

        Raises:
            InputInvalid: malformed request, no external call made
            StorageFailure: blob store rejected the write, no record created
            MetadataPersistFailure: record could not be written
        """
        content_type, metadata = self._validate(owner_id, content, content_type, metadata)
        file_name = sanitize_filename(file_name)

        # Step 1: fingerprint
        digest = fingerprint(content)
        log_extra = {"owner_id": owner_id, "fingerprint": digest}

        # Step 2: blob storage
        content_metadata = {
            **metadata.as_content_metadata(),
            "owner_id": owner_id,
            "file_name": file_name,
            "fingerprint": digest,
        }
        try:
            locator = await self.blob_store.put(content, content_type, content_metadata)
        except StorageFailure:
            logger.error("Blob storage failed; registration aborted", extra=log_extra)
            raise

        # Step 3: ledger attestation (non-fatal)
        attestation_id: Optional[str] = None
        attested_at: Optional[datetime] = None
        try:
            attestation_id = await self.ledger.attest(digest, locator, owner_id)
            attested_at = datetime.now(timezone.utc).replace(tzinfo=None)
        except LedgerUnavailable as e:
            logger.warning(
                "Ledger unavailable; registering without attestation: %s", e.message,
                extra=log_extra,
            )

        # Step 4: metadata
        draft = DocumentDraft(
            owner_id=owner_id,
            fingerprint=digest,
            locator=locator,
            file_name=file_name,
            content_type=content_type,
            size_bytes=len(content),
            metadata=metadata,
            attestation_id=attestation_id,
            attested_at=attested_at,
        )
        try:
            record = await self.metadata_store.create(draft)
        except MetadataStoreError as e:
            logger.error(
                "Record persist failed; blob and attestation left orphaned",
                extra={**log_extra, "locator": locator, "attestation_id": attestation_id},
            )
            raise MetadataPersistFailure(
                f"Failed to persist document record: {e.message}",
                locator=locator,
                attestation_id=attestation_id,
            ) from e

        logger.info(
            "Document registered",
            extra={**log_extra, "document_id": record.id, "attested": record.is_attested},
        )
        return record
