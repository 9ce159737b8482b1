"""
Metadata Store

Durable DocumentRecord storage over async SQLAlchemy. Records are created
once and read many times; there is no update or delete path.

Ordering:
- find_by_fingerprint: earliest registration first (registered_at, then
  insertion sequence). The first element is the authoritative match when
  several owners registered identical content.
- list_by_owner: newest registration first.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
from uuid import uuid4

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import MetadataStoreError
from app.models.models import Document, utcnow

logger = logging.getLogger(__name__)


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass(frozen=True)
class DescriptiveMetadata:
    """Caller-supplied description of a document. Never checked against content."""
    name: str
    category: Optional[str] = None
    issuer: Optional[str] = None
    issue_date: Optional[str] = None
    external_ref: Optional[str] = None

    def as_content_metadata(self) -> dict[str, str]:
        """String map handed to the blob store alongside the bytes."""
        return {key: value for key, value in {
            "name": self.name,
            "category": self.category,
            "issuer": self.issuer,
            "issue_date": self.issue_date,
            "external_ref": self.external_ref,
        }.items() if value}


@dataclass(frozen=True)
class DocumentDraft:
    """Everything needed to create a record; the store assigns id and timestamp."""
    owner_id: str
    fingerprint: str
    locator: str
    file_name: str
    content_type: str
    size_bytes: int
    metadata: DescriptiveMetadata
    attestation_id: Optional[str] = None
    attested_at: Optional[datetime] = None


@dataclass(frozen=True)
class DocumentRecord:
    """A durable registration record."""
    id: str
    owner_id: str
    fingerprint: str
    locator: str
    file_name: str
    content_type: str
    size_bytes: int
    registered_at: datetime
    metadata: DescriptiveMetadata = field(default_factory=lambda: DescriptiveMetadata(name=""))
    attestation_id: Optional[str] = None
    attested_at: Optional[datetime] = None

    @property
    def is_attested(self) -> bool:
        return self.attestation_id is not None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "fingerprint": self.fingerprint,
            "locator": self.locator,
            "attestation_id": self.attestation_id,
            "attested_at": self.attested_at.isoformat() if self.attested_at else None,
            "file_name": self.file_name,
            "content_type": self.content_type,
            "size_bytes": self.size_bytes,
            "name": self.metadata.name,
            "category": self.metadata.category,
            "issuer": self.metadata.issuer,
            "issue_date": self.metadata.issue_date,
            "external_ref": self.metadata.external_ref,
            "registered_at": self.registered_at.isoformat(),
        }

    @classmethod
    def from_row(cls, row: Document) -> "DocumentRecord":
        return cls(
            id=row.id,
            owner_id=row.owner_id,
            fingerprint=row.fingerprint,
            locator=row.locator,
            file_name=row.file_name,
            content_type=row.content_type,
            size_bytes=row.size_bytes,
            registered_at=row.registered_at,
            metadata=DescriptiveMetadata(
                name=row.name,
                category=row.category,
                issuer=row.issuer,
                issue_date=row.issue_date,
                external_ref=row.external_ref,
            ),
            attestation_id=row.attestation_id,
            attested_at=row.attested_at,
        )


# =============================================================================
# STORE
# =============================================================================

class MetadataStore:
    """Repository for DocumentRecords on an AsyncSession."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, draft: DocumentDraft) -> DocumentRecord:
        """Insert a new record and commit. Returns it with its assigned id."""
        row = Document(
            id=str(uuid4()),
            owner_id=draft.owner_id,
            fingerprint=draft.fingerprint,
            locator=draft.locator,
            attestation_id=draft.attestation_id,
            attested_at=draft.attested_at,
            file_name=draft.file_name,
            content_type=draft.content_type,
            size_bytes=draft.size_bytes,
            name=draft.metadata.name,
            category=draft.metadata.category,
            issuer=draft.metadata.issuer,
            issue_date=draft.metadata.issue_date,
            external_ref=draft.metadata.external_ref,
            registered_at=utcnow(),
        )
        try:
            self.session.add(row)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise MetadataStoreError(f"Failed to create document record: {e}") from e

        logger.debug("Record created", extra={"document_id": row.id, "owner_id": row.owner_id})
        return DocumentRecord.from_row(row)

    async def get_by_id(self, document_id: str) -> Optional[DocumentRecord]:
        try:
            result = await self.session.execute(
                select(Document).where(Document.id == document_id)
            )
            row = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise MetadataStoreError(f"Record lookup failed: {e}") from e
        return DocumentRecord.from_row(row) if row else None

    async def find_by_fingerprint(self, fingerprint: str) -> list[DocumentRecord]:
        try:
            result = await self.session.execute(
                select(Document)
                .where(Document.fingerprint == fingerprint)
                .order_by(Document.registered_at.asc(), Document.seq.asc())
            )
            rows = result.scalars().all()
        except SQLAlchemyError as e:
            raise MetadataStoreError(f"Fingerprint lookup failed: {e}") from e
        return [DocumentRecord.from_row(row) for row in rows]

    async def list_by_owner(self, owner_id: str) -> list[DocumentRecord]:
        try:
            result = await self.session.execute(
                select(Document)
                .where(Document.owner_id == owner_id)
                .order_by(Document.registered_at.desc(), Document.seq.desc())
            )
            rows = result.scalars().all()
        except SQLAlchemyError as e:
            raise MetadataStoreError(f"Owner listing failed: {e}") from e
        return [DocumentRecord.from_row(row) for row in rows]
