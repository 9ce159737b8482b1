"""
DocLedger Database Models
SQLAlchemy ORM models for the metadata store.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


def utcnow() -> datetime:
    """Naive UTC timestamp (the form SQLite round-trips)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# =============================================================================
# Registered Documents
# =============================================================================

class Document(Base):
    """
    Registration record for an uploaded document.

    Rows are written once and never updated. `seq` is the store's insertion
    order and breaks ties between records sharing a registration timestamp.
    """
    __tablename__ = "documents"
    __table_args__ = (
        Index("ix_documents_fingerprint_order", "fingerprint", "registered_at", "seq"),
    )

    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String(36), unique=True, index=True)
    owner_id: Mapped[str] = mapped_column(String(128), index=True)

    # Content addressing
    fingerprint: Mapped[str] = mapped_column(String(64))
    locator: Mapped[str] = mapped_column(String(500))

    # Ledger receipt (absent when attestation failed at registration)
    attestation_id: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    attested_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # File facts
    file_name: Mapped[str] = mapped_column(String(255))
    content_type: Mapped[str] = mapped_column(String(100))
    size_bytes: Mapped[int] = mapped_column(Integer)

    # Descriptive metadata (caller supplied, free-form)
    name: Mapped[str] = mapped_column(String(255))
    category: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)  # certificate, diploma, license...
    issuer: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    issue_date: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    external_ref: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Timestamps
    registered_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
