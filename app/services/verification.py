"""
Verification Resolver

Reconciles the metadata store and the ledger for one fingerprint:

    record found | ledger attests | outcome
    -------------+----------------+--------------------
    yes          | yes            | verified
    yes          | no             | partially_verified
    no           | yes            | ledger_only
    no           | no             | not_found

`verify_by_id` trusts the stored fingerprint instead of re-reading the
blob, so it cross-checks against the ledger but cannot detect tampering
of the stored bytes.

One pass per call, no retries. A source that cannot be consulted raises
VerificationFailure; it is never reported as not_found.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from app.core.errors import LedgerUnavailable, MetadataStoreError, VerificationFailure
from app.core.validation import validate_blob, validate_document_id
from app.services.hasher import fingerprint, normalize_fingerprint
from app.services.ledger.base import AttestationStatus, Ledger
from app.services.metadata_store import DocumentRecord, MetadataStore

logger = logging.getLogger(__name__)


class OutcomeKind(str, Enum):
    """Result of reconciling metadata presence with ledger presence."""
    VERIFIED = "verified"
    PARTIALLY_VERIFIED = "partially_verified"
    LEDGER_ONLY = "ledger_only"
    NOT_FOUND = "not_found"


OUTCOME_MESSAGES = {
    OutcomeKind.VERIFIED: "Document is registered and confirmed on the ledger.",
    OutcomeKind.PARTIALLY_VERIFIED: (
        "Document found in our records, but ledger confirmation is absent or still pending."
    ),
    OutcomeKind.LEDGER_ONLY: "Document is confirmed on the ledger, but local metadata is unavailable.",
    OutcomeKind.NOT_FOUND: "Document is not registered and not attested on the ledger.",
}


@dataclass(frozen=True)
class VerificationOutcome:
    kind: OutcomeKind
    fingerprint: Optional[str]
    document: Optional[DocumentRecord] = None
    attestation: Optional[AttestationStatus] = None

    @property
    def message(self) -> str:
        return OUTCOME_MESSAGES[self.kind]

    @property
    def found(self) -> bool:
        return self.kind is not OutcomeKind.NOT_FOUND

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "found": self.found,
            "message": self.message,
            "fingerprint": self.fingerprint,
            "document": self.document.to_dict() if self.document else None,
            "attestation": (
                self.attestation.to_dict()
                if self.attestation
                else AttestationStatus(present=False).to_dict()
            ),
        }


def reconcile(
    digest: str,
    record: Optional[DocumentRecord],
    status: Optional[AttestationStatus],
) -> VerificationOutcome:
    """Apply the decision table."""
    attested = status is not None and status.present
    if record and attested:
        kind = OutcomeKind.VERIFIED
    elif record:
        kind = OutcomeKind.PARTIALLY_VERIFIED
    elif attested:
        kind = OutcomeKind.LEDGER_ONLY
    else:
        kind = OutcomeKind.NOT_FOUND
    return VerificationOutcome(
        kind=kind,
        fingerprint=digest,
        document=record,
        attestation=status if attested else None,
    )


class VerificationResolver:
    """Resolves verification requests against the metadata store and ledger."""

    def __init__(self, metadata_store: MetadataStore, ledger: Ledger):
        self.metadata_store = metadata_store
        self.ledger = ledger

    async def verify_by_content(self, content: bytes) -> VerificationOutcome:
        """Fingerprint the bytes, then resolve."""
        validate_blob(content)
        return await self.resolve(fingerprint(content))

    async def verify_by_fingerprint(self, value: str) -> VerificationOutcome:
        """Resolve a caller-supplied fingerprint (hex, optional 0x prefix)."""
        return await self.resolve(normalize_fingerprint(value))

    async def verify_by_id(self, document_id: str) -> VerificationOutcome:
        """Look the record up by id and resolve using its stored fingerprint."""
        document_id = validate_document_id(document_id)
        try:
            record = await self.metadata_store.get_by_id(document_id)
        except MetadataStoreError as e:
            raise VerificationFailure("metadata", e) from e

        if record is None:
            logger.info("Verification by id: unknown id", extra={"document_id": document_id})
            return VerificationOutcome(kind=OutcomeKind.NOT_FOUND, fingerprint=None)

        return await self.resolve(record.fingerprint, known_record=record)

    async def resolve(
        self,
        digest: str,
        known_record: Optional[DocumentRecord] = None,
    ) -> VerificationOutcome:
        """Shared hash-based resolution."""
        record = known_record
        if record is None:
            try:
                matches = await self.metadata_store.find_by_fingerprint(digest)
            except MetadataStoreError as e:
                raise VerificationFailure("metadata", e) from e
            # Earliest registration is authoritative
            record = matches[0] if matches else None

        try:
            status = await self.ledger.status_of(digest)
        except LedgerUnavailable as e:
            raise VerificationFailure("ledger", e) from e

        outcome = reconcile(digest, record, status)
        logger.info(
            "Verification resolved",
            extra={
                "fingerprint": digest,
                "outcome": outcome.kind.value,
                "document_id": record.id if record else None,
            },
        )
        return outcome
