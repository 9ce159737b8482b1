"""
DocLedger - Simulated In-Memory Ledger

Stands in for an on-chain registry in development and tests. Receipts look
like transaction hashes ("0x" + 64 hex). A confirmation delay makes fresh
attestations invisible to `status_of` until they "settle".
"""

import hashlib
import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from app.services.ledger.base import Attestation, AttestationStatus, Ledger, earliest_confirmed

logger = logging.getLogger(__name__)


class InMemoryLedger(Ledger):
    """Process-local attestation ledger."""

    def __init__(self, confirmation_delay: float = 0.0):
        self.confirmation_delay = confirmation_delay
        self._entries: dict[str, list[Attestation]] = defaultdict(list)

    @property
    def backend_name(self) -> str:
        return "memory"

    async def attest(self, fingerprint: str, locator: str, owner_id: str) -> str:
        nonce = uuid4().hex
        attestation_id = "0x" + hashlib.sha256(
            f"{fingerprint}:{locator}:{owner_id}:{nonce}".encode()
        ).hexdigest()

        self._entries[fingerprint].append(Attestation(
            attestation_id=attestation_id,
            fingerprint=fingerprint,
            locator=locator,
            owner_id=owner_id,
            attested_at=datetime.now(timezone.utc),
        ))
        logger.info(
            "Simulated attestation recorded",
            extra={"fingerprint": fingerprint, "owner_id": owner_id, "attestation_id": attestation_id},
        )
        return attestation_id

    async def status_of(self, fingerprint: str) -> Optional[AttestationStatus]:
        entry = earliest_confirmed(self._entries.get(fingerprint, ()), self.confirmation_delay)
        return entry.to_status() if entry else None
