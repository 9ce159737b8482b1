"""
DocLedger Attestation Ledger - Base Interface

A ledger records that an owner held a fingerprint at a point in time and
answers whether a fingerprint is attested. Ledgers are eventually
consistent: a status query right after `attest` may report nothing.
Backend failures are raised as LedgerUnavailable.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional


@dataclass(frozen=True)
class AttestationStatus:
    """Ledger view of a fingerprint. Not persisted by DocLedger."""
    present: bool
    attested_at: Optional[datetime] = None
    attesting_owner: Optional[str] = None
    attestation_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "present": self.present,
            "attested_at": self.attested_at.isoformat() if self.attested_at else None,
            "attesting_owner": self.attesting_owner,
            "attestation_id": self.attestation_id,
        }


@dataclass(frozen=True)
class Attestation:
    """One attestation entry as held by a ledger backend."""
    attestation_id: str
    fingerprint: str
    locator: str
    owner_id: str
    attested_at: datetime

    def to_status(self) -> AttestationStatus:
        return AttestationStatus(
            present=True,
            attested_at=self.attested_at,
            attesting_owner=self.owner_id,
            attestation_id=self.attestation_id,
        )


def earliest_confirmed(
    entries: Iterable[Attestation],
    confirmation_delay: float,
    now: Optional[datetime] = None,
) -> Optional[Attestation]:
    """
    First attestation older than the confirmation delay, or None.

    Entries younger than the delay are still pending and invisible.
    """
    cutoff = (now or datetime.now(timezone.utc)) - timedelta(seconds=confirmation_delay)
    confirmed = [entry for entry in entries if entry.attested_at <= cutoff]
    if not confirmed:
        return None
    return min(confirmed, key=lambda entry: entry.attested_at)


class Ledger(ABC):
    """Abstract base class for attestation ledgers."""

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Return backend name: memory, jsonl, http"""
        pass

    @abstractmethod
    async def attest(self, fingerprint: str, locator: str, owner_id: str) -> str:
        """Submit an attestation and return its receipt id."""
        pass

    @abstractmethod
    async def status_of(self, fingerprint: str) -> Optional[AttestationStatus]:
        """
        Attestation status for `fingerprint`, or None when the ledger has no
        confirmed attestation. With several attestations the earliest wins.
        """
        pass

    async def is_connected(self) -> bool:
        """Check if the ledger is reachable."""
        return True
