"""
DocLedger - Hash-Chained JSONL Ledger

An append-only attestation log on local disk that survives restarts. Each
line is a JSON entry whose `entry_hash` is

    sha256(prev_hash + canonical JSON of the entry without entry_hash)

starting from 64 zeros. The entry hash doubles as the attestation receipt
("0x" + entry_hash). `verify_chain()` replays the file and reports the
first broken link.
"""

import asyncio
import hashlib
import json
import logging
from collections import defaultdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from app.core.errors import LedgerUnavailable
from app.services.ledger.base import Attestation, AttestationStatus, Ledger, earliest_confirmed

logger = logging.getLogger(__name__)

GENESIS_HASH = "0" * 64


def _canonical(entry: dict) -> str:
    return json.dumps(entry, sort_keys=True, separators=(",", ":"))


def _entry_hash(prev_hash: str, body: dict) -> str:
    return hashlib.sha256((prev_hash + _canonical(body)).encode("utf-8")).hexdigest()


class JsonlLedger(Ledger):
    """Append-only, hash-chained attestation log."""

    def __init__(self, path: str | Path, confirmation_delay: float = 0.0):
        self.path = Path(path)
        self.confirmation_delay = confirmation_delay
        self._lock = asyncio.Lock()
        self._loaded = False
        self._last_hash = GENESIS_HASH
        self._index: dict[str, list[Attestation]] = defaultdict(list)

    @property
    def backend_name(self) -> str:
        return "jsonl"

    def _read_lines(self) -> list[str]:
        if not self.path.exists():
            return []
        with self.path.open("r", encoding="utf-8") as f:
            return [line.rstrip("\n") for line in f if line.strip()]

    def _append_line(self, line: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as f:
            f.write(line + "\n")

    @staticmethod
    def _to_attestation(entry: dict) -> Attestation:
        return Attestation(
            attestation_id="0x" + entry["entry_hash"],
            fingerprint=entry["fingerprint"],
            locator=entry["locator"],
            owner_id=entry["owner_id"],
            attested_at=datetime.fromisoformat(entry["attested_at"]),
        )

    async def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        async with self._lock:
            await self._load()

    async def _load(self) -> None:
        """Build the index from disk. Caller holds the lock."""
        if self._loaded:
            return
        index: dict[str, list[Attestation]] = defaultdict(list)
        last_hash = GENESIS_HASH
        try:
            lines = await asyncio.to_thread(self._read_lines)
            for line in lines:
                entry = json.loads(line)
                index[entry["fingerprint"]].append(self._to_attestation(entry))
                last_hash = entry["entry_hash"]
        except (OSError, ValueError, KeyError, TypeError) as e:
            raise LedgerUnavailable(f"jsonl: cannot load ledger {self.path}: {e}") from e

        self._index = index
        self._last_hash = last_hash
        self._loaded = True

    async def attest(self, fingerprint: str, locator: str, owner_id: str) -> str:
        async with self._lock:
            await self._load()
            body = {
                "seq": sum(len(v) for v in self._index.values()) + 1,
                "fingerprint": fingerprint,
                "locator": locator,
                "owner_id": owner_id,
                "attested_at": datetime.now(timezone.utc).isoformat(),
                "prev_hash": self._last_hash,
            }
            entry = {**body, "entry_hash": _entry_hash(self._last_hash, body)}
            try:
                await asyncio.to_thread(self._append_line, _canonical(entry))
            except OSError as e:
                raise LedgerUnavailable(f"jsonl: append failed: {e}") from e

            self._last_hash = entry["entry_hash"]
            attestation = self._to_attestation(entry)
            self._index[fingerprint].append(attestation)

        logger.info(
            "Attestation appended",
            extra={"fingerprint": fingerprint, "owner_id": owner_id, "seq": body["seq"]},
        )
        return attestation.attestation_id

    async def status_of(self, fingerprint: str) -> Optional[AttestationStatus]:
        await self._ensure_loaded()
        entry = earliest_confirmed(self._index.get(fingerprint, ()), self.confirmation_delay)
        return entry.to_status() if entry else None

    async def verify_chain(self) -> tuple[bool, Optional[int]]:
        """
        Replay the log. Returns (True, None) when intact, otherwise
        (False, line_number) for the first entry whose link or hash is wrong.
        """
        prev_hash = GENESIS_HASH
        lines = await asyncio.to_thread(self._read_lines)
        for line_no, line in enumerate(lines, start=1):
            try:
                entry = json.loads(line)
                stored_hash = entry.pop("entry_hash")
            except (ValueError, KeyError):
                return False, line_no
            if entry.get("prev_hash") != prev_hash or _entry_hash(prev_hash, entry) != stored_hash:
                return False, line_no
            prev_hash = stored_hash
        return True, None

    async def is_connected(self) -> bool:
        try:
            await self._ensure_loaded()
        except LedgerUnavailable:
            return False
        return True
