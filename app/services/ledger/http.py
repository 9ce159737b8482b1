"""
DocLedger - HTTP Attestation Ledger Client

Talks to a remote attestation service (for example a gateway in front of a
registry smart contract):

    POST {base_url}/attestations        {"fingerprint", "locator", "owner_id"}
        -> 200/201 {"attestation_id": "..."}
    GET  {base_url}/attestations/{fp}
        -> 200 {"attested_at", "attesting_owner", "attestation_id"}
        -> 404 when the fingerprint is unknown or still pending

Transport errors, timeouts and any other status raise LedgerUnavailable.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

import httpx

from app.core.errors import LedgerUnavailable
from app.services.ledger.base import AttestationStatus, Ledger

logger = logging.getLogger(__name__)


def _parse_timestamp(value) -> Optional[datetime]:
    """ISO 8601 string (a trailing "Z" is accepted) or epoch seconds."""
    if value is None or value == "":
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value, timezone.utc)
    if not isinstance(value, str):
        raise TypeError(f"unsupported timestamp type: {type(value).__name__}")
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


class HttpLedger(Ledger):
    """Async client for a remote attestation service."""

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    @property
    def backend_name(self) -> str:
        return "http"

    def _client(self) -> httpx.AsyncClient:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=self.timeout,
            transport=self._transport,
        )

    async def attest(self, fingerprint: str, locator: str, owner_id: str) -> str:
        payload = {"fingerprint": fingerprint, "locator": locator, "owner_id": owner_id}
        try:
            async with self._client() as client:
                response = await client.post("/attestations", json=payload)
        except httpx.HTTPError as e:
            raise LedgerUnavailable(f"http: attest request failed: {e}") from e

        if response.status_code not in (200, 201):
            raise LedgerUnavailable(f"http: attest rejected with HTTP {response.status_code}")

        try:
            attestation_id = response.json()["attestation_id"]
        except (ValueError, KeyError, TypeError) as e:
            raise LedgerUnavailable(f"http: malformed attest response: {e}") from e

        logger.info(
            "Attestation submitted",
            extra={"fingerprint": fingerprint, "owner_id": owner_id, "attestation_id": attestation_id},
        )
        return attestation_id

    async def status_of(self, fingerprint: str) -> Optional[AttestationStatus]:
        try:
            async with self._client() as client:
                response = await client.get(f"/attestations/{fingerprint}")
        except httpx.HTTPError as e:
            raise LedgerUnavailable(f"http: status request failed: {e}") from e

        if response.status_code == 404:
            return None
        if response.status_code != 200:
            raise LedgerUnavailable(f"http: status query failed with HTTP {response.status_code}")

        try:
            data = response.json()
            return AttestationStatus(
                present=True,
                attested_at=_parse_timestamp(data.get("attested_at")),
                attesting_owner=data.get("attesting_owner"),
                attestation_id=data.get("attestation_id"),
            )
        except (ValueError, AttributeError, TypeError, OverflowError, OSError) as e:
            raise LedgerUnavailable(f"http: malformed status response: {e}") from e

    async def is_connected(self) -> bool:
        try:
            async with self._client() as client:
                response = await client.get("/health")
            return response.status_code < 500
        except httpx.HTTPError:
            return False
