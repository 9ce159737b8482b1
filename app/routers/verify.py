"""
Verification Router

Public endpoints; no owner identity required.

- POST /api/verify/content               upload a file, verify by its fingerprint
- GET  /api/verify/fingerprint/{value}   verify a known fingerprint
- GET  /api/verify/{document_id}         verify a registration by record id

All return 200 with an outcome kind (verified, partially_verified,
ledger_only, not_found). A backend that cannot be consulted yields a 502
verification_failure, never a not_found.
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile
from pydantic import BaseModel

from app.core.config import Settings, get_settings
from app.core.validation import validate_blob
from app.routers.documents import DocumentResponse
from app.services.document_registry import DocumentRegistry, get_document_registry
from app.services.verification import VerificationOutcome

router = APIRouter(prefix="/api/verify", tags=["Verification"])


class AttestationResponse(BaseModel):
    present: bool
    attested_at: Optional[str] = None
    attesting_owner: Optional[str] = None
    attestation_id: Optional[str] = None


class VerificationResponse(BaseModel):
    kind: str
    found: bool
    message: str
    fingerprint: Optional[str] = None
    document: Optional[DocumentResponse] = None
    attestation: AttestationResponse

    @classmethod
    def from_outcome(cls, outcome: VerificationOutcome) -> "VerificationResponse":
        return cls(**outcome.to_dict())


@router.post("/content", response_model=VerificationResponse)
async def verify_by_content(
    file: UploadFile = File(...),
    registry: DocumentRegistry = Depends(get_document_registry),
    settings: Settings = Depends(get_settings),
):
    """Verify an uploaded file by re-hashing it."""
    content = validate_blob(await file.read(), settings.max_upload_size_bytes)
    outcome = await registry.verify_by_content(content)
    return VerificationResponse.from_outcome(outcome)


@router.get("/fingerprint/{value}", response_model=VerificationResponse)
async def verify_by_fingerprint(
    value: str,
    registry: DocumentRegistry = Depends(get_document_registry),
):
    """Verify a fingerprint (64 hex characters, optional 0x prefix)."""
    outcome = await registry.verify_by_fingerprint(value)
    return VerificationResponse.from_outcome(outcome)


@router.get("/{document_id}", response_model=VerificationResponse)
async def verify_by_id(
    document_id: str,
    registry: DocumentRegistry = Depends(get_document_registry),
):
    """Verify a registration by record id."""
    outcome = await registry.verify_by_id(document_id)
    return VerificationResponse.from_outcome(outcome)
