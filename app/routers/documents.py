"""
Documents Router
Registration and owner listing.

- POST /api/documents        register an uploaded document (multipart)
- GET  /api/documents        list the caller's documents, newest first
- GET  /api/documents/{id}   one record plus a retrieval reference for its blob
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from pydantic import BaseModel

from app.core.security import require_owner
from app.services.document_registry import DocumentRegistry, get_document_registry
from app.services.metadata_store import DescriptiveMetadata, DocumentRecord

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/documents", tags=["Documents"])


# =============================================================================
# Schemas
# =============================================================================

class DocumentResponse(BaseModel):
    """A registration record."""
    id: str
    owner_id: str
    fingerprint: str
    locator: str
    attestation_id: Optional[str] = None
    attested_at: Optional[str] = None
    file_name: str
    content_type: str
    size_bytes: int
    name: str
    category: Optional[str] = None
    issuer: Optional[str] = None
    issue_date: Optional[str] = None
    external_ref: Optional[str] = None
    registered_at: str

    @classmethod
    def from_record(cls, record: DocumentRecord) -> "DocumentResponse":
        return cls(**record.to_dict())


class DocumentListResponse(BaseModel):
    documents: list[DocumentResponse]
    total: int


class DocumentDetailResponse(BaseModel):
    document: DocumentResponse
    retrieval_url: str


# =============================================================================
# Endpoints
# =============================================================================

@router.post("", response_model=DocumentResponse, status_code=status.HTTP_201_CREATED)
async def register_document(
    file: UploadFile = File(...),
    name: str = Form(...),
    category: Optional[str] = Form(None),
    issuer: Optional[str] = Form(None),
    issue_date: Optional[str] = Form(None),
    external_ref: Optional[str] = Form(None),
    owner_id: str = Depends(require_owner),
    registry: DocumentRegistry = Depends(get_document_registry),
):
    """
    Register a document: fingerprint, store, attest, persist.

    The response's `attestation_id` is null when the ledger was unreachable;
    the document then verifies as partially_verified.
    """
    content = await file.read()
    record = await registry.register(
        owner_id=owner_id,
        content=content,
        metadata=DescriptiveMetadata(
            name=name,
            category=category,
            issuer=issuer,
            issue_date=issue_date,
            external_ref=external_ref,
        ),
        file_name=file.filename,
        content_type=file.content_type,
    )
    return DocumentResponse.from_record(record)


@router.get("", response_model=DocumentListResponse)
async def list_documents(
    owner_id: str = Depends(require_owner),
    registry: DocumentRegistry = Depends(get_document_registry),
):
    """List the caller's documents."""
    records = await registry.list_for_owner(owner_id)
    return DocumentListResponse(
        documents=[DocumentResponse.from_record(r) for r in records],
        total=len(records),
    )


@router.get("/{document_id}", response_model=DocumentDetailResponse)
async def get_document(
    document_id: str,
    registry: DocumentRegistry = Depends(get_document_registry),
):
    """Fetch a record by id with a retrieval reference for its blob."""
    record, retrieval_url = await registry.get_document(document_id)
    return DocumentDetailResponse(
        document=DocumentResponse.from_record(record),
        retrieval_url=retrieval_url,
    )
