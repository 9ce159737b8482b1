# Registration and verification engine

from app.services.document_registry import (
    DocumentRegistry,
    get_document_registry,
)
from app.services.hasher import fingerprint, normalize_fingerprint
from app.services.metadata_store import (
    DescriptiveMetadata,
    DocumentDraft,
    DocumentRecord,
    MetadataStore,
)
from app.services.registration import RegistrationCoordinator
from app.services.verification import (
    OutcomeKind,
    VerificationOutcome,
    VerificationResolver,
)

__all__ = [
    # Hashing
    "fingerprint",
    "normalize_fingerprint",
    # Records
    "DescriptiveMetadata",
    "DocumentDraft",
    "DocumentRecord",
    "MetadataStore",
    # Engine
    "RegistrationCoordinator",
    "VerificationResolver",
    "VerificationOutcome",
    "OutcomeKind",
    # Registry
    "DocumentRegistry",
    "get_document_registry",
]
