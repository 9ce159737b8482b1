"""
Input Validation and Sanitization Utilities for DocLedger.

Checks run before any backend is contacted; every rejection is an
InputInvalid error.
"""

import re
import uuid
from typing import Optional

from app.core.errors import InputInvalid

_OWNER_ID_PATTERN = re.compile(r"^[A-Za-z0-9_.:@\-]{1,128}$")


# =============================================================================
# String Sanitizers
# =============================================================================

def strip_control_chars(value: str) -> str:
    """
    Remove control characters (except newlines/tabs).
    Prevents null byte injection and similar attacks.
    """
    if not value:
        return value
    return ''.join(c for c in value if ord(c) >= 32 or c in '\t\n\r')


def normalize_whitespace(value: str) -> str:
    """Collapse runs of whitespace, strip leading/trailing."""
    if not value:
        return value
    return ' '.join(value.split())


def sanitize_filename(value: Optional[str]) -> str:
    """Sanitize an uploaded file name; path components are dropped."""
    if not value:
        return "document"
    value = value.replace('\\', '/').rsplit('/', 1)[-1].replace('\x00', '')
    value = re.sub(r'[<>:"|?*]', '', strip_control_chars(value)).strip()
    return value[:255] or "document"


def clean_text(value: Optional[str], max_length: int = 255) -> Optional[str]:
    """Free-form descriptive text: control chars stripped, whitespace normalized."""
    if value is None:
        return None
    value = normalize_whitespace(strip_control_chars(value))
    return value[:max_length] or None


# =============================================================================
# Request Validators
# =============================================================================

def validate_owner_id(owner_id: Optional[str]) -> str:
    """Owner ids are opaque principal identifiers supplied by the caller."""
    if not owner_id or not _OWNER_ID_PATTERN.match(owner_id):
        raise InputInvalid(
            "Owner id must be 1-128 characters of letters, digits or _.:@-",
            details=[{"field": "owner_id"}],
        )
    return owner_id


def validate_document_id(document_id: Optional[str]) -> str:
    """Record ids are UUIDs issued by the metadata store."""
    try:
        return str(uuid.UUID(str(document_id)))
    except (TypeError, ValueError):
        raise InputInvalid(
            f"Malformed document id: {document_id!r}",
            details=[{"field": "document_id"}],
        ) from None


def validate_blob(content: bytes, max_size_bytes: Optional[int] = None) -> bytes:
    """Reject empty and oversized uploads."""
    if not content:
        raise InputInvalid("Document content is empty", details=[{"field": "file"}])
    if max_size_bytes is not None and len(content) > max_size_bytes:
        raise InputInvalid(
            f"Document exceeds the maximum size of {max_size_bytes} bytes",
            details=[{"field": "file", "size": len(content), "max_size": max_size_bytes}],
        )
    return content


def validate_content_type(content_type: Optional[str], accepted: list[str]) -> str:
    """Normalize a declared MIME type and check it against the accepted set."""
    normalized = (content_type or "").split(";", 1)[0].strip().lower()
    if normalized not in accepted:
        raise InputInvalid(
            f"Unsupported content type {content_type!r}. Accepted: {', '.join(accepted)}",
            details=[{"field": "content_type"}],
        )
    return normalized
