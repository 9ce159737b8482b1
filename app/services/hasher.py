"""
Content fingerprinting.

A fingerprint is the lowercase hex SHA-256 of a blob's exact bytes. It is
the content-addressable key linking the metadata store and the ledger, so
the algorithm is fixed for the lifetime of a deployment: changing it
orphans every stored fingerprint.
"""

import hashlib
import re
from typing import BinaryIO

from app.core.errors import InputInvalid

FINGERPRINT_ALGORITHM = "sha256"
FINGERPRINT_LENGTH = 64

_CHUNK_SIZE = 64 * 1024
_HEX_PATTERN = re.compile(r"^[0-9a-f]{64}$")


def fingerprint(content: bytes) -> str:
    """Fingerprint of `content`. Depends on the bytes only."""
    return hashlib.new(FINGERPRINT_ALGORITHM, content).hexdigest()


def fingerprint_stream(stream: BinaryIO) -> str:
    """Fingerprint a file-like object without loading it whole."""
    digest = hashlib.new(FINGERPRINT_ALGORITHM)
    for chunk in iter(lambda: stream.read(_CHUNK_SIZE), b""):
        digest.update(chunk)
    return digest.hexdigest()


def normalize_fingerprint(value: str) -> str:
    """
    Canonical form of a caller-supplied fingerprint.

    Accepts an optional "0x" prefix and any letter case.
    """
    candidate = (value or "").strip().lower()
    if candidate.startswith("0x"):
        candidate = candidate[2:]
    if not _HEX_PATTERN.match(candidate):
        raise InputInvalid(
            f"Fingerprint must be {FINGERPRINT_LENGTH} hex characters",
            details=[{"field": "fingerprint"}],
        )
    return candidate
