"""
Digest Engine.

SHA-256 over canonical bytes, rendered as 64 lowercase hex characters.
"""

import hashlib

from forensic_qr.sealing.canonicalizer import canonical_bytes
from forensic_qr.sealing.models import EvidencePackage

DIGEST_HEX_LENGTH = 64


def digest(data: bytes) -> str:
    """
    Compute the SHA-256 hex digest of raw bytes.

    Args:
        data: Bytes to hash.

    Returns:
        64-character lowercase hex string.
    """
    return hashlib.sha256(data).hexdigest()


def digest_text(text: str) -> str:
    """SHA-256 hex digest of a string's UTF-8 encoding."""
    return digest(text.encode('utf-8'))


def package_digest(package: EvidencePackage) -> str:
    """Digest of a package's canonical serialization."""
    return digest(canonical_bytes(package))


def is_hex_digest(value: str) -> bool:
    """Check that a value looks like a SHA-256 hex digest."""
    if len(value) != DIGEST_HEX_LENGTH:
        return False
    return all(c in '0123456789abcdef' for c in value)
