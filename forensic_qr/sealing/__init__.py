"""
Sealing Module for the Forensic QR Architect.

This module turns operator input into a sealed evidence package:
    - Canonicalization of structured evidence fields
    - SHA-256 digest over the canonical bytes
    - Fixed-layout sealed report text for barcode encoding
    - Validation and id/timestamp assignment at generation time
"""

from .models import (
    EvidenceSection,
    EvidencePackage,
    CanonicalPayload,
    Manifest,
    SealedPackage
)
from .canonicalizer import canonicalize, canonical_bytes
from .digest import digest, digest_text, package_digest
from .formatter import PackageFormatter
from .generator import PackageGenerator, EVIDENCE_LOCATIONS, compose_evidence_source

__all__ = [
    'EvidenceSection',
    'EvidencePackage',
    'CanonicalPayload',
    'Manifest',
    'SealedPackage',
    'canonicalize',
    'canonical_bytes',
    'digest',
    'digest_text',
    'package_digest',
    'PackageFormatter',
    'PackageGenerator',
    'EVIDENCE_LOCATIONS',
    'compose_evidence_source'
]
