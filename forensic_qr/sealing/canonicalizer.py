"""
Canonicalizer Module.

Turns structured evidence fields into the single deterministic form that
is hashed. The normalizations are exactly:

    - trim every scalar field
    - trim every section title and section content
    - upper-case section titles
    - keep section order and the internal whitespace of content

Nothing else is touched; empty strings are legal canonical values.

Author: Forensic Engineering Team
"""

from forensic_qr.sealing.models import CanonicalPayload, EvidencePackage


def canonicalize(package: EvidencePackage) -> CanonicalPayload:
    """
    Build the canonical projection of a package.

    Args:
        package: Package to normalize.

    Returns:
        CanonicalPayload suitable for digest computation.

    Example:
        >>> payload = canonicalize(package)
        >>> payload.sec
        (('EVIDENCE 1', 'bloodstain sample'),)
    """
    return CanonicalPayload(
        op=package.operator_name.strip(),
        bid=package.badge_id.strip(),
        role=package.role.strip(),
        src=package.evidence_source.strip(),
        uid=package.package_id.strip(),
        ts=package.timestamp_iso.strip(),
        sec=tuple(
            (section.title.strip().upper(), section.content.strip())
            for section in package.sections
        )
    )


def canonical_bytes(package: EvidencePackage) -> bytes:
    """Serialize a package's canonical projection as UTF-8 bytes."""
    return canonicalize(package).to_bytes()
