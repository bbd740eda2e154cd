"""
Evidence Data Classes.

This module defines the data structures that flow through package
generation and verification.

Classes:
    EvidenceSection: One titled block of free-text evidence
    EvidencePackage: Operator, source and ordered sections before sealing
    CanonicalPayload: Normalized projection of a package used as digest input
    Manifest: Minimal verification record kept after sealing
    SealedPackage: Everything produced by one generation run

Author: Forensic Engineering Team
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple


@dataclass
class EvidenceSection:
    """
    A single titled block of evidence text.

    Ordering inside a package is significant and preserved.

    Attributes:
        title: Free-text heading, upper-cased when sealed
        content: Free-text body, internal newlines preserved
    """
    title: str = ""
    content: str = ""

    def to_dict(self) -> Dict[str, str]:
        """Convert to dictionary format."""
        return {'title': self.title, 'content': self.content}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EvidenceSection':
        """Create a section from a {title, content} mapping."""
        return cls(
            title=str(data.get('title', '')),
            content=str(data.get('content', ''))
        )


@dataclass
class EvidencePackage:
    """
    Structured evidence record prior to digest computation.

    Attributes:
        operator_name: Name of the operator sealing the evidence
        badge_id: Operator badge identifier
        role: Operator role
        evidence_source: Where the evidence came from, optionally with a
            location-detail suffix
        package_id: Random unique identifier (UUID4)
        timestamp_iso: ISO-8601 instant of generation
        sections: Ordered evidence sections

    Example:
        >>> package = EvidencePackage(
        ...     operator_name="J. Doe",
        ...     badge_id="PHX-1",
        ...     role="Investigator",
        ...     evidence_source="Crime Scene A",
        ...     sections=[EvidenceSection("evidence 1", "bloodstain sample")]
        ... )
    """
    operator_name: str = ""
    badge_id: str = ""
    role: str = ""
    evidence_source: str = ""
    package_id: str = ""
    timestamp_iso: str = ""
    sections: List[EvidenceSection] = field(default_factory=list)

    @property
    def identity_fields(self) -> Dict[str, str]:
        """Required operator and source fields keyed by attribute name."""
        return {
            'operator_name': self.operator_name,
            'badge_id': self.badge_id,
            'role': self.role,
            'evidence_source': self.evidence_source
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary format."""
        return {
            'operator_name': self.operator_name,
            'badge_id': self.badge_id,
            'role': self.role,
            'evidence_source': self.evidence_source,
            'package_id': self.package_id,
            'timestamp_iso': self.timestamp_iso,
            'sections': [s.to_dict() for s in self.sections]
        }

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> 'EvidencePackage':
        """
        Rebuild a package from the compact payload mapping.

        Args:
            data: Mapping with keys op, bid, role, src, uid, ts, sec.

        Returns:
            EvidencePackage instance.

        Raises:
            TypeError: If the mapping or its section list has the wrong shape.
        """
        if not isinstance(data, dict):
            raise TypeError("payload must be an object")
        sections = data.get('sec', [])
        if not isinstance(sections, list) or not all(isinstance(s, dict) for s in sections):
            raise TypeError("payload sections must be a list of objects")

        return cls(
            operator_name=str(data.get('op', '')),
            badge_id=str(data.get('bid', '')),
            role=str(data.get('role', '')),
            evidence_source=str(data.get('src', '')),
            package_id=str(data.get('uid', '')),
            timestamp_iso=str(data.get('ts', '')),
            sections=[EvidenceSection.from_dict(s) for s in sections]
        )


@dataclass(frozen=True)
class CanonicalPayload:
    """
    Normalized, order-preserving projection of an EvidencePackage.

    Used only as digest input. Two packages equal up to surrounding
    whitespace and section-title casing share one CanonicalPayload.

    Attributes:
        op, bid, role, src, uid, ts: Trimmed scalar fields
        sec: Tuple of (TITLE, content) pairs
    """
    op: str
    bid: str
    role: str
    src: str
    uid: str
    ts: str
    sec: Tuple[Tuple[str, str], ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to the payload mapping in its fixed key order.

        Returns:
            Dictionary with keys op, bid, role, src, uid, ts, sec.
        """
        return {
            'op': self.op,
            'bid': self.bid,
            'role': self.role,
            'src': self.src,
            'uid': self.uid,
            'ts': self.ts,
            'sec': [{'title': title, 'content': content} for title, content in self.sec]
        }

    def to_json(self) -> str:
        """Serialize compactly, keys in fixed order, non-ASCII kept literal."""
        return json.dumps(self.to_dict(), separators=(',', ':'), ensure_ascii=False)

    def to_bytes(self) -> bytes:
        """UTF-8 bytes of the canonical serialization."""
        return self.to_json().encode('utf-8')

    def to_package(self) -> EvidencePackage:
        """Materialize as an EvidencePackage carrying the normalized values."""
        return EvidencePackage(
            operator_name=self.op,
            badge_id=self.bid,
            role=self.role,
            evidence_source=self.src,
            package_id=self.uid,
            timestamp_iso=self.ts,
            sections=[EvidenceSection(title, content) for title, content in self.sec]
        )


@dataclass(frozen=True)
class Manifest:
    """
    Minimal verification record kept alongside a sealed report.

    Attributes:
        digest: SHA-256 hex digest of the canonical payload
        package_id: Package identifier
        timestamp_iso: Generation instant
    """
    digest: str
    package_id: str
    timestamp_iso: str

    def to_dict(self) -> Dict[str, str]:
        """Convert to dictionary format."""
        return {
            'digest': self.digest,
            'package_id': self.package_id,
            'timestamp_iso': self.timestamp_iso
        }


@dataclass(frozen=True)
class SealedPackage:
    """
    Result of one generation run.

    Attributes:
        package: Package as generated (normalized values)
        digest: SHA-256 hex digest
        report_text: Sealed report, the exact barcode payload
        manifest: Minimal verification record
    """
    package: EvidencePackage
    digest: str
    report_text: str
    manifest: Manifest

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary format."""
        return {
            'package': self.package.to_dict(),
            'digest': self.digest,
            'report_text': self.report_text,
            'manifest': self.manifest.to_dict()
        }
