"""
Verification Result Data Classes.

This module defines the transient results produced for every scan:

Classes:
    ScanResult: Parser output, either recognized package fields or raw text
    AnalysisReport: Heuristic classification of scanned text
    VerificationOutcome: Combined result of one scan
    LinkVerification: Result of verifying a shareable link

Author: Forensic Engineering Team
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from forensic_qr.sealing.models import EvidencePackage


class VerificationStatus(str, Enum):
    """Integrity outcome of a scan."""
    TRUSTED = "TRUSTED"
    TAMPERED = "TAMPERED"
    # Text was not a sealed package; nothing was verified
    UNVERIFIED = "UNVERIFIED"
    # Input could not be decoded at all (malformed share link)
    ERROR = "ERROR"


class RiskLevel(str, Enum):
    """Advisory risk tier, ordered LOW < MEDIUM < HIGH."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"

    @property
    def rank(self) -> int:
        return _RISK_ORDER.index(self)

    def escalate(self, other: 'RiskLevel') -> 'RiskLevel':
        """Return the higher of two tiers."""
        return other if other.rank > self.rank else self


_RISK_ORDER = [RiskLevel.LOW, RiskLevel.MEDIUM, RiskLevel.HIGH]


class ScanSource(str, Enum):
    """Where scanned text came from."""
    LIVE_CAMERA_SCAN = "LIVE_CAMERA_SCAN"
    FORENSIC_IMAGE_INTAKE = "FORENSIC_IMAGE_INTAKE"
    MANUAL_ENTRY = "MANUAL_ENTRY"
    SHARE_LINK = "SHARE_LINK"


@dataclass
class ScanResult:
    """
    Parser output for one piece of scanned text.

    A recognized result carries the reconstructed package and the digest
    embedded in the report; an unrecognized one carries only the raw text.

    Attributes:
        raw_text: Text exactly as scanned
        recognized: Whether the text is a well-formed sealed report
        package: Reconstructed package fields (recognized only)
        digest: Digest embedded in the report (recognized only)
        legacy_timestamp: True when the raw ISO timestamp line was absent
            and the display timestamp was used instead
        field_labels: Package attribute -> label its value was read from;
            attributes whose label never appeared are absent
    """
    raw_text: str
    recognized: bool = False
    package: Optional[EvidencePackage] = None
    digest: str = ""
    legacy_timestamp: bool = False
    field_labels: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def unrecognized(cls, raw_text: str) -> 'ScanResult':
        """Raw passthrough result."""
        return cls(raw_text=raw_text)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary format."""
        if not self.recognized:
            return {'type': 'raw', 'data': self.raw_text}
        return {
            'type': 'package',
            'data': self.package.to_dict(),
            'digest': self.digest,
            'legacy_timestamp': self.legacy_timestamp
        }


@dataclass
class AnalysisReport:
    """
    Heuristic output over arbitrary scanned text.

    Re-derived on every scan and never persisted. The digest fingerprints
    the raw scanned text; it makes no integrity claim.

    Attributes:
        digest: SHA-256 hex digest of the raw text
        timestamp: ISO-8601 instant of the analysis
        classification: Content label
        risk_level: Advisory risk tier
        trust_status: TRUSTED / TAMPERED for packages, UNVERIFIED otherwise
        indicators: Ordered human-readable findings
        source: Where the text came from
    """
    digest: str
    timestamp: str
    classification: str
    risk_level: RiskLevel = RiskLevel.LOW
    trust_status: VerificationStatus = VerificationStatus.UNVERIFIED
    indicators: List[str] = field(default_factory=list)
    source: ScanSource = ScanSource.MANUAL_ENTRY

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary format."""
        return {
            'digest': self.digest,
            'timestamp': self.timestamp,
            'classification': self.classification,
            'risk_level': self.risk_level.value,
            'trust_status': self.trust_status.value,
            'indicators': list(self.indicators),
            'source': self.source.value
        }


@dataclass
class VerificationOutcome:
    """
    Combined result of verifying one scan.

    Attributes:
        status: Integrity outcome
        scan: Parser result
        analysis: Heuristic classification
        computed_digest: Digest recomputed from the reconstructed package
            (recognized scans only)
        layout_deviations: Report lines that differ from the sealed layout
    """
    status: VerificationStatus
    scan: ScanResult
    analysis: AnalysisReport
    computed_digest: str = ""
    layout_deviations: List[int] = field(default_factory=list)

    @property
    def is_trusted(self) -> bool:
        return self.status == VerificationStatus.TRUSTED

    @property
    def is_tampered(self) -> bool:
        return self.status == VerificationStatus.TAMPERED

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary format."""
        return {
            'status': self.status.value,
            'scan': self.scan.to_dict(),
            'analysis': self.analysis.to_dict(),
            'computed_digest': self.computed_digest,
            'layout_deviations': list(self.layout_deviations)
        }


@dataclass
class LinkVerification:
    """
    Result of verifying a shareable link.

    Attributes:
        status: TRUSTED, TAMPERED, or ERROR when the link could not be decoded
        package: Package carried by the link (None on ERROR)
        digest: Digest carried by the link
        computed_digest: Digest recomputed from the package
        error: Reason the link could not be decoded
        source: Where the checked text came from (SHARE_LINK)
    """
    status: VerificationStatus
    package: Optional[EvidencePackage] = None
    digest: str = ""
    computed_digest: str = ""
    error: Optional[str] = None
    source: ScanSource = ScanSource.SHARE_LINK

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary format."""
        return {
            'status': self.status.value,
            'package': self.package.to_dict() if self.package else None,
            'digest': self.digest,
            'computed_digest': self.computed_digest,
            'error': self.error,
            'source': self.source.value
        }
