"""
Verification Engine Module.

Orchestrates PackageParser, the digest engine, LayoutCheck and
ContentClassifier for one scan:

    scanned text -> parse -> (recognized) recompute digest -> compare
                          -> layout check -> classify -> VerificationOutcome

A structurally valid package whose digest disagrees, or whose report text
was edited around the hashed fields, is reported as TAMPERED, never
downgraded to unrecognized text.

Usage:
    from forensic_qr.verification import VerificationEngine

    outcome = VerificationEngine().process_scan(text, ScanSource.MANUAL_ENTRY)
    if outcome is not None:
        print(outcome.status.value, outcome.analysis.classification)

Author: Forensic Engineering Team
"""

import hmac
from typing import List, Optional, Tuple

from forensic_qr.utils.logger import get_logger
from forensic_qr.sealing.digest import is_hex_digest, package_digest
from .classifier import ContentClassifier
from .layout_check import LayoutCheck
from .parser import PackageParser
from .results import ScanResult, ScanSource, VerificationOutcome, VerificationStatus

# Initialize module logger
logger = get_logger(__name__)

# Deviating line numbers quoted in an indicator
MAX_REPORTED_LINES = 5


class VerificationEngine:
    """
    Determines integrity status and classification for scanned text.

    Attributes:
        parser: PackageParser instance
        classifier: ContentClassifier instance
        layout_check: LayoutCheck instance

    Example:
        >>> engine = VerificationEngine()
        >>> outcome = engine.process_scan(sealed.report_text)
        >>> outcome.status
        <VerificationStatus.TRUSTED: 'TRUSTED'>
    """

    def __init__(
        self,
        parser: Optional[PackageParser] = None,
        classifier: Optional[ContentClassifier] = None,
        layout_check: Optional[LayoutCheck] = None
    ) -> None:
        self.parser = parser or PackageParser()
        self.classifier = classifier or ContentClassifier()
        self.layout_check = layout_check or LayoutCheck(field_rules=self.parser.field_rules)

    def verify(self, scan: ScanResult) -> VerificationStatus:
        """
        Check a recognized scan's digest and report layout.

        Args:
            scan: Parser result.

        Returns:
            TRUSTED or TAMPERED for recognized scans, UNVERIFIED otherwise.
        """
        status, _, _ = self._integrity(scan)
        return status

    def _integrity(self, scan: ScanResult) -> Tuple[VerificationStatus, str, List[int]]:
        """Return (status, computed digest, deviating layout lines)."""
        if not scan.recognized:
            return VerificationStatus.UNVERIFIED, "", []

        computed = package_digest(scan.package)
        if not self._matches(computed, scan.digest):
            return VerificationStatus.TAMPERED, computed, []

        deviations = self.layout_check.deviations(scan)
        if deviations:
            return VerificationStatus.TAMPERED, computed, deviations
        return VerificationStatus.TRUSTED, computed, []

    @staticmethod
    def _matches(computed: str, embedded: str) -> bool:
        return hmac.compare_digest(computed.encode('utf-8'), embedded.encode('utf-8'))

    def process_scan(
        self,
        raw_text: Optional[str],
        source: ScanSource = ScanSource.MANUAL_ENTRY
    ) -> Optional[VerificationOutcome]:
        """
        Parse, verify and classify one piece of scanned text.

        Empty or whitespace-only text is a no-op.

        Args:
            raw_text: Text exactly as decoded or pasted.
            source: Where the text came from.

        Returns:
            VerificationOutcome, or None when there was nothing to scan.
        """
        if raw_text is None or not raw_text.strip():
            logger.debug("Empty scan input ignored")
            return None

        scan = self.parser.parse(raw_text)
        status, computed, deviations = self._integrity(scan)

        analysis = self.classifier.analyze(
            raw_text,
            source=source,
            trust_status=status,
            extra_indicators=self._verification_indicators(scan, status, deviations)
        )

        if status == VerificationStatus.TAMPERED:
            if deviations:
                logger.warning(
                    f"Package {scan.package.package_id} FAILED layout check "
                    f"(line(s) {deviations[:MAX_REPORTED_LINES]})"
                )
            else:
                logger.warning(
                    f"Package {scan.package.package_id} FAILED integrity check "
                    f"(embedded {scan.digest[:12]}…, computed {computed[:12]}…)"
                )
        elif status == VerificationStatus.TRUSTED:
            logger.info(f"Package {scan.package.package_id} verified")
        else:
            logger.info(
                f"Unrecognized scan classified as '{analysis.classification}' "
                f"(risk {analysis.risk_level.value})"
            )

        return VerificationOutcome(
            status=status,
            scan=scan,
            analysis=analysis,
            computed_digest=computed,
            layout_deviations=deviations
        )

    @staticmethod
    def _verification_indicators(
        scan: ScanResult,
        status: VerificationStatus,
        deviations: List[int]
    ) -> List[str]:
        indicators: List[str] = []
        if not scan.recognized:
            return indicators

        if status == VerificationStatus.TRUSTED:
            indicators.append("SHA-256 signature matches sealed manifest")
        elif deviations:
            lines = ", ".join(str(n) for n in deviations[:MAX_REPORTED_LINES])
            indicators.append(
                f"Sealed report text altered outside the hashed fields (line {lines})"
            )
        else:
            indicators.append("SHA-256 signature mismatch: package contents altered after sealing")
            if not is_hex_digest(scan.digest):
                indicators.append("Embedded signature is not a well-formed SHA-256 digest")

        if scan.legacy_timestamp:
            indicators.append(
                "Legacy package format: raw timestamp line absent, display timestamp used"
            )
        return indicators
