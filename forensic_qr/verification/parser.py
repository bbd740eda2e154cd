"""
Package Parser Module.

The inverse of PackageFormatter: given arbitrary scanned text, decide
whether it is a sealed report and, if so, rebuild the structured package
and the embedded digest.

Recognition requires all of:
    - the format-family marker
    - a "[ EVIDENCE MANIFEST ]" line
    - a "[ CRYPTOGRAPHIC SIGNATURE ]" line after it
    - a "SHA-256 HASH:" line after the signature marker

Anything short of that is passed through as raw text; partial extraction
is never attempted. A marker match alone is not proof of a well-formed
package either: a report without a case id or digest also degrades to
raw text.

Usage:
    from forensic_qr.verification import PackageParser

    result = PackageParser().parse(scanned_text)
    if result.recognized:
        print(result.package.operator_name, result.digest)

Author: Forensic Engineering Team
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from forensic_qr.utils.logger import get_logger
from forensic_qr.sealing import layout
from forensic_qr.sealing.models import EvidencePackage, EvidenceSection
from .results import ScanResult

# Initialize module logger
logger = get_logger(__name__)


@dataclass(frozen=True)
class FieldRule:
    """
    Extraction rule for one scalar field.

    Attributes:
        attribute: EvidencePackage attribute to fill
        labels: Candidate labels in priority order; the first is the
            current format, later ones are accepted from older revisions
    """
    attribute: str
    labels: Tuple[str, ...]

    @property
    def primary_label(self) -> str:
        return self.labels[0]


FIELD_RULES: Tuple[FieldRule, ...] = (
    FieldRule('package_id', (layout.LABEL_CASE_ID, "PACKAGE ID")),
    # Reports sealed before the raw timestamp line existed only carry the
    # display timestamp
    FieldRule('timestamp_iso', (layout.LABEL_RAW_TIMESTAMP, layout.LABEL_TIMESTAMP)),
    FieldRule('operator_name', (layout.LABEL_OPERATOR, "OPERATOR")),
    FieldRule('badge_id', (layout.LABEL_BADGE, "BADGE")),
    FieldRule('role', (layout.LABEL_ROLE,)),
    FieldRule('evidence_source', (layout.LABEL_SOURCE, "EVIDENCE SOURCE")),
)


class PackageParser:
    """
    Reconstructs evidence packages from sealed report text.

    The parser never raises for any input string; malformed input yields
    an unrecognized ScanResult.

    Attributes:
        field_rules: Ordered scalar extraction rules

    Example:
        >>> parser = PackageParser()
        >>> parser.parse("hello world").recognized
        False
    """

    def __init__(self, field_rules: Tuple[FieldRule, ...] = FIELD_RULES) -> None:
        self.field_rules = field_rules

    def is_candidate(self, raw_text: str) -> bool:
        """Quick check for the format-family marker."""
        return bool(raw_text) and layout.FAMILY_MARKER in raw_text

    def parse(self, raw_text: str) -> ScanResult:
        """
        Parse scanned text into a ScanResult.

        Args:
            raw_text: Text exactly as decoded or pasted.

        Returns:
            Recognized ScanResult with package and digest, or an
            unrecognized passthrough.
        """
        if not self.is_candidate(raw_text):
            return ScanResult.unrecognized(raw_text or "")

        lines = raw_text.split("\n")
        stripped = [line.strip() for line in lines]

        manifest_idx = self._first_index(stripped, layout.MANIFEST_MARKER)
        signature_idx = self._last_index(stripped, layout.SIGNATURE_MARKER)
        if manifest_idx is None or signature_idx is None or manifest_idx > signature_idx:
            logger.debug("Family marker present but manifest/signature markers missing")
            return ScanResult.unrecognized(raw_text)

        hash_idx = self._first_index(stripped, layout.HASH_LABEL, start=signature_idx + 1)
        if hash_idx is None:
            logger.debug("Signature section has no hash label")
            return ScanResult.unrecognized(raw_text)

        values, field_labels, legacy_timestamp = self._extract_fields(lines[:manifest_idx])
        embedded_digest = self._extract_digest(stripped, hash_idx)

        if not values['package_id'] or not embedded_digest:
            logger.debug("Sealed report lacks case id or digest; treating as raw text")
            return ScanResult.unrecognized(raw_text)

        sections = self._extract_sections(lines[manifest_idx + 1:signature_idx])

        package = EvidencePackage(sections=sections, **values)

        logger.debug(
            f"Parsed package {package.package_id} with {len(sections)} section(s)"
            + (" (legacy timestamp)" if legacy_timestamp else "")
        )

        return ScanResult(
            raw_text=raw_text,
            recognized=True,
            package=package,
            digest=embedded_digest,
            legacy_timestamp=legacy_timestamp,
            field_labels=field_labels
        )

    def _extract_fields(
        self,
        header_lines: List[str]
    ) -> Tuple[Dict[str, str], Dict[str, str], bool]:
        """
        Apply the field rule table to the header region.

        A label that never appears yields an explicit empty value.

        Returns:
            Tuple of (attribute -> value, attribute -> label it was read
            from, whether the timestamp came from a fallback label).
        """
        labelled: Dict[str, str] = {}
        for line in header_lines:
            if ':' not in line:
                continue
            label, value = line.split(':', 1)
            labelled.setdefault(label.strip(), value.strip())

        values: Dict[str, str] = {}
        used_labels: Dict[str, str] = {}
        legacy_timestamp = False

        for rule in self.field_rules:
            values[rule.attribute] = ""
            for label in rule.labels:
                if label in labelled:
                    values[rule.attribute] = labelled[label]
                    used_labels[rule.attribute] = label
                    if rule.attribute == 'timestamp_iso' and label != rule.primary_label:
                        legacy_timestamp = True
                    break

        return values, used_labels, legacy_timestamp

    @staticmethod
    def _extract_digest(stripped: List[str], hash_idx: int) -> str:
        """The line right after the hash label, or "" if there is none."""
        if hash_idx + 1 < len(stripped):
            return stripped[hash_idx + 1]
        return ""

    @staticmethod
    def _extract_sections(window: List[str]) -> List[EvidenceSection]:
        """
        Walk the manifest window and rebuild the ordered sections.

        Blank lines before a section's first content line are dropped;
        blank lines once content has started are kept. Each section's
        content is trimmed when flushed.
        """
        if window and window[-1].strip() == layout.HEAVY_RULE:
            window = window[:-1]

        sections: List[EvidenceSection] = []
        title: Optional[str] = None
        content: List[str] = []

        for line in window:
            match = layout.SECTION_HEADING.match(line.strip())
            if match:
                if title is not None:
                    sections.append(EvidenceSection(title, "\n".join(content).strip()))
                title = match.group(2).strip()
                content = []
                continue

            if title is None:
                continue
            if not content and line.strip() == "":
                continue
            content.append(line)

        if title is not None:
            sections.append(EvidenceSection(title, "\n".join(content).strip()))

        return sections

    @staticmethod
    def _first_index(lines: List[str], target: str, start: int = 0) -> Optional[int]:
        for i in range(start, len(lines)):
            if lines[i] == target:
                return i
        return None

    @staticmethod
    def _last_index(lines: List[str], target: str) -> Optional[int]:
        for i in range(len(lines) - 1, -1, -1):
            if lines[i] == target:
                return i
        return None
