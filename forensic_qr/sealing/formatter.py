"""
Package Formatter Module.

Renders the sealed report: the fixed-layout text that is encoded into the
barcode and later parsed back by PackageParser.

Layout:
    banner + family marker
    CASE ID / TIMESTAMP / RAW TIMESTAMP / STATUS
    OPERATOR NAME / BADGE ID / ROLE / EVIDENCE FROM
    [ EVIDENCE MANIFEST ] with "#n :: TITLE" sections
    [ CRYPTOGRAPHIC SIGNATURE ] with "SHA-256 HASH:" and the digest
    signature footer

The display timestamp is rendered in local time for people; the raw ISO
timestamp has its own line so parsing never depends on locale rendering.

Author: Forensic Engineering Team
"""

from typing import List, Optional

from config import get_config
from forensic_qr.utils.helpers import format_display_timestamp, parse_iso_timestamp
from forensic_qr.sealing import layout
from forensic_qr.sealing.canonicalizer import canonicalize
from forensic_qr.sealing.models import EvidencePackage


class PackageFormatter:
    """
    Builds sealed report text from a package and its digest.

    Formatting is pure text construction and never fails for a valid
    package. Values are written in their canonical form (trimmed, section
    titles upper-cased) so that parsing the report reconstructs exactly
    what was hashed.

    Attributes:
        display_format: strftime pattern for the informational timestamp
        brand: Name printed in the signature footer

    Example:
        >>> formatter = PackageFormatter()
        >>> text = formatter.format(package, digest)
        >>> "[ EVIDENCE MANIFEST ]" in text
        True
    """

    def __init__(
        self,
        display_format: Optional[str] = None,
        brand: Optional[str] = None
    ) -> None:
        self.display_format = display_format or get_config(
            "report.display_timestamp_format", "%m/%d/%Y, %I:%M:%S %p"
        )
        self.brand = brand or get_config("report.brand", "PHANIX")

    def format(self, package: EvidencePackage, digest: str) -> str:
        """
        Render the sealed report.

        Args:
            package: Package to render.
            digest: Hex digest of the package's canonical payload.

        Returns:
            Sealed report text, stripped of surrounding whitespace.
        """
        payload = canonicalize(package)

        lines: List[str] = [
            f"         {layout.BANNER}",
            f"     {layout.FAMILY_MARKER}",
            layout.HEAVY_RULE,
            f"{layout.LABEL_CASE_ID}   : {payload.uid}",
            f"{layout.LABEL_TIMESTAMP} : {self._display_timestamp(payload.ts)}",
            f"{layout.LABEL_RAW_TIMESTAMP} : {payload.ts}",
            f"{layout.LABEL_STATUS}    : {layout.STATUS_SEALED}",
            layout.LIGHT_RULE,
            f"{layout.LABEL_OPERATOR} : {payload.op}",
            f"{layout.LABEL_BADGE}      : {payload.bid}",
            f"{layout.LABEL_ROLE}          : {payload.role}",
            f"{layout.LABEL_SOURCE} : {payload.src}",
            layout.HEAVY_RULE,
            layout.MANIFEST_MARKER,
        ]

        blocks = [
            f"\n{layout.section_heading(i, title)}\n{content}"
            for i, (title, content) in enumerate(payload.sec, 1)
        ]
        if blocks:
            lines.append("\n\n".join(blocks))

        lines.extend([
            layout.HEAVY_RULE,
            layout.SIGNATURE_MARKER,
            layout.HASH_LABEL,
            digest,
            layout.LIGHT_RULE,
            f"DIGITALLY SIGNED BY {self.brand}",
            f"(C) {self._year(payload.ts)} {layout.FAMILY_MARKER}",
            "END OF RECORD",
        ])

        return "\n".join(lines).strip()

    def _display_timestamp(self, timestamp_iso: str) -> str:
        """Locale-style rendering of the generation instant."""
        return format_display_timestamp(timestamp_iso, self.display_format)

    @staticmethod
    def _year(timestamp_iso: str) -> str:
        parsed = parse_iso_timestamp(timestamp_iso)
        return str(parsed.year) if parsed else ""
