"""
Generation Input Validators.

This module checks operator input before a package is sealed:
    - Required identity fields present after trimming
    - Single-line fields and section titles free of line breaks
    - Section content free of lines that read back as section headings

Author: Forensic Engineering Team
"""

from typing import Dict, Iterable, List, Tuple

from config import get_config
from forensic_qr.utils.logger import get_logger
from forensic_qr.sealing import layout
from forensic_qr.sealing.models import EvidenceSection

# Initialize module logger
logger = get_logger(__name__)

# Identity fields an operator must supply
IDENTITY_FIELDS = ['operator_name', 'badge_id', 'role', 'evidence_source']

# Human-readable names used in validation messages
FIELD_LABELS = {
    'operator_name': 'Name',
    'badge_id': 'Badge ID',
    'role': 'Role',
    'evidence_source': 'Evidence Source',
    'package_id': 'Case ID',
    'timestamp_iso': 'Timestamp',
}


class PackageValidator:
    """
    Validates identity fields for package generation.

    Scalar fields are written one per line in the sealed report, so a
    line break inside one would corrupt the layout and is rejected along
    with blank required fields.

    Example:
        >>> validator = PackageValidator()
        >>> validator.check_required_fields({"operator_name": " ", "badge_id": "PHX-1"})
        (False, ['operator_name'])
    """

    def __init__(self) -> None:
        self.required_fields = get_config(
            "generation.required_fields",
            list(IDENTITY_FIELDS)
        )
        logger.debug(f"PackageValidator initialized (required: {self.required_fields})")

    def check_required_fields(self, fields: Dict[str, str]) -> Tuple[bool, List[str]]:
        """
        Check that every required field is non-blank.

        Args:
            fields: Mapping of field names to raw values.

        Returns:
            Tuple of (all_present, list of missing field names).
        """
        missing = []

        for required in self.required_fields:
            value = fields.get(required)
            if value is None or str(value).strip() == "":
                missing.append(required)

        return len(missing) == 0, missing

    def check_single_line(self, fields: Dict[str, str]) -> Tuple[bool, List[str]]:
        """
        Check that scalar fields contain no line breaks once trimmed.

        Args:
            fields: Mapping of field names to raw values.

        Returns:
            Tuple of (all_single_line, list of offending field names).
        """
        offending = [
            name for name, value in fields.items()
            if value and any(c in value.strip() for c in '\r\n')
        ]
        return len(offending) == 0, offending

    @staticmethod
    def describe(field_names: List[str]) -> List[str]:
        """Map attribute names to the labels operators see."""
        return [FIELD_LABELS.get(name, name) for name in field_names]

    @staticmethod
    def check_section_titles(sections: Iterable[EvidenceSection]) -> Tuple[bool, List[str]]:
        """
        Check that section titles fit on their heading line.

        Returns:
            Tuple of (all_single_line, names of offending sections).
        """
        offending = [
            f"Section {i} title"
            for i, section in enumerate(sections, 1)
            if any(c in (section.title or "").strip() for c in '\r\n')
        ]
        return len(offending) == 0, offending

    @staticmethod
    def check_section_content(sections: Iterable[EvidenceSection]) -> Tuple[bool, List[str]]:
        """
        Check that no content line would read back as a section heading.

        A line shaped like "#n :: TITLE" inside content would split the
        section in two when the report is parsed.

        Returns:
            Tuple of (content_is_safe, names of offending sections).
        """
        offending = []
        for i, section in enumerate(sections, 1):
            lines = (section.content or "").strip().split("\n")
            if any(layout.SECTION_HEADING.match(line.strip()) for line in lines):
                offending.append(f"Section {i} content")
        return len(offending) == 0, offending
