"""
Package Generator Module.

This module provides the PackageGenerator class that orchestrates the
whole sealing flow:

    validate inputs -> assign id + timestamp -> canonicalize -> digest
    -> format sealed report -> manifest

Usage:
    from forensic_qr.sealing import PackageGenerator

    generator = PackageGenerator()
    sealed = generator.generate(
        operator_name="J. Doe",
        badge_id="PHX-1",
        role="Investigator",
        evidence_source="Crime Scene A",
        sections=[EvidenceSection("Evidence 1", "bloodstain sample")]
    )
    print(sealed.report_text)

Author: Forensic Engineering Team
"""

import time
import uuid
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional, Union

from config import get_config
from forensic_qr.utils.logger import get_logger
from forensic_qr.utils.helpers import iso_utc_timestamp
from forensic_qr.utils.exceptions import ValidationError
from forensic_qr.sealing.canonicalizer import canonicalize
from forensic_qr.sealing.digest import digest
from forensic_qr.sealing.formatter import PackageFormatter
from forensic_qr.sealing.models import EvidencePackage, EvidenceSection, Manifest, SealedPackage
from forensic_qr.sealing.validators import PackageValidator

# Initialize module logger
logger = get_logger(__name__)

# Standard evidence-source vocabulary offered to operators
EVIDENCE_LOCATIONS = [
    "Crime Scene A",
    "Crime Scene B",
    "Suspect Residence",
    "Victim Residence",
    "Suspect Vehicle",
    "Victim Vehicle",
    "Hospital / Medical Examiner",
    "Forensic Lab / Intake",
    "Digital Cloud Storage",
    "Mobile Device Extraction",
    "CCTV / Surveillance Feed",
    "Workplace / Office",
    "Financial Institution",
    "Police Station",
    "Other"
]

DEFAULT_STAGES = [
    "Initializing secure environment…",
    "Scanning forensic inputs…",
    "Calculating SHA-256 integrity hash…",
    "Sealing evidence package…",
]

ProgressCallback = Callable[[str, int], None]
SectionInput = Union[EvidenceSection, dict]


def compose_evidence_source(evidence_source: str, location_details: str = "") -> str:
    """
    Append optional location details to an evidence source.

    Args:
        evidence_source: Base source, e.g. "Crime Scene A".
        location_details: Free-text detail, e.g. "Kitchen, north wall".

    Returns:
        "Crime Scene A [ Kitchen, north wall ]", or the bare source when no
        details were given.
    """
    details = (location_details or "").strip()
    if not details:
        return evidence_source
    return f"{evidence_source} [ {details} ]"


class PackageGenerator:
    """
    Seals operator input into a verifiable evidence package.

    Validation runs first; when it fails nothing is produced. The staged
    progression reported through the progress callback is cosmetic and
    has no effect on the output.

    Attributes:
        formatter: PackageFormatter used for the report text
        validator: PackageValidator for operator input
        stages: Progress messages shown while sealing
        stage_delay: Pause between stages, in seconds

    Example:
        >>> generator = PackageGenerator(clock=lambda: fixed_time)
        >>> sealed = generator.generate("J. Doe", "PHX-1", "Investigator",
        ...                             "Crime Scene A", sections)
        >>> len(sealed.digest)
        64
    """

    def __init__(
        self,
        formatter: Optional[PackageFormatter] = None,
        clock: Optional[Callable[[], datetime]] = None,
        id_factory: Optional[Callable[[], str]] = None
    ) -> None:
        """
        Initialize the generator.

        Args:
            formatter: Report formatter. Defaults to a configured one.
            clock: Returns the generation instant. Defaults to UTC now.
            id_factory: Returns a fresh package id. Defaults to UUID4.
        """
        self.formatter = formatter or PackageFormatter()
        self.validator = PackageValidator()
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.id_factory = id_factory or (lambda: str(uuid.uuid4()))
        self.stages = get_config("generation.stages", DEFAULT_STAGES)
        self.stage_delay = float(get_config("generation.stage_delay_seconds", 0.0))

        logger.debug(f"PackageGenerator initialized ({len(self.stages)} stages)")

    def validate(
        self,
        operator_name: str,
        badge_id: str,
        role: str,
        evidence_source: str,
        sections: Iterable[SectionInput] = (),
        location_details: str = ""
    ) -> None:
        """
        Check operator input before sealing.

        Required fields are checked as entered; the line-break check runs
        on the evidence source with its location details appended, since
        that is the line written to the report.

        Raises:
            ValidationError: If a required field is blank, a field or
                section title contains a line break, or section content
                holds a line shaped like a section heading.
        """
        self._check_required({
            'operator_name': operator_name,
            'badge_id': badge_id,
            'role': role,
            'evidence_source': evidence_source
        })
        self._check_layout(
            {
                'operator_name': operator_name,
                'badge_id': badge_id,
                'role': role,
                'evidence_source': compose_evidence_source(evidence_source, location_details)
            },
            self._coerce_sections(sections)
        )

    def _check_required(self, fields: Dict[str, str]) -> None:
        complete, missing = self.validator.check_required_fields(fields)
        if not complete:
            labels = ", ".join(self.validator.describe(missing))
            raise ValidationError(
                missing,
                f"Please fill in all required fields ({labels})."
            )

    def _check_layout(self, fields: Dict[str, str], sections: List[EvidenceSection]) -> None:
        single_line, offending = self.validator.check_single_line(fields)
        if not single_line:
            labels = ", ".join(self.validator.describe(offending))
            raise ValidationError(
                offending,
                f"Fields must fit on a single line ({labels})."
            )

        titles_ok, offending = self.validator.check_section_titles(sections)
        if not titles_ok:
            raise ValidationError(
                offending,
                f"Section titles must fit on a single line ({', '.join(offending)})."
            )

        content_ok, offending = self.validator.check_section_content(sections)
        if not content_ok:
            raise ValidationError(
                offending,
                "Section content cannot contain lines shaped like a section heading "
                f"('#n :: TITLE') ({', '.join(offending)})."
            )

    def generate(
        self,
        operator_name: str,
        badge_id: str,
        role: str,
        evidence_source: str,
        sections: Iterable[SectionInput] = (),
        location_details: str = "",
        progress_callback: Optional[ProgressCallback] = None
    ) -> SealedPackage:
        """
        Validate input and seal a new evidence package.

        Args:
            operator_name: Operator full name.
            badge_id: Operator badge identifier.
            role: Operator role.
            evidence_source: Evidence source, e.g. one of EVIDENCE_LOCATIONS.
            sections: Ordered EvidenceSection objects or {title, content} dicts.
            location_details: Optional detail appended to the source.
            progress_callback: Receives (stage message, percent complete).

        Returns:
            SealedPackage with report text, digest and manifest.

        Raises:
            ValidationError: If input is missing or cannot be laid out.
        """
        sections = self._coerce_sections(sections)
        self.validate(operator_name, badge_id, role, evidence_source, sections, location_details)

        self._run_stages(progress_callback)

        package = EvidencePackage(
            operator_name=operator_name,
            badge_id=badge_id,
            role=role,
            evidence_source=compose_evidence_source(evidence_source, location_details),
            package_id=self.id_factory(),
            timestamp_iso=iso_utc_timestamp(self.clock()),
            sections=sections
        )

        return self.seal(package)

    def seal(self, package: EvidencePackage) -> SealedPackage:
        """
        Validate, digest and format an already assembled package.

        Args:
            package: Package with id and timestamp assigned.

        Returns:
            SealedPackage carrying the normalized package.

        Raises:
            ValidationError: If the package is incomplete or cannot be
                laid out.
        """
        fields = {
            'operator_name': package.operator_name,
            'badge_id': package.badge_id,
            'role': package.role,
            'evidence_source': package.evidence_source,
            'package_id': package.package_id,
            'timestamp_iso': package.timestamp_iso
        }
        self._check_required(fields)
        missing = [name for name in ('package_id', 'timestamp_iso') if not (fields[name] or "").strip()]
        if missing:
            raise ValidationError(
                missing,
                f"Package is missing {', '.join(self.validator.describe(missing))}."
            )
        self._check_layout(fields, list(package.sections))

        payload = canonicalize(package)
        package_hash = digest(payload.to_bytes())
        report_text = self.formatter.format(package, package_hash)

        manifest = Manifest(
            digest=package_hash,
            package_id=payload.uid,
            timestamp_iso=payload.ts
        )

        logger.info(
            f"Sealed package {payload.uid} "
            f"({len(payload.sec)} section(s), hash {package_hash[:12]}…)"
        )

        return SealedPackage(
            package=payload.to_package(),
            digest=package_hash,
            report_text=report_text,
            manifest=manifest
        )

    def _run_stages(self, progress_callback: Optional[ProgressCallback]) -> None:
        """Report the cosmetic sealing progression."""
        total = len(self.stages)
        for i, message in enumerate(self.stages, 1):
            percent = int(i * 100 / total)
            logger.debug(f"[{percent:3d}%] {message}")
            if progress_callback is not None:
                progress_callback(message, percent)
            if self.stage_delay > 0:
                time.sleep(self.stage_delay)

    @staticmethod
    def _coerce_sections(sections: Iterable[SectionInput]) -> List[EvidenceSection]:
        result = []
        for section in sections:
            if isinstance(section, EvidenceSection):
                result.append(EvidenceSection(section.title, section.content))
            else:
                result.append(EvidenceSection.from_dict(section))
        return result
