"""
Tests for the package parser.

Tests:
- Round-trip fidelity of formatted reports
- Legacy label and timestamp fallbacks
- Degradation to unrecognized text
- Robustness against markers and labels inside section content
"""

import pytest

from forensic_qr.sealing import EvidenceSection, package_digest
from forensic_qr.verification import PackageParser, FIELD_RULES
from tests.conftest import FIXED_ID, FIXED_ISO


def replace_line(text, prefix, new_line):
    lines = text.split("\n")
    for i, line in enumerate(lines):
        if line.startswith(prefix):
            if new_line is None:
                del lines[i]
            else:
                lines[i] = new_line
            return "\n".join(lines)
    raise AssertionError(f"no line starting with {prefix!r}")


class TestRoundTrip:
    """Formatting then parsing reconstructs the package."""

    def test_scalar_fields(self, sealed):
        """Identity fields, id and timestamp come back unchanged."""
        result = PackageParser().parse(sealed.report_text)

        assert result.recognized
        package = result.package
        assert package.operator_name == "J. Doe"
        assert package.badge_id == "PHX-1"
        assert package.role == "Investigator"
        assert package.evidence_source == "Crime Scene A"
        assert package.package_id == FIXED_ID
        assert package.timestamp_iso == FIXED_ISO
        assert not result.legacy_timestamp

    def test_sections_and_digest(self, sealed):
        """One normalized section and the embedded digest."""
        result = PackageParser().parse(sealed.report_text)

        assert [(s.title, s.content) for s in result.package.sections] == [
            ("EVIDENCE 1", "bloodstain sample")
        ]
        assert result.digest == sealed.digest
        assert package_digest(result.package) == sealed.digest

    def test_multiple_sections_with_blank_lines(self, multi_section_sealed):
        """Blank lines inside content survive; empty content is allowed."""
        result = PackageParser().parse(multi_section_sealed.report_text)

        assert [(s.title, s.content) for s in result.package.sections] == [
            ("TOXICOLOGY", "Blood alcohol: 0.08\n\nNo narcotics detected."),
            ("WEAPON", "Kitchen knife, 20cm blade"),
            ("NOTES", ""),
        ]
        assert result.package.evidence_source == "Hospital / Medical Examiner [ Autopsy suite 3 ]"

    def test_no_sections(self, generator):
        """A package without sections parses to an empty list."""
        sealed = generator.generate("J. Doe", "PHX-1", "Investigator", "Crime Scene A")
        result = PackageParser().parse(sealed.report_text)

        assert result.recognized
        assert result.package.sections == []
        assert package_digest(result.package) == sealed.digest

    def test_carriage_returns_in_content_survive(self, generator):
        """Lines are split on LF only."""
        sealed = generator.generate(
            "J. Doe", "PHX-1", "Investigator", "Crime Scene A",
            sections=[EvidenceSection("log", "first\r\nsecond")]
        )
        result = PackageParser().parse(sealed.report_text)
        assert result.package.sections[0].content == "first\r\nsecond"

    def test_heavy_rule_inside_content(self, generator):
        """Only the layout rule before the signature marker is dropped."""
        rule = "=" * 32
        sealed = generator.generate(
            "J. Doe", "PHX-1", "Investigator", "Crime Scene A",
            sections=[EvidenceSection("divider", f"above\n{rule}\nbelow")]
        )
        result = PackageParser().parse(sealed.report_text)
        assert result.package.sections[0].content == f"above\n{rule}\nbelow"


class TestFallbacks:
    """Labels from earlier report revisions."""

    def test_field_rule_table(self):
        """Every package field has a rule, current label first."""
        attributes = [rule.attribute for rule in FIELD_RULES]
        assert attributes == [
            'package_id', 'timestamp_iso', 'operator_name',
            'badge_id', 'role', 'evidence_source'
        ]
        assert FIELD_RULES[1].labels == ("RAW TIMESTAMP", "TIMESTAMP")

    def test_package_id_label(self, sealed):
        """'PACKAGE ID' is accepted for the case id."""
        text = replace_line(sealed.report_text, "CASE ID", f"PACKAGE ID : {FIXED_ID}")
        result = PackageParser().parse(text)
        assert result.recognized
        assert result.package.package_id == FIXED_ID

    def test_legacy_operator_and_source_labels(self, sealed):
        """'OPERATOR', 'BADGE' and 'EVIDENCE SOURCE' are accepted."""
        text = replace_line(sealed.report_text, "OPERATOR NAME", "OPERATOR : J. Doe")
        text = replace_line(text, "BADGE ID", "BADGE : PHX-1")
        text = replace_line(text, "EVIDENCE FROM", "EVIDENCE SOURCE : Crime Scene A")
        result = PackageParser().parse(text)

        assert result.package.operator_name == "J. Doe"
        assert result.package.badge_id == "PHX-1"
        assert result.package.evidence_source == "Crime Scene A"
        assert package_digest(result.package) == sealed.digest

    def test_missing_raw_timestamp_uses_display_line(self, sealed):
        """Without RAW TIMESTAMP the display timestamp is used and flagged."""
        text = replace_line(sealed.report_text, "RAW TIMESTAMP", None)
        result = PackageParser().parse(text)

        assert result.recognized
        assert result.legacy_timestamp
        assert result.package.timestamp_iso != FIXED_ISO

    def test_missing_label_yields_empty_value(self, sealed):
        """A field whose label never appears is empty, not an error."""
        text = replace_line(sealed.report_text, "ROLE", None)
        result = PackageParser().parse(text)
        assert result.recognized
        assert result.package.role == ""


class TestUnrecognized:
    """Inputs that degrade to raw text."""

    @pytest.mark.parametrize("text", [
        "",
        "hello world",
        "https://example.com",
        "FORENSIC-QR-ARCHITECT",
        "FORENSIC-QR-ARCHITECT\n[ EVIDENCE MANIFEST ]\nno signature",
        "FORENSIC-QR-ARCHITECT\n[ CRYPTOGRAPHIC SIGNATURE ]\nSHA-256 HASH:\nabc\n[ EVIDENCE MANIFEST ]",
        "FORENSIC-QR-ARCHITECT\nCASE ID : x\n[ EVIDENCE MANIFEST ]\n[ CRYPTOGRAPHIC SIGNATURE ]\nno hash",
    ])
    def test_raw_passthrough(self, text):
        """Malformed or foreign text is never recognized."""
        result = PackageParser().parse(text)
        assert not result.recognized
        assert result.raw_text == text
        assert result.to_dict() == {'type': 'raw', 'data': text}

    def test_none_input(self):
        """None is treated as empty text."""
        assert not PackageParser().parse(None).recognized

    def test_missing_case_id(self, sealed):
        """Markers alone are not enough without a case id."""
        text = replace_line(sealed.report_text, "CASE ID", None)
        assert not PackageParser().parse(text).recognized

    def test_missing_digest_line(self, sealed):
        """A hash label on the last line means no digest."""
        text = sealed.report_text.split("SHA-256 HASH:")[0] + "SHA-256 HASH:"
        assert not PackageParser().parse(text).recognized

    def test_blank_digest_line(self, sealed):
        """The digest is strictly the next line; a blank one is missing."""
        text = sealed.report_text.replace(f"SHA-256 HASH:\n{sealed.digest}", "SHA-256 HASH:\n")
        assert not PackageParser().parse(text).recognized


class TestContentIsolation:
    """Section content cannot shadow report structure."""

    def test_header_labels_in_content(self, generator):
        """A 'CASE ID' line inside a section does not replace the header value."""
        sealed = generator.generate(
            "J. Doe", "PHX-1", "Investigator", "Crime Scene A",
            sections=[EvidenceSection("notes", "CASE ID : forged\nOPERATOR NAME : Mallory")]
        )
        result = PackageParser().parse(sealed.report_text)

        assert result.package.package_id == FIXED_ID
        assert result.package.operator_name == "J. Doe"
        assert package_digest(result.package) == sealed.digest

    def test_signature_marker_in_content(self, generator):
        """The last signature marker is the real one."""
        sealed = generator.generate(
            "J. Doe", "PHX-1", "Investigator", "Crime Scene A",
            sections=[EvidenceSection(
                "quoted",
                "[ CRYPTOGRAPHIC SIGNATURE ]\nSHA-256 HASH:\n" + "0" * 64
            )]
        )
        result = PackageParser().parse(sealed.report_text)

        assert result.digest == sealed.digest
        assert package_digest(result.package) == sealed.digest
