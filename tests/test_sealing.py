"""
Tests for the sealing module.

Tests:
- Canonicalization determinism and normalization
- SHA-256 digest computation
- Sealed report layout
- Package generation, validation and staged progress
- Refusal of input that would not read back from the report
"""

import pytest

from forensic_qr.sealing import (
    EvidencePackage,
    EvidenceSection,
    PackageFormatter,
    PackageGenerator,
    canonicalize,
    compose_evidence_source,
    digest,
    package_digest
)
from forensic_qr.sealing import layout
from forensic_qr.sealing.digest import is_hex_digest
from forensic_qr.utils.exceptions import ValidationError
from tests.conftest import FIXED_ID, FIXED_ISO


def make_package(**overrides):
    values = dict(
        operator_name="J. Doe",
        badge_id="PHX-1",
        role="Investigator",
        evidence_source="Crime Scene A",
        package_id="u-1",
        timestamp_iso=FIXED_ISO,
        sections=[EvidenceSection("evidence 1", " bloodstain sample ")]
    )
    values.update(overrides)
    return EvidencePackage(**values)


class TestCanonicalizer:
    """Tests for canonicalize()."""

    def test_section_normalization(self):
        """Titles are trimmed and upper-cased, content trimmed."""
        payload = canonicalize(make_package())
        assert payload.sec == (("EVIDENCE 1", "bloodstain sample"),)

    def test_repeated_calls_are_equal(self):
        """Canonicalization is deterministic."""
        package = make_package()
        assert canonicalize(package) == canonicalize(package)
        assert canonicalize(package).to_bytes() == canonicalize(package).to_bytes()

    def test_whitespace_and_title_case_are_ignored(self):
        """Packages differing only in padding and title case share a payload."""
        padded = make_package(
            operator_name="  J. Doe ",
            badge_id=" PHX-1 ",
            sections=[EvidenceSection("  Evidence 1 ", "bloodstain sample\n")]
        )
        assert canonicalize(padded) == canonicalize(make_package())

    def test_internal_content_whitespace_is_kept(self):
        """Only surrounding whitespace is trimmed."""
        package = make_package(sections=[EvidenceSection("a", " line one\n\n  line two ")])
        assert canonicalize(package).sec[0][1] == "line one\n\n  line two"

    def test_section_order_is_significant(self):
        """Reordering sections changes the payload."""
        first = make_package(sections=[EvidenceSection("a", "1"), EvidenceSection("b", "2")])
        second = make_package(sections=[EvidenceSection("b", "2"), EvidenceSection("a", "1")])
        assert canonicalize(first) != canonicalize(second)

    def test_fixed_serialization(self):
        """Keys in fixed order, compact separators."""
        expected = (
            '{"op":"J. Doe","bid":"PHX-1","role":"Investigator","src":"Crime Scene A",'
            '"uid":"u-1","ts":"2026-10-19T03:10:00.123Z",'
            '"sec":[{"title":"EVIDENCE 1","content":"bloodstain sample"}]}'
        )
        assert canonicalize(make_package()).to_json() == expected

    def test_non_ascii_kept_literal(self):
        """Non-ASCII characters are written as UTF-8, not escaped."""
        payload = canonicalize(make_package(operator_name="José Núñez"))
        assert "José Núñez" in payload.to_json()
        assert "José Núñez".encode("utf-8") in payload.to_bytes()

    def test_empty_sections(self):
        """A package with no sections serializes an empty list."""
        assert canonicalize(make_package(sections=[])).to_dict()["sec"] == []

    def test_to_package_round_trip(self):
        """The payload materializes back into normalized package fields."""
        package = canonicalize(make_package(badge_id=" PHX-1 ")).to_package()
        assert package.badge_id == "PHX-1"
        assert package.sections[0].title == "EVIDENCE 1"


class TestDigest:
    """Tests for the digest engine."""

    def test_known_vector(self):
        """SHA-256 of 'abc'."""
        assert digest(b"abc") == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"

    def test_package_digest_shape(self):
        """Package digests are 64 lowercase hex characters."""
        value = package_digest(make_package())
        assert len(value) == 64
        assert is_hex_digest(value)

    def test_trimmed_badge_gives_same_digest(self):
        """' PHX-1 ' and 'PHX-1' seal to the same digest."""
        assert package_digest(make_package(badge_id=" PHX-1 ")) == package_digest(make_package())

    def test_content_change_changes_digest(self):
        """Any content change alters the digest."""
        altered = make_package(sections=[EvidenceSection("evidence 1", "bloodstain samplf")])
        assert package_digest(altered) != package_digest(make_package())

    def test_is_hex_digest_rejects_malformed(self):
        """Wrong length or upper case is not a digest."""
        assert not is_hex_digest("abc")
        assert not is_hex_digest("A" * 64)


class TestPackageFormatter:
    """Tests for the sealed report layout."""

    def test_markers_in_order(self):
        """Family marker, manifest, signature and hash label appear in order."""
        text = PackageFormatter().format(make_package(), "d" * 64)
        positions = [
            text.index(layout.FAMILY_MARKER),
            text.index(layout.MANIFEST_MARKER),
            text.index(layout.SIGNATURE_MARKER),
            text.index(layout.HASH_LABEL),
        ]
        assert positions == sorted(positions)

    def test_digest_follows_hash_label(self):
        """The digest is on the line right after the hash label."""
        lines = PackageFormatter().format(make_package(), "d" * 64).split("\n")
        assert lines[lines.index(layout.HASH_LABEL) + 1] == "d" * 64

    def test_scalar_lines(self):
        """Header lines carry canonical values."""
        text = PackageFormatter().format(make_package(badge_id=" PHX-1 "), "d" * 64)
        assert "CASE ID   : u-1" in text
        assert f"RAW TIMESTAMP : {FIXED_ISO}" in text
        assert "STATUS    : SEALED / VERIFIED" in text
        assert "OPERATOR NAME : J. Doe" in text
        assert "BADGE ID      : PHX-1\n" in text
        assert "ROLE          : Investigator" in text
        assert "EVIDENCE FROM : Crime Scene A" in text

    def test_section_block(self):
        """Sections render as '#n :: TITLE' followed by content."""
        text = PackageFormatter().format(make_package(), "d" * 64)
        assert "#1 :: EVIDENCE 1\nbloodstain sample" in text

    def test_sections_separated_by_blank_lines(self):
        """Consecutive section blocks are separated."""
        package = make_package(sections=[EvidenceSection("a", "1"), EvidenceSection("b", "2")])
        text = PackageFormatter().format(package, "d" * 64)
        assert "#1 :: A\n1\n\n\n#2 :: B\n2" in text

    def test_footer(self):
        """Signature footer names the brand and the sealing year."""
        text = PackageFormatter(brand="PHANIX").format(make_package(), "d" * 64)
        assert "DIGITALLY SIGNED BY PHANIX" in text
        assert "(C) 2026 FORENSIC-QR-ARCHITECT" in text
        assert text.endswith("END OF RECORD")

    def test_text_is_stripped(self):
        """No surrounding whitespace."""
        text = PackageFormatter().format(make_package(), "d" * 64)
        assert text == text.strip()
        assert text.startswith(layout.BANNER)


class TestPackageGenerator:
    """Tests for PackageGenerator."""

    def test_generate_assigns_id_and_timestamp(self, sealed):
        """Injected id factory and clock are used."""
        assert sealed.package.package_id == FIXED_ID
        assert sealed.package.timestamp_iso == FIXED_ISO
        assert sealed.manifest.package_id == FIXED_ID
        assert sealed.manifest.timestamp_iso == FIXED_ISO

    def test_generate_digest_matches_package(self, sealed):
        """The sealed digest is the digest of the canonical package."""
        assert sealed.digest == package_digest(sealed.package)
        assert sealed.manifest.digest == sealed.digest
        assert sealed.digest in sealed.report_text

    def test_generated_package_is_normalized(self, sealed):
        """The returned package holds canonical values."""
        section = sealed.package.sections[0]
        assert (section.title, section.content) == ("EVIDENCE 1", "bloodstain sample")

    def test_default_id_is_uuid4(self):
        """Without an id factory a UUID4 string is used."""
        import uuid

        sealed = PackageGenerator().generate("J. Doe", "PHX-1", "Investigator", "Crime Scene A")
        assert uuid.UUID(sealed.package.package_id).version == 4
        assert sealed.package.timestamp_iso.endswith("Z")

    def test_missing_fields_raise(self, generator):
        """Blank required fields are reported and nothing is sealed."""
        with pytest.raises(ValidationError) as exc_info:
            generator.generate("J. Doe", "   ", "", "Crime Scene A")

        assert exc_info.value.missing_fields == ["badge_id", "role"]
        assert "Badge ID" in exc_info.value.message
        assert "Role" in exc_info.value.message

    def test_line_break_in_scalar_raises(self, generator):
        """Scalar fields must fit on one line."""
        with pytest.raises(ValidationError) as exc_info:
            generator.generate("J.\nDoe", "PHX-1", "Investigator", "Crime Scene A")
        assert exc_info.value.missing_fields == ["operator_name"]

    def test_surrounding_newline_is_allowed(self, generator):
        """A trailing newline is trimmed, not rejected."""
        sealed = generator.generate("J. Doe\n", "PHX-1", "Investigator", "Crime Scene A")
        assert sealed.package.operator_name == "J. Doe"

    def test_location_details_appended(self, multi_section_sealed):
        """Location details are appended to the source in brackets."""
        assert multi_section_sealed.package.evidence_source == (
            "Hospital / Medical Examiner [ Autopsy suite 3 ]"
        )

    def test_compose_evidence_source_without_details(self):
        """Blank details leave the source unchanged."""
        assert compose_evidence_source("Crime Scene A", "  ") == "Crime Scene A"

    def test_dict_and_section_inputs(self, multi_section_sealed):
        """Sections may be given as dicts, kept in order."""
        titles = [s.title for s in multi_section_sealed.package.sections]
        assert titles == ["TOXICOLOGY", "WEAPON", "NOTES"]

    def test_progress_callback(self, generator):
        """Every stage is reported, ending at 100 percent."""
        seen = []
        generator.generate(
            "J. Doe", "PHX-1", "Investigator", "Crime Scene A",
            progress_callback=lambda message, percent: seen.append((message, percent))
        )

        assert [message for message, _ in seen] == generator.stages
        assert seen[-1][1] == 100
        assert [p for _, p in seen] == sorted(p for _, p in seen)

    def test_no_progress_on_validation_failure(self, generator):
        """Validation happens before the sealing stages."""
        seen = []
        with pytest.raises(ValidationError):
            generator.generate("", "", "", "", progress_callback=lambda m, p: seen.append(m))
        assert seen == []

    def test_seal_existing_package(self, generator):
        """seal() digests and formats an assembled package."""
        result = generator.seal(make_package())
        assert result.digest == package_digest(make_package())
        assert "CASE ID   : u-1" in result.report_text


class TestReportSafeInput:
    """Input that would not read back from the report is refused."""

    def test_line_break_in_location_details(self, generator):
        """Location details share the evidence source line."""
        with pytest.raises(ValidationError) as exc_info:
            generator.generate(
                "J. Doe", "PHX-1", "Investigator", "Crime Scene A",
                location_details="Kitchen\nnorth wall"
            )
        assert exc_info.value.missing_fields == ["evidence_source"]

    def test_trailing_newline_in_location_details(self, generator):
        """Surrounding whitespace on the details is trimmed."""
        sealed = generator.generate(
            "J. Doe", "PHX-1", "Investigator", "Crime Scene A",
            location_details="Kitchen\n"
        )
        assert "\n" not in sealed.package.evidence_source

    @pytest.mark.parametrize("title", ["Exhibit\nA", "Exhibit\rA"])
    def test_line_break_in_section_title(self, generator, title):
        """A title must stay on its heading line."""
        with pytest.raises(ValidationError) as exc_info:
            generator.generate(
                "J. Doe", "PHX-1", "Investigator", "Crime Scene A",
                sections=[{"title": "Photos", "content": "ok"}, {"title": title, "content": "x"}]
            )
        assert exc_info.value.missing_fields == ["Section 2 title"]
        assert "single line" in exc_info.value.message

    @pytest.mark.parametrize("content", [
        "Index:\n#12 :: overview shot",
        "  #3::detail",
        "#1 ::",
    ])
    def test_heading_shaped_content(self, generator, content):
        """Content lines that parse as headings would split the section."""
        with pytest.raises(ValidationError) as exc_info:
            generator.generate(
                "J. Doe", "PHX-1", "Investigator", "Crime Scene A",
                sections=[EvidenceSection("Photos", content)]
            )
        assert exc_info.value.missing_fields == ["Section 1 content"]

    @pytest.mark.parametrize("content", [
        "Tag #12 :: overview",
        "#twelve :: overview",
        "Ratio 1::2",
    ])
    def test_content_mentioning_headings_is_allowed(self, generator, content):
        """Only whole lines shaped like a heading are refused."""
        sealed = generator.generate(
            "J. Doe", "PHX-1", "Investigator", "Crime Scene A",
            sections=[EvidenceSection("Photos", content)]
        )
        assert sealed.package.sections[0].content == content

    def test_seal_validates_scalars(self, generator):
        """seal() checks an assembled package the same way."""
        with pytest.raises(ValidationError) as exc_info:
            generator.seal(make_package(role="  "))
        assert exc_info.value.missing_fields == ["role"]

    @pytest.mark.parametrize("name", ["package_id", "timestamp_iso"])
    def test_seal_requires_id_and_timestamp(self, generator, name):
        """A package without its case id or timestamp cannot be sealed."""
        with pytest.raises(ValidationError) as exc_info:
            generator.seal(make_package(**{name: ""}))
        assert exc_info.value.missing_fields == [name]

    def test_seal_checks_layout(self, generator):
        """seal() refuses titles and content that would not read back."""
        with pytest.raises(ValidationError):
            generator.seal(make_package(sections=[EvidenceSection("Exhibit\nA", "x")]))
        with pytest.raises(ValidationError):
            generator.seal(make_package(sections=[EvidenceSection("A", "#2 :: B")]))
        with pytest.raises(ValidationError):
            generator.seal(make_package(evidence_source="Kitchen\nnorth wall"))
