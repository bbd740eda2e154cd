"""
Tests for the command-line entry point.

Tests:
- generate / verify / scan / link / hash sub-commands
- Exit codes for TRUSTED, TAMPERED, errors and decode failures
"""

import hashlib
import io
import json

import pytest

import main as cli


OPERATOR_ARGS = [
    "--operator", "J. Doe",
    "--badge", "PHX-1",
    "--role", "Investigator",
    "--source", "Crime Scene A",
]


def run_json(capsys, *argv):
    code = cli.main(["--quiet", "--json", *argv])
    return code, json.loads(capsys.readouterr().out)


@pytest.fixture
def report_text(capsys):
    code, data = run_json(capsys, "generate", *OPERATOR_ARGS, "--section", "evidence 1=bloodstain sample")
    assert code == cli.EXIT_OK
    return data["report_text"]


class TestGenerateCommand:
    """Tests for 'generate'."""

    def test_generate_json(self, capsys):
        """The sealed package is printed with its manifest."""
        code, data = run_json(
            capsys, "generate", *OPERATOR_ARGS,
            "--location", "Kitchen",
            "--section", "evidence 1=bloodstain sample",
            "--section", "notes=line one\\nline two"
        )

        assert code == cli.EXIT_OK
        assert len(data["digest"]) == 64
        assert data["manifest"]["digest"] == data["digest"]
        assert data["package"]["evidence_source"] == "Crime Scene A [ Kitchen ]"
        assert data["package"]["sections"][1] == {"title": "NOTES", "content": "line one\nline two"}

    def test_generate_text_output(self, capsys):
        """Plain output shows the report."""
        code = cli.main(["--quiet", "generate", *OPERATOR_ARGS])
        out = capsys.readouterr().out

        assert code == cli.EXIT_OK
        assert "[ CRYPTOGRAPHIC SIGNATURE ]" in out
        assert "MANIFEST:" in out

    def test_generate_with_qr_and_link(self, capsys, tmp_path):
        """Optional QR image and shareable link."""
        target = tmp_path / "out" / "evidence.png"
        code, data = run_json(capsys, "generate", *OPERATOR_ARGS, "--qr", str(target), "--link")

        assert code == cli.EXIT_OK
        assert target.exists()
        assert data["share_link"].startswith("https://")

    def test_blank_required_field(self, capsys):
        """Validation failures exit with 1."""
        code = cli.main(["--quiet", "generate", "--operator", " ", "--badge", "PHX-1",
                         "--role", "Investigator", "--source", "Crime Scene A"])

        assert code == cli.EXIT_ERROR
        assert "required fields" in capsys.readouterr().err

    def test_usage_error(self, capsys):
        """Missing arguments exit with 1, not the TAMPERED code."""
        assert cli.main(["generate", "--operator", "J. Doe"]) == cli.EXIT_ERROR

    def test_bad_section_syntax(self, capsys):
        """Sections need TITLE=CONTENT."""
        assert cli.main(["generate", *OPERATOR_ARGS, "--section", "no separator"]) == cli.EXIT_ERROR


class TestVerifyCommand:
    """Tests for 'verify'."""

    def test_trusted(self, capsys, report_text):
        """An untouched report exits 0."""
        code, data = run_json(capsys, "verify", "--text", report_text)
        assert code == cli.EXIT_OK
        assert data["status"] == "TRUSTED"
        assert data["source"] == "SHARE_LINK"

    def test_tampered(self, capsys, report_text):
        """A modified report exits 2."""
        code, data = run_json(capsys, "verify", "--text", report_text.replace("bloodstain", "bloodstaim"))
        assert code == cli.EXIT_TAMPERED
        assert data["status"] == "TAMPERED"
        assert data["analysis"]["risk_level"] == "HIGH"

    def test_from_file(self, capsys, report_text, tmp_path):
        """Reports can be read from a file."""
        path = tmp_path / "report.txt"
        path.write_text(report_text, encoding="utf-8")

        code = cli.main(["--quiet", "verify", "--file", str(path)])
        out = capsys.readouterr().out

        assert code == cli.EXIT_OK
        assert "STATUS         : TRUSTED" in out
        assert "PACKAGE ID" in out

    def test_raw_text(self, capsys):
        """Foreign text is classified and exits 0."""
        code, data = run_json(capsys, "verify", "--text", "http://192.168.1.5/login")
        assert code == cli.EXIT_OK
        assert data["status"] == "UNVERIFIED"
        assert data["analysis"]["classification"] == "URL / Web Resource"

    def test_empty_text(self, capsys):
        """Nothing to verify is an error."""
        assert cli.main(["--quiet", "verify", "--text", "   "]) == cli.EXIT_ERROR

    def test_missing_file(self, capsys, tmp_path):
        """Missing input files exit 1."""
        assert cli.main(["--quiet", "verify", "--file", str(tmp_path / "nope.txt")]) == cli.EXIT_ERROR


class TestScanCommand:
    """Tests for 'scan'."""

    def test_missing_image(self, capsys, tmp_path):
        """A missing image is an input error."""
        assert cli.main(["--quiet", "scan", str(tmp_path / "nope.png")]) == cli.EXIT_ERROR

    def test_unreadable_image(self, capsys, tmp_path):
        """A corrupt image is a decode failure."""
        path = tmp_path / "bad.png"
        path.write_bytes(b"\x00\x01garbage")

        code = cli.main(["--quiet", "scan", str(path)])

        assert code == cli.EXIT_DECODE_FAILED
        assert "unreadable" in capsys.readouterr().out

    def test_scan_generated_code(self, capsys, tmp_path):
        """A generated QR image decodes and verifies."""
        pytest.importorskip("pyzbar.pyzbar")
        target = tmp_path / "evidence.png"
        run_json(capsys, "generate", *OPERATOR_ARGS, "--qr", str(target))

        code, data = run_json(capsys, "scan", str(target))

        assert code == cli.EXIT_OK
        assert data["status"] == "TRUSTED"
        assert data["analysis"]["source"] == "FORENSIC_IMAGE_INTAKE"


class TestLinkCommand:
    """Tests for 'link'."""

    def test_trusted_link(self, capsys):
        """A generated link verifies."""
        _, generated = run_json(capsys, "generate", *OPERATOR_ARGS, "--link")
        code, data = run_json(capsys, "link", generated["share_link"])

        assert code == cli.EXIT_OK
        assert data["status"] == "TRUSTED"

    def test_malformed_link(self, capsys):
        """Undecodable links exit 1."""
        code, data = run_json(capsys, "link", "https://viewer.example/?r=%%%")
        assert code == cli.EXIT_ERROR
        assert data["status"] == "ERROR"


class TestHashCommand:
    """Tests for 'hash'."""

    def test_known_digest(self, capsys):
        """The digest is SHA-256 of the UTF-8 text."""
        code, data = run_json(capsys, "hash", "abc")

        assert code == cli.EXIT_OK
        assert data["text"] == "abc"
        assert data["digest"] == hashlib.sha256("abc".encode("utf-8")).hexdigest()

    def test_text_output(self, capsys):
        """Human-readable output is a single labelled line."""
        code = cli.main(["--quiet", "hash", "bloodstain sample"])
        expected = hashlib.sha256("bloodstain sample".encode("utf-8")).hexdigest()

        assert code == cli.EXIT_OK
        assert capsys.readouterr().out.strip() == f"SHA-256 : {expected}"

    def test_non_ascii_text(self, capsys):
        """Non-ASCII text is digested as UTF-8."""
        _, data = run_json(capsys, "hash", "Prüfung ✓")
        assert data["digest"] == hashlib.sha256("Prüfung ✓".encode("utf-8")).hexdigest()

    def test_stdin(self, capsys, monkeypatch):
        """'-' digests standard input exactly as read."""
        monkeypatch.setattr("sys.stdin", io.StringIO("line one\nline two\n"))
        _, data = run_json(capsys, "hash", "-")
        assert data["digest"] == hashlib.sha256(b"line one\nline two\n").hexdigest()
