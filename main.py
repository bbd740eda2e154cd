#!/usr/bin/env python3
"""
P.H.A.N.I.X Forensic QR Architect - Main Entry Point.

Command-line access to sealing and verification of forensic evidence
packages.

Usage:
    Command Line:
        python main.py generate --operator "J. Doe" --badge PHX-1 \\
            --role Investigator --source "Crime Scene A" \\
            --section "Evidence 1=bloodstain sample" --qr evidence.png
        python main.py verify --file report.txt
        python main.py scan evidence.png
        python main.py camera --device 0
        python main.py link "https://.../?r=eyJkYXRhIjp7..."
        python main.py hash "bloodstain sample"

    Python:
        from main import seal_package, verify_text
        sealed = seal_package("J. Doe", "PHX-1", "Investigator", "Crime Scene A")
        outcome = verify_text(sealed.report_text)

Exit codes:
    0   success / TRUSTED
    1   usage or domain error
    2   TAMPERED
    3   decode failure
    130 cancelled by user

Author: Forensic Engineering Team
Version: 1.0.0
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

# Add project root to path for imports
PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

# Import project modules
from config import ConfigurationManager
from forensic_qr.utils.logger import setup_logger_from_config, get_logger, set_level, redirect_console
from forensic_qr.utils.exceptions import ForensicQRError, ValidationError
from forensic_qr.sealing import PackageGenerator, EvidenceSection, SealedPackage, EVIDENCE_LOCATIONS
from forensic_qr.sealing.digest import digest_text
from forensic_qr.verification import (
    VerificationEngine,
    VerificationOutcome,
    VerificationStatus,
    ScanSource,
    build_share_link,
    verify_share_link
)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_TAMPERED = 2
EXIT_DECODE_FAILED = 3
EXIT_CANCELLED = 130


def parse_section(value: str) -> EvidenceSection:
    """
    Parse a TITLE=CONTENT command-line section.

    Literal "\\n" sequences in the content become line breaks.
    """
    title, separator, content = value.partition("=")
    if not separator or not title.strip():
        raise argparse.ArgumentTypeError(f"Section must look like TITLE=CONTENT: {value!r}")
    return EvidenceSection(title=title, content=content.replace("\\n", "\n"))


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed argument namespace.
    """
    parser = argparse.ArgumentParser(
        description="P.H.A.N.I.X Forensic QR Architect",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    Seal a package and export its QR code:
        python main.py generate --operator "J. Doe" --badge PHX-1 --role Investigator \\
            --source "Crime Scene A" --section "Evidence 1=bloodstain sample" --qr evidence.png

    Verify a scanned report:
        python main.py verify --file report.txt

    Decode and verify an uploaded image:
        python main.py scan evidence.png
        """
    )

    # Global options
    parser.add_argument(
        "--config", "-c",
        type=str,
        default=None,
        help="Path to custom configuration file"
    )

    parser.add_argument(
        "--json",
        action="store_true",
        help="Print results as JSON"
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )

    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Only log warnings and errors"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # generate
    generate = subparsers.add_parser("generate", help="Seal a new evidence package")
    generate.add_argument("--operator", required=True, help="Operator full name")
    generate.add_argument("--badge", required=True, help="Operator badge ID")
    generate.add_argument("--role", required=True, help="Operator role")
    generate.add_argument(
        "--source",
        required=True,
        help=f"Evidence source, e.g. one of: {', '.join(EVIDENCE_LOCATIONS[:4])}, ..."
    )
    generate.add_argument("--location", default="", help="Location details appended to the source")
    generate.add_argument(
        "--section", "-s",
        action="append",
        type=parse_section,
        default=[],
        metavar="TITLE=CONTENT",
        help="Evidence section (repeatable, kept in order)"
    )
    generate.add_argument("--qr", default=None, metavar="FILE", help="Write the QR code as PNG")
    generate.add_argument("--save-report", default=None, metavar="FILE", help="Write the report text")
    generate.add_argument("--link", action="store_true", help="Print a shareable verification link")

    # verify
    verify = subparsers.add_parser("verify", help="Verify scanned or pasted text")
    source = verify.add_mutually_exclusive_group(required=True)
    source.add_argument("--text", "-t", default=None, help="Scanned text")
    source.add_argument("--file", "-f", default=None, help="File holding the scanned text ('-' for stdin)")

    # scan
    scan = subparsers.add_parser("scan", help="Decode a QR image and verify it")
    scan.add_argument("image", help="Image file (PNG, JPG, ...)")

    # camera
    camera = subparsers.add_parser("camera", help="Scan from a live camera and verify")
    camera.add_argument("--device", type=int, default=None, help="Video device index")
    camera.add_argument("--max-frames", type=int, default=None, help="Give up after N frames")

    # link
    link = subparsers.add_parser("link", help="Verify a shareable link")
    link.add_argument("url", help="Full link or bare parameter value")

    # hash
    hash_parser = subparsers.add_parser("hash", help="Print the SHA-256 digest of some text")
    hash_parser.add_argument("text", help="Text to digest ('-' for stdin)")

    return parser.parse_args(argv)


def initialize_system(args: argparse.Namespace) -> ConfigurationManager:
    """
    Initialize configuration and logging.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Initialized configuration manager.
    """
    config = ConfigurationManager(args.config)
    logger = setup_logger_from_config()

    if args.debug:
        set_level(logging.DEBUG)
    elif args.quiet:
        set_level(logging.WARNING)
    # Keep stdout clean for JSON consumers
    if args.json:
        redirect_console(sys.stderr)

    logger.debug(f"{config.get('project.name', 'Forensic QR Architect')} v{config.get('project.version', '1.0.0')}")
    return config


def seal_package(
    operator_name: str,
    badge_id: str,
    role: str,
    evidence_source: str,
    sections: Optional[List[EvidenceSection]] = None,
    location_details: str = ""
) -> SealedPackage:
    """
    Seal a package, logging the staged progression.

    Raises:
        ValidationError: If required input is missing.
    """
    logger = get_logger(__name__)

    def report_progress(message: str, percent: int) -> None:
        logger.info(f"[{percent:3d}%] {message}")

    return PackageGenerator().generate(
        operator_name=operator_name,
        badge_id=badge_id,
        role=role,
        evidence_source=evidence_source,
        sections=sections or [],
        location_details=location_details,
        progress_callback=report_progress
    )


def verify_text(text: str, source: ScanSource = ScanSource.MANUAL_ENTRY) -> Optional[VerificationOutcome]:
    """Verify one piece of scanned text. Returns None for blank input."""
    return VerificationEngine().process_scan(text, source)


def emit(data: Dict[str, Any], as_json: bool, lines: List[str]) -> None:
    """Print either the JSON form or the human-readable lines."""
    if as_json:
        print(json.dumps(data, indent=2, ensure_ascii=False))
    else:
        print("\n".join(lines))


def outcome_exit_code(outcome: VerificationOutcome) -> int:
    return EXIT_TAMPERED if outcome.is_tampered else EXIT_OK


def describe_outcome(outcome: VerificationOutcome) -> List[str]:
    analysis = outcome.analysis
    lines = [
        f"STATUS         : {outcome.status.value}",
        f"CLASSIFICATION : {analysis.classification}",
        f"RISK LEVEL     : {analysis.risk_level.value}",
        f"SOURCE         : {analysis.source.value}",
        f"ANALYZED AT    : {analysis.timestamp}",
    ]

    if outcome.scan.recognized:
        package = outcome.scan.package
        lines += [
            f"PACKAGE ID     : {package.package_id}",
            f"TIMESTAMP      : {package.timestamp_iso}",
            f"OPERATOR       : {package.operator_name} ({package.badge_id}, {package.role})",
            f"EVIDENCE FROM  : {package.evidence_source}",
            f"EMBEDDED HASH  : {outcome.scan.digest}",
            f"COMPUTED HASH  : {outcome.computed_digest}",
        ]
        for ordinal, section in enumerate(package.sections, start=1):
            lines.append(f"  #{ordinal} {section.title}: {section.content}")
    else:
        lines.append(f"CONTENT HASH   : {analysis.digest}")

    lines.append("INDICATORS:")
    lines += [f"  - {indicator}" for indicator in analysis.indicators] or ["  (none)"]
    return lines


def report_outcome(outcome: Optional[VerificationOutcome], as_json: bool) -> int:
    if outcome is None:
        print("Error: nothing to verify (empty input)", file=sys.stderr)
        return EXIT_ERROR
    emit(outcome.to_dict(), as_json, describe_outcome(outcome))
    return outcome_exit_code(outcome)


def cmd_generate(args: argparse.Namespace) -> int:
    """Seal a package and print the report and manifest."""
    sealed = seal_package(
        operator_name=args.operator,
        badge_id=args.badge,
        role=args.role,
        evidence_source=args.source,
        sections=args.section,
        location_details=args.location
    )

    data = sealed.to_dict()
    lines = [sealed.report_text, "", f"MANIFEST: {json.dumps(sealed.manifest.to_dict())}"]

    if args.qr:
        from forensic_qr.output_handler import BarcodeExporter
        qr_path = BarcodeExporter().export(sealed.report_text, args.qr)
        data['qr_path'] = qr_path
        lines.append(f"QR IMAGE: {qr_path}")

    if args.save_report:
        from forensic_qr.output_handler import BarcodeExporter
        report_path = BarcodeExporter().export_report(sealed.report_text, args.save_report)
        data['report_path'] = report_path
        lines.append(f"REPORT  : {report_path}")

    if args.link:
        share_link = build_share_link(sealed.package, sealed.digest)
        data['share_link'] = share_link
        lines.append(f"LINK    : {share_link}")

    emit(data, args.json, lines)
    return EXIT_OK


def cmd_verify(args: argparse.Namespace) -> int:
    """Verify text given inline, in a file, or on stdin."""
    if args.text is not None:
        text = args.text
    elif args.file == "-":
        text = sys.stdin.read()
    else:
        path = Path(args.file)
        if not path.exists():
            raise FileNotFoundError(f"Input file not found: {path}")
        text = path.read_text(encoding="utf-8")

    return report_outcome(verify_text(text, ScanSource.MANUAL_ENTRY), args.json)


def cmd_scan(args: argparse.Namespace) -> int:
    """Decode an image with the full strategy list, then verify."""
    from forensic_qr.decode_pipeline import DecodePipeline, EngineRegistry

    image_path = Path(args.image)
    if not image_path.exists():
        raise FileNotFoundError(f"Image not found: {image_path}")

    with EngineRegistry() as registry:
        decoded = DecodePipeline(registry).run_file(image_path)

    if not decoded.succeeded:
        emit(decoded.to_dict(), args.json, [decoded.failure_reason or "Decode failed"])
        return EXIT_DECODE_FAILED

    return report_outcome(verify_text(decoded.text, ScanSource.FORENSIC_IMAGE_INTAKE), args.json)


def cmd_camera(args: argparse.Namespace) -> int:
    """Scan frames from a camera until a code decodes, then verify."""
    from forensic_qr.decode_pipeline import CameraSession

    logger = get_logger(__name__)
    logger.info("Camera active. Press Ctrl-C to stop.")

    with CameraSession(device_index=args.device) as session:
        text = session.scan(max_frames=args.max_frames)

    if text is None:
        print("No QR code detected", file=sys.stderr)
        return EXIT_DECODE_FAILED

    return report_outcome(verify_text(text, ScanSource.LIVE_CAMERA_SCAN), args.json)


def cmd_link(args: argparse.Namespace) -> int:
    """Verify a shareable link."""
    result = verify_share_link(args.url)

    if result.status == VerificationStatus.ERROR:
        lines = [f"STATUS : {result.status.value}", f"ERROR  : {result.error}"]
        emit(result.to_dict(), args.json, lines)
        return EXIT_ERROR

    package = result.package
    lines = [
        f"STATUS        : {result.status.value}",
        f"SOURCE        : {result.source.value}",
        f"PACKAGE ID    : {package.package_id}",
        f"TIMESTAMP     : {package.timestamp_iso}",
        f"OPERATOR      : {package.operator_name} ({package.badge_id}, {package.role})",
        f"EVIDENCE FROM : {package.evidence_source}",
        f"EMBEDDED HASH : {result.digest}",
        f"COMPUTED HASH : {result.computed_digest}",
    ]
    emit(result.to_dict(), args.json, lines)
    return EXIT_TAMPERED if result.status == VerificationStatus.TAMPERED else EXIT_OK



def cmd_hash(args: argparse.Namespace) -> int:
    """Digest arbitrary text the way sealed fields are digested (UTF-8, SHA-256)."""
    text = sys.stdin.read() if args.text == "-" else args.text
    text_digest = digest_text(text)
    emit({"text": text, "digest": text_digest}, args.json, [f"SHA-256 : {text_digest}"])
    return EXIT_OK

COMMANDS = {
    "generate": cmd_generate,
    "verify": cmd_verify,
    "scan": cmd_scan,
    "camera": cmd_camera,
    "link": cmd_link,
    "hash": cmd_hash,
}


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main function - entry point for command-line execution.

    Returns:
        Exit code (see module docstring).
    """
    # argparse exits with 2 on usage errors, which is reserved for TAMPERED
    try:
        args = parse_arguments(argv)
    except SystemExit as e:
        return EXIT_OK if not e.code else EXIT_ERROR

    try:
        initialize_system(args)
        return COMMANDS[args.command](args)

    except ValidationError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return EXIT_ERROR

    except (ForensicQRError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR

    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
        return EXIT_CANCELLED

    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        if args.debug:
            import traceback
            traceback.print_exc()
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
