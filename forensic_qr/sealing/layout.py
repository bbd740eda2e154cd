"""
Sealed Report Layout Constants.

Literal markers and labels shared by the formatter and the parser. These
strings are the interoperability boundary of the barcode payload: a report
written by one build must be readable by another, so they never change.
"""

import re

# Format-family marker, checked before any structured parsing
FAMILY_MARKER = "FORENSIC-QR-ARCHITECT"
BANNER = "██ P.H.A.N.I.X ██"

MANIFEST_MARKER = "[ EVIDENCE MANIFEST ]"
SIGNATURE_MARKER = "[ CRYPTOGRAPHIC SIGNATURE ]"
HASH_LABEL = "SHA-256 HASH:"

HEAVY_RULE = "=" * 32
LIGHT_RULE = "-" * 32

# Scalar field labels, current format
LABEL_CASE_ID = "CASE ID"
LABEL_TIMESTAMP = "TIMESTAMP"
LABEL_RAW_TIMESTAMP = "RAW TIMESTAMP"
LABEL_STATUS = "STATUS"
LABEL_OPERATOR = "OPERATOR NAME"
LABEL_BADGE = "BADGE ID"
LABEL_ROLE = "ROLE"
LABEL_SOURCE = "EVIDENCE FROM"

STATUS_SEALED = "SEALED / VERIFIED"

# "#<ordinal> :: <TITLE>", matched against the stripped line
SECTION_HEADING = re.compile(r'^#(\d+)\s*::(.*)$')


def section_heading(ordinal: int, title: str) -> str:
    """Render a manifest section heading line."""
    return f"#{ordinal} :: {title}"
