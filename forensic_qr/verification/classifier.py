"""
Content Classifier Module.

Heuristic classification and risk scoring of scanned text. This is purely
advisory: it never claims cryptographic integrity for text that is not a
sealed package.

Checks (independent; several may fire and each contributes indicators):
    - URL-like text, escalated for IP-literal hosts, known shorteners and
      plain HTTP
    - JSON object text
    - Suspicious URI schemes (javascript:, data:, file:, tel:)
    - Long whitespace-free base64-alphabet blobs

The classification label comes from the first check that fires in the
fixed priority order: sealed package > URL > JSON > scheme > encoded blob
> plaintext. Risk is the highest tier any fired check asks for.

Author: Forensic Engineering Team
"""

import json
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional, Sequence
from urllib.parse import urlsplit

from config import get_config
from forensic_qr.utils.logger import get_logger
from forensic_qr.utils.helpers import iso_utc_timestamp
from forensic_qr.sealing.digest import digest_text
from .results import AnalysisReport, RiskLevel, ScanSource, VerificationStatus

# Initialize module logger
logger = get_logger(__name__)

# Classification labels
PACKAGE_LABEL = "PHANIX Secure Package"
URL_LABEL = "URL / Web Resource"
JSON_LABEL = "JSON / Structured Payload"
SCHEME_LABEL = "System Command / Protocol Handler"
BLOB_LABEL = "Encoded Obfuscation (Base64?)"
PLAINTEXT_LABEL = "Generic Data / Plaintext"

DEFAULT_SHORTENERS = ["bit.ly", "t.co", "goo.gl", "tinyurl.com", "is.gd", "buff.ly", "ow.ly"]
DEFAULT_SCHEMES = ["javascript", "data", "file", "tel"]

URL_PATTERN = re.compile(r'^(https?://)?[\da-z.-]+\.[a-z.]{2,6}(:\d+)?[/\w .?=&%#~+-]*$', re.IGNORECASE)
IP_URL_PATTERN = re.compile(r'^(https?://)?(\d{1,3}\.){3}\d{1,3}', re.IGNORECASE)
BLOB_PATTERN = re.compile(r'^[A-Za-z0-9+/=]+$')


@dataclass
class CheckFinding:
    """What a fired check contributes to the report."""
    risk_level: RiskLevel = RiskLevel.LOW
    indicators: List[str] = field(default_factory=list)


@dataclass
class ContentCheck:
    """
    One row of the classification policy table.

    Attributes:
        name: Short identifier used in logs
        classification: Label assigned when this is the first check to fire
        evaluate: Returns a finding when the check fires, None otherwise
    """
    name: str
    classification: str
    evaluate: Callable[[str], Optional[CheckFinding]]


def check_url(text: str, shorteners: Sequence[str]) -> Optional[CheckFinding]:
    """URL-like text, escalated for IP hosts, shorteners and plain HTTP."""
    is_ip = bool(IP_URL_PATTERN.match(text))
    if not is_ip and not URL_PATTERN.match(text):
        return None

    finding = CheckFinding()
    lowered = text.lower()

    if is_ip:
        finding.risk_level = finding.risk_level.escalate(RiskLevel.HIGH)
        finding.indicators.append("IP-based URL detected (potential phishing or C2 link)")

    host = _host_of(lowered)
    if host and any(host == s or host.endswith("." + s) for s in shorteners):
        finding.risk_level = finding.risk_level.escalate(RiskLevel.MEDIUM)
        finding.indicators.append("URL Shortener identified (potential redirection risk)")

    if lowered.startswith("http://"):
        finding.risk_level = finding.risk_level.escalate(RiskLevel.MEDIUM)
        finding.indicators.append("Unencrypted HTTP protocol in use")

    return finding


def check_json(text: str) -> Optional[CheckFinding]:
    """Braces-delimited text that parses as JSON."""
    if not (text.startswith("{") and text.endswith("}")):
        return None
    try:
        json.loads(text)
    except (ValueError, RecursionError):
        return None
    return CheckFinding()


def check_scheme(text: str, schemes: Sequence[str]) -> Optional[CheckFinding]:
    """Text starting with a suspicious URI scheme."""
    scheme, sep, _ = text.partition(":")
    if not sep or scheme.lower() not in schemes:
        return None
    return CheckFinding(
        risk_level=RiskLevel.HIGH,
        indicators=[f"Suspicious scheme detected: {scheme}"]
    )


def check_encoded_blob(text: str, threshold: int) -> Optional[CheckFinding]:
    """Long base64-alphabet text with no whitespace."""
    if len(text) <= threshold or any(c.isspace() for c in text):
        return None
    if not BLOB_PATTERN.match(text):
        return None
    return CheckFinding(
        risk_level=RiskLevel.MEDIUM,
        indicators=["Blob detected without whitespace (potential encoded payload)"]
    )


def _host_of(url: str) -> str:
    """Hostname of a URL, tolerating a missing scheme."""
    if "://" not in url:
        url = "http://" + url
    try:
        return urlsplit(url).hostname or ""
    except ValueError:
        return ""


class ContentClassifier:
    """
    Applies the classification policy table to scanned text.

    The thresholds and lists are arbitrary product choices read from
    configuration; they are not safety-critical invariants.

    Attributes:
        checks: Ordered policy table; order is classification priority
        shorteners: Known URL-shortener domains
        schemes: Suspicious URI schemes (lower case, no colon)
        blob_threshold: Blobs strictly longer than this are flagged

    Example:
        >>> report = ContentClassifier().analyze("http://192.168.1.5/login")
        >>> report.classification, report.risk_level.value
        ('URL / Web Resource', 'HIGH')
    """

    def __init__(
        self,
        checks: Optional[List[ContentCheck]] = None,
        clock: Optional[Callable[[], datetime]] = None
    ) -> None:
        self.shorteners = [s.lower() for s in get_config(
            "classification.url_shorteners", DEFAULT_SHORTENERS
        )]
        self.schemes = [s.lower().rstrip(":") for s in get_config(
            "classification.suspicious_schemes", DEFAULT_SCHEMES
        )]
        self.blob_threshold = int(get_config(
            "classification.encoded_blob_length_threshold", 50
        ))
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.checks = checks if checks is not None else self.default_checks()

    def default_checks(self) -> List[ContentCheck]:
        """Policy table in classification priority order."""
        return [
            ContentCheck("url", URL_LABEL, lambda t: check_url(t, self.shorteners)),
            ContentCheck("json", JSON_LABEL, check_json),
            ContentCheck("scheme", SCHEME_LABEL, lambda t: check_scheme(t, self.schemes)),
            ContentCheck("encoded_blob", BLOB_LABEL,
                         lambda t: check_encoded_blob(t, self.blob_threshold)),
        ]

    def analyze(
        self,
        raw_text: str,
        source: ScanSource = ScanSource.MANUAL_ENTRY,
        trust_status: VerificationStatus = VerificationStatus.UNVERIFIED,
        extra_indicators: Iterable[str] = ()
    ) -> AnalysisReport:
        """
        Classify scanned text.

        Args:
            raw_text: Text exactly as scanned.
            source: Where the text came from.
            trust_status: TRUSTED or TAMPERED when the text is a sealed
                package that has been verified; UNVERIFIED otherwise.
            extra_indicators: Findings from verification, listed first.

        Returns:
            AnalysisReport for this scan.
        """
        text = raw_text.strip()
        indicators: List[str] = list(extra_indicators)
        classification: Optional[str] = None
        risk = RiskLevel.LOW

        if trust_status in (VerificationStatus.TRUSTED, VerificationStatus.TAMPERED):
            classification = PACKAGE_LABEL
            if trust_status == VerificationStatus.TAMPERED:
                risk = RiskLevel.HIGH

        for check in self.checks:
            finding = check.evaluate(text)
            if finding is None:
                continue
            logger.debug(f"Content check '{check.name}' fired")
            if classification is None:
                classification = check.classification
            risk = risk.escalate(finding.risk_level)
            indicators.extend(finding.indicators)

        return AnalysisReport(
            digest=digest_text(raw_text),
            timestamp=iso_utc_timestamp(self.clock()),
            classification=classification or PLAINTEXT_LABEL,
            risk_level=risk,
            trust_status=trust_status,
            indicators=indicators,
            source=source
        )
