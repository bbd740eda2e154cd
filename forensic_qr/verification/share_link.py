"""
Shareable Link Module.

Transmits a package and its digest out-of-band as a compact query
parameter: base64 of the JSON object {"data": <payload>, "hash": <digest>},
where <payload> is the canonical payload mapping (op, bid, role, src,
uid, ts, sec).

Decoding problems (bad base64, bad JSON, wrong shape) yield an ERROR
verification, distinct from TAMPERED: the link could not be read at all,
as opposed to being read and failing the digest comparison.

Author: Forensic Engineering Team
"""

import base64
import binascii
import hmac
import json
from typing import Any, Dict, Optional, Tuple
from urllib.parse import parse_qs, urlencode, urlsplit

from config import get_config
from forensic_qr.utils.logger import get_logger
from forensic_qr.utils.exceptions import ShareLinkError
from forensic_qr.sealing.canonicalizer import canonicalize
from forensic_qr.sealing.digest import digest
from forensic_qr.sealing.models import EvidencePackage
from .results import LinkVerification, VerificationStatus

# Initialize module logger
logger = get_logger(__name__)


def encode_share_param(package: EvidencePackage, package_hash: str) -> str:
    """
    Encode a package and digest as the link parameter value.

    Args:
        package: Sealed package.
        package_hash: Its digest.

    Returns:
        Standard base64 text.
    """
    body = {'data': canonicalize(package).to_dict(), 'hash': package_hash}
    raw = json.dumps(body, separators=(',', ':'), ensure_ascii=False).encode('utf-8')
    return base64.b64encode(raw).decode('ascii')


def build_share_link(
    package: EvidencePackage,
    package_hash: str,
    base_url: Optional[str] = None
) -> str:
    """
    Build a shareable verification URL.

    Args:
        package: Sealed package.
        package_hash: Its digest.
        base_url: Viewer URL. Defaults to share_link.base_url.

    Returns:
        URL carrying the encoded package in its query string.
    """
    base_url = base_url or get_config("share_link.base_url", "")
    param = get_config("share_link.param", "r")
    separator = '&' if '?' in base_url else '?'
    return f"{base_url}{separator}{urlencode({param: encode_share_param(package, package_hash)})}"


def decode_share_param(value: str) -> Tuple[EvidencePackage, str]:
    """
    Decode a link parameter value.

    Args:
        value: Base64 text (standard or URL-safe, padding optional).

    Returns:
        Tuple of (package, embedded digest).

    Raises:
        ShareLinkError: If the value cannot be decoded into a package.
    """
    text = (value or "").strip().replace(' ', '+')
    if not text:
        raise ShareLinkError("empty parameter")

    text = text.replace('-', '+').replace('_', '/')
    text += '=' * (-len(text) % 4)

    try:
        raw = base64.b64decode(text, validate=True)
        body: Dict[str, Any] = json.loads(raw.decode('utf-8'))
    except (binascii.Error, UnicodeDecodeError, ValueError) as e:
        raise ShareLinkError(str(e))
    except RecursionError:
        raise ShareLinkError("payload nested too deeply")

    if not isinstance(body, dict) or not isinstance(body.get('hash'), str):
        raise ShareLinkError("missing hash")

    try:
        package = EvidencePackage.from_payload(body.get('data'))
    except TypeError as e:
        raise ShareLinkError(str(e))

    return package, body['hash']


def extract_share_param(url_or_value: str) -> str:
    """
    Pull the parameter out of a full URL, or return a bare value as is.

    Raises:
        ShareLinkError: If a URL carries no share parameter.
    """
    text = (url_or_value or "").strip()
    if '?' not in text and '://' not in text:
        return text

    param = get_config("share_link.param", "r")
    values = parse_qs(urlsplit(text).query).get(param)
    if not values:
        raise ShareLinkError(f"no '{param}' parameter in link")
    return values[0]


def verify_share_link(url_or_value: str) -> LinkVerification:
    """
    Decode a shareable link and verify its digest.

    Never raises; malformed input yields an ERROR result.

    Args:
        url_or_value: Full viewer URL or the bare parameter value.

    Returns:
        LinkVerification with TRUSTED, TAMPERED or ERROR status.
    """
    try:
        package, embedded = decode_share_param(extract_share_param(url_or_value))
    except ShareLinkError as e:
        logger.error(f"Share link decode failed: {e}")
        return LinkVerification(status=VerificationStatus.ERROR, error=str(e))

    computed = digest(canonicalize(package).to_bytes())
    if hmac.compare_digest(computed.encode('utf-8'), embedded.encode('utf-8')):
        status = VerificationStatus.TRUSTED
        logger.info(f"Share link for package {package.package_id} verified")
    else:
        status = VerificationStatus.TAMPERED
        logger.warning(f"Share link for package {package.package_id} FAILED integrity check")

    return LinkVerification(
        status=status,
        package=package,
        digest=embedded,
        computed_digest=computed
    )
