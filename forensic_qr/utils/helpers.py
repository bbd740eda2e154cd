"""
Helper Utilities Module.

This module provides small utility functions used throughout the
forensic QR system.

Functions:
    - ensure_directory: Create directory if it doesn't exist
    - iso_utc_timestamp: Render an instant as ISO-8601 UTC with milliseconds
    - parse_iso_timestamp: Parse an ISO-8601 instant back into a datetime
    - format_display_timestamp: Human-readable local rendering of an ISO instant
    - safe_filename: Sanitize filenames for filesystem
"""

import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union


def ensure_directory(path: Union[str, Path]) -> Path:
    """
    Ensure a directory exists, creating it if necessary.

    Args:
        path: Directory path to ensure exists.

    Returns:
        Path object pointing to the directory.

    Example:
        >>> ensure_directory("outputs/barcodes")
        PosixPath('outputs/barcodes')
    """
    dir_path = Path(path)
    dir_path.mkdir(parents=True, exist_ok=True)
    return dir_path


def iso_utc_timestamp(moment: Optional[datetime] = None) -> str:
    """
    Render an instant as ISO-8601 UTC with millisecond precision.

    Naive datetimes are taken to be UTC already.

    Args:
        moment: Instant to render. Defaults to now.

    Returns:
        Timestamp such as "2026-10-19T03:10:00.123Z".

    Example:
        >>> iso_utc_timestamp(datetime(2026, 1, 2, 3, 4, 5, 678900))
        '2026-01-02T03:04:05.678Z'
    """
    if moment is None:
        moment = datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    millis = moment.microsecond // 1000
    return moment.strftime("%Y-%m-%dT%H:%M:%S") + f".{millis:03d}Z"


def parse_iso_timestamp(value: str) -> Optional[datetime]:
    """
    Parse an ISO-8601 instant, accepting a trailing "Z".

    Args:
        value: Timestamp string.

    Returns:
        Timezone-aware datetime, or None if the value is not ISO-8601.
    """
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_display_timestamp(iso_value: str, format_str: str) -> str:
    """
    Render an ISO instant in local time for human readers.

    The result is informational only; values that are not ISO-8601 are
    returned unchanged.

    Args:
        iso_value: ISO-8601 timestamp.
        format_str: strftime format string.

    Returns:
        Locally formatted timestamp.
    """
    parsed = parse_iso_timestamp(iso_value)
    if parsed is None:
        return iso_value
    return parsed.astimezone().strftime(format_str)


def safe_filename(filename: str, replacement: str = "_") -> str:
    """
    Sanitize a filename by removing or replacing invalid characters.

    Args:
        filename: Original filename.
        replacement: Character to replace invalid characters with.

    Returns:
        Sanitized filename safe for filesystem.

    Example:
        >>> safe_filename("case:123/qr.png")
        'case_123_qr.png'
    """
    invalid_chars = r'[<>:"/\\|?*\x00-\x1f]'
    sanitized = re.sub(invalid_chars, replacement, filename)
    sanitized = sanitized.strip('. ')

    if not sanitized:
        sanitized = "unnamed"

    return sanitized
