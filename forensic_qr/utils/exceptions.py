"""
Custom Exceptions Module.

This module defines the exceptions used throughout the forensic QR
system. Verification outcomes (TRUSTED, TAMPERED, unrecognized text) are
results, not exceptions; the classes below cover the paths where work
genuinely cannot proceed.

Exception Hierarchy:
    ForensicQRError (base)
    ├── ValidationError
    ├── DecodeError
    │   ├── DecoderEngineNotAvailableError
    │   ├── DecoderEngineError
    │   ├── ImageLoadError
    │   └── CameraUnavailableError
    ├── ShareLinkError
    └── OutputError
        └── BarcodeEncodingError
"""

from typing import List, Optional


class ForensicQRError(Exception):
    """
    Base exception for all forensic QR errors.

    Attributes:
        message: Human-readable error message.
        details: Optional dictionary with additional error details.
    """

    def __init__(self, message: str, details: dict = None):
        """
        Initialize the exception.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional context.
        """
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# GENERATION ERRORS
# =============================================================================

class ValidationError(ForensicQRError):
    """
    Raised when package generation inputs are missing or malformed.

    No partial package is produced when this is raised.

    Example:
        >>> raise ValidationError(["badge_id", "role"])
    """

    def __init__(self, missing_fields: List[str], reason: Optional[str] = None):
        self.missing_fields = list(missing_fields)
        message = reason or (
            f"Please fill in all required fields: {', '.join(self.missing_fields)}"
        )
        details = {"fields": self.missing_fields}
        super().__init__(message, details)


# =============================================================================
# DECODE ERRORS
# =============================================================================

class DecodeError(ForensicQRError):
    """Base exception for barcode decoding errors."""
    pass


class DecoderEngineNotAvailableError(DecodeError):
    """Raised when a configured decoder engine cannot be loaded."""

    def __init__(self, engine_name: str, reason: str = None):
        message = f"Decoder engine not available: {engine_name}"
        details = {"engine": engine_name, "reason": reason}
        super().__init__(message, details)


class EngineRegistryClosedError(DecoderEngineNotAvailableError):
    """Raised when an engine is requested from a registry that was closed."""

    def __init__(self, engine_name: str):
        super().__init__(engine_name, "engine registry closed")


class DecoderEngineError(DecodeError):
    """Raised when a decoder engine fails while processing an image."""

    def __init__(self, engine_name: str, reason: str = None):
        message = f"Decoder engine failed: {engine_name}"
        details = {"engine": engine_name, "reason": reason}
        super().__init__(message, details)


class ImageLoadError(DecodeError):
    """Raised when an uploaded image cannot be opened."""

    def __init__(self, filepath: str, reason: str = None):
        message = f"Corrupted or unreadable image: {filepath}"
        details = {"filepath": filepath, "reason": reason}
        super().__init__(message, details)


class CameraUnavailableError(DecodeError):
    """Raised when the capture device cannot be opened or stops delivering frames."""

    def __init__(self, device: int, reason: str = None):
        message = "Camera access denied or unavailable. Check permissions."
        details = {"device": device, "reason": reason}
        super().__init__(message, details)


# =============================================================================
# SHARE LINK ERRORS
# =============================================================================

class ShareLinkError(ForensicQRError):
    """Raised when a shareable-link payload cannot be decoded."""

    def __init__(self, reason: str = None):
        message = "Malformed shareable-link payload"
        details = {"reason": reason}
        super().__init__(message, details)


# =============================================================================
# OUTPUT ERRORS
# =============================================================================

class OutputError(ForensicQRError):
    """Base exception for output handling errors."""
    pass


class BarcodeEncodingError(OutputError):
    """Raised when report text cannot be rendered as a barcode."""

    def __init__(self, reason: str = None, payload_length: int = None):
        message = "Failed to encode barcode"
        details = {"reason": reason, "payload_length": payload_length}
        super().__init__(message, details)


__all__ = [
    'ForensicQRError',
    'ValidationError',
    'DecodeError',
    'DecoderEngineNotAvailableError',
    'EngineRegistryClosedError',
    'DecoderEngineError',
    'ImageLoadError',
    'CameraUnavailableError',
    'ShareLinkError',
    'OutputError',
    'BarcodeEncodingError',
]
