"""
Utility Module for the Forensic QR Architect.

This module provides common utilities used across all other modules:
    - Logging configuration
    - Exception hierarchy
    - Timestamp and file helpers
"""

from .logger import setup_logger, get_logger
from .helpers import ensure_directory, iso_utc_timestamp

__all__ = [
    'setup_logger',
    'get_logger',
    'ensure_directory',
    'iso_utc_timestamp'
]
