"""
Output Handler Module for the Forensic QR Architect.

This module provides functionality for:
    - QR code rendering of sealed reports
    - PNG and plain-text export
"""

from .barcode_exporter import BarcodeExporter, ERROR_CORRECTION_LEVELS

__all__ = ['BarcodeExporter', 'ERROR_CORRECTION_LEVELS']
