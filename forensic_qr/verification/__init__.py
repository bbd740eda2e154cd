"""
Verification Module for the Forensic QR Architect.

This module checks scanned text:
    - Parsing sealed reports back into structured packages
    - Digest recomputation and TRUSTED / TAMPERED verdicts
    - Heuristic classification of text that is not a sealed package
    - Shareable-link decoding and verification
"""

from .results import (
    ScanResult,
    AnalysisReport,
    VerificationOutcome,
    LinkVerification,
    VerificationStatus,
    RiskLevel,
    ScanSource
)
from .parser import PackageParser, FieldRule, FIELD_RULES
from .classifier import ContentClassifier, ContentCheck
from .layout_check import LayoutCheck
from .verifier import VerificationEngine
from .share_link import build_share_link, verify_share_link

__all__ = [
    'ScanResult',
    'AnalysisReport',
    'VerificationOutcome',
    'LinkVerification',
    'VerificationStatus',
    'RiskLevel',
    'ScanSource',
    'PackageParser',
    'FieldRule',
    'FIELD_RULES',
    'ContentClassifier',
    'ContentCheck',
    'LayoutCheck',
    'VerificationEngine',
    'build_share_link',
    'verify_share_link'
]
