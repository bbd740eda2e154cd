"""
P.H.A.N.I.X Forensic QR Architect - Application Package.

Seals structured evidence metadata into a tamper-evident text report
suitable for QR encoding, and verifies scanned reports by recomputing
their SHA-256 digest. Each module has a single responsibility.

Modules:
    - sealing: Canonicalization, digest, report layout, generation
    - verification: Parsing, digest comparison, heuristic classification,
      shareable links
    - decode_pipeline: Still-image and camera QR decoding
    - output_handler: QR image export
    - utils: Logging, exceptions, helpers

Architecture:
    Operator input -> Canonicalize -> Digest -> Sealed report -> QR
    QR / text -> Decode -> Parse -> Recompute digest -> TRUSTED | TAMPERED
                                 -> (unrecognized) Classify -> risk report
"""

__version__ = "1.0.0"
__author__ = "Forensic Engineering Team"

__all__ = [
    'sealing',
    'verification',
    'decode_pipeline',
    'output_handler',
    'utils'
]
