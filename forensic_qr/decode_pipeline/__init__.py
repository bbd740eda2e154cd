"""
Decode Pipeline Module for the Forensic QR Architect.

This module turns images and camera frames into text:
    - Image loading and preprocessing (Pillow)
    - Decoder engines (pyzbar, OpenCV) behind a session-owned registry
    - Ordered decode strategies run as a state machine
    - Scoped live camera sessions
"""

from .image_processor import ImageProcessor
from .engines import DecoderEngine, ZBarEngine, OpenCVEngine, EngineRegistry, ENGINE_FACTORIES
from .pipeline import (
    DecodePipeline,
    DecodeStrategy,
    DecodeState,
    DecodeOutcome,
    DecodeAttempt,
    build_strategies,
    EXHAUSTED_MESSAGE
)
from .camera import CameraSession

__all__ = [
    'ImageProcessor',
    'DecoderEngine',
    'ZBarEngine',
    'OpenCVEngine',
    'EngineRegistry',
    'ENGINE_FACTORIES',
    'DecodePipeline',
    'DecodeStrategy',
    'DecodeState',
    'DecodeOutcome',
    'DecodeAttempt',
    'build_strategies',
    'EXHAUSTED_MESSAGE',
    'CameraSession'
]
