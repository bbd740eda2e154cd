"""
Decoder Engine Module.

This module wraps the barcode decoding libraries behind one interface so
the decode pipeline can fall back from one to another.

Supported Engines:
    - zbar: libzbar through pyzbar (primary)
    - opencv: OpenCV QRCodeDetector (secondary)

Engines are owned by an EngineRegistry that belongs to one scanning
session; they are built lazily on first use, reused across attempts to
avoid warm-up cost, and disposed when the session ends.

Author: Forensic Engineering Team
"""

from typing import Callable, Dict, List, Optional

from PIL import Image

from forensic_qr.utils.logger import get_logger
from forensic_qr.utils.exceptions import (
    DecoderEngineError,
    DecoderEngineNotAvailableError,
    EngineRegistryClosedError
)

# Initialize module logger
logger = get_logger(__name__)


def _bytes_to_text(data: bytes) -> str:
    try:
        return data.decode('utf-8')
    except UnicodeDecodeError:
        return data.decode('latin-1')


class DecoderEngine:
    """
    Interface for a barcode decoding backend.

    try_decode returns the decoded text, or None when no code was found.
    Engine failures raise DecoderEngineError.
    """

    name = "base"

    def try_decode(self, image: Image.Image) -> Optional[str]:
        raise NotImplementedError

    def close(self) -> None:
        """Release engine resources."""


class ZBarEngine(DecoderEngine):
    """
    QR decoding through libzbar (pyzbar).

    Raises:
        DecoderEngineNotAvailableError: If pyzbar or the zbar shared
            library is missing.
    """

    name = "zbar"

    def __init__(self) -> None:
        try:
            from pyzbar import pyzbar
        except ImportError as e:
            raise DecoderEngineNotAvailableError(
                self.name, f"pyzbar/libzbar not installed: {e}"
            )
        self._pyzbar = pyzbar
        logger.debug("ZBar engine ready")

    def try_decode(self, image: Image.Image) -> Optional[str]:
        try:
            symbols = self._pyzbar.decode(image, symbols=[self._pyzbar.ZBarSymbol.QRCODE])
        except Exception as e:
            raise DecoderEngineError(self.name, str(e))

        for symbol in symbols:
            if symbol.data:
                return _bytes_to_text(symbol.data)
        return None


class OpenCVEngine(DecoderEngine):
    """
    QR decoding through OpenCV's QRCodeDetector.

    Raises:
        DecoderEngineNotAvailableError: If opencv-python is missing.
    """

    name = "opencv"

    def __init__(self) -> None:
        try:
            import cv2
            import numpy as np
        except ImportError as e:
            raise DecoderEngineNotAvailableError(self.name, f"opencv-python not installed: {e}")
        self._np = np
        self._detector = cv2.QRCodeDetector()
        logger.debug("OpenCV engine ready")

    def try_decode(self, image: Image.Image) -> Optional[str]:
        gray = self._np.array(image.convert('L'))
        try:
            text, points, _ = self._detector.detectAndDecode(gray)
        except Exception as e:
            raise DecoderEngineError(self.name, str(e))
        return text or None

    def close(self) -> None:
        self._detector = None


ENGINE_FACTORIES: Dict[str, Callable[[], DecoderEngine]] = {
    ZBarEngine.name: ZBarEngine,
    OpenCVEngine.name: OpenCVEngine,
}


class EngineRegistry:
    """
    Session-owned cache of decoder engines.

    Engines are constructed on first request and kept for the lifetime
    of the registry. An engine that fails to load is remembered so it is
    not retried on every frame.

    Attributes:
        factories: Engine name -> zero-argument constructor

    Example:
        >>> with EngineRegistry() as registry:
        ...     pipeline = DecodePipeline(registry)
        ...     outcome = pipeline.run_file("upload.png")
    """

    def __init__(self, factories: Optional[Dict[str, Callable[[], DecoderEngine]]] = None) -> None:
        self.factories = dict(factories if factories is not None else ENGINE_FACTORIES)
        self._engines: Dict[str, DecoderEngine] = {}
        self._unavailable: Dict[str, DecoderEngineNotAvailableError] = {}
        self._closed = False

    def get(self, name: str) -> DecoderEngine:
        """
        Return the engine registered under name, building it if needed.

        Raises:
            DecoderEngineNotAvailableError: If the engine is unknown or
                cannot be loaded.
            EngineRegistryClosedError: If the registry has been closed.
        """
        if self._closed:
            raise EngineRegistryClosedError(name)
        if name in self._engines:
            return self._engines[name]
        if name in self._unavailable:
            raise self._unavailable[name]

        factory = self.factories.get(name)
        if factory is None:
            raise DecoderEngineNotAvailableError(name, "unknown engine")

        try:
            engine = factory()
        except DecoderEngineNotAvailableError as e:
            logger.warning(str(e))
            self._unavailable[name] = e
            raise

        self._engines[name] = engine
        logger.debug(f"Decoder engine '{name}' initialized")
        return engine

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def active_engines(self) -> List[str]:
        """Names of the engines built so far, in construction order."""
        return list(self._engines)

    def close(self) -> None:
        """Dispose every engine built by this registry. Idempotent."""
        if self._closed:
            return
        active = self.active_engines
        for name in active:
            self._engines[name].close()
            logger.debug(f"Decoder engine '{name}' disposed")
        self._engines.clear()
        self._closed = True
        logger.debug(f"Engine registry closed ({len(active)} engine(s) disposed)")

    def __enter__(self) -> 'EngineRegistry':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
