"""
Camera Session Module.

Live scanning from a video device. Each frame is decoded with the first
strategy only; the video stream itself provides the retries.

The capture device is acquired when the session opens and released
exactly once, whichever way the session ends (decoded text, stop(),
frame budget spent, an exception, or leaving the `with` block).

Usage:
    with CameraSession(device_index=0) as session:
        text = session.scan()

Author: Forensic Engineering Team
"""

import threading
from typing import Any, Callable, Optional

from PIL import Image

from config import get_config
from forensic_qr.utils.logger import get_logger
from forensic_qr.utils.exceptions import CameraUnavailableError
from .engines import EngineRegistry
from .pipeline import DecodePipeline

# Initialize module logger
logger = get_logger(__name__)


def open_video_capture(device_index: int) -> Any:
    """Open an OpenCV capture for the given device."""
    import cv2
    return cv2.VideoCapture(device_index)


def frame_to_image(frame: Any) -> Image.Image:
    """
    Convert a captured frame to a PIL image.

    OpenCV frames are BGR numpy arrays; PIL images pass through.
    """
    if isinstance(frame, Image.Image):
        return frame

    import cv2
    return Image.fromarray(cv2.cvtColor(frame, cv2.COLOR_BGR2RGB))


class CameraSession:
    """
    Scoped live-camera scanning session.

    Attributes:
        device_index: Video device number
        registry: Decoder engines used by this session; closed with the
            session only when the session created it
        pipeline: Decode pipeline bound to the registry
        max_read_failures: Consecutive failed reads tolerated before the
            device is considered lost

    Example:
        >>> with CameraSession(0) as session:
        ...     text = session.scan(max_frames=300)
    """

    def __init__(
        self,
        device_index: Optional[int] = None,
        registry: Optional[EngineRegistry] = None,
        pipeline: Optional[DecodePipeline] = None,
        capture_factory: Optional[Callable[[int], Any]] = None
    ) -> None:
        self.device_index = int(
            device_index if device_index is not None else get_config("camera.device_index", 0)
        )
        # Engines are disposed with the session only when the session built
        # them; a caller-supplied registry or pipeline outlives the session
        self._owns_registry = registry is None and pipeline is None
        if pipeline is not None:
            self.registry = registry or pipeline.registry
        else:
            self.registry = registry or EngineRegistry()
            pipeline = DecodePipeline(self.registry)
        self.pipeline = pipeline
        self.max_read_failures = int(get_config("camera.max_consecutive_read_failures", 30))

        self._capture_factory = capture_factory or open_video_capture
        self._capture = None
        self._closed = False
        self._stop_event = threading.Event()

    @property
    def is_open(self) -> bool:
        return self._capture is not None

    def open(self) -> 'CameraSession':
        """
        Acquire the capture device.

        Raises:
            CameraUnavailableError: If the device cannot be opened or the
                session was already closed.
        """
        if self._closed:
            raise CameraUnavailableError(self.device_index, "session already closed")
        if self._capture is not None:
            return self

        capture = self._capture_factory(self.device_index)
        if capture is None or not capture.isOpened():
            if capture is not None:
                capture.release()
            raise CameraUnavailableError(self.device_index, "device could not be opened")

        self._capture = capture
        logger.info(f"Camera {self.device_index} opened")
        return self

    def stop(self) -> None:
        """Ask a running scan() to finish; safe to call from another thread."""
        self._stop_event.set()

    def scan(self, max_frames: Optional[int] = None) -> Optional[str]:
        """
        Read frames until one decodes.

        The session is closed when scan returns or raises.

        Args:
            max_frames: Stop after this many frames have been decoded
                without success. None scans until success or stop().

        Returns:
            Decoded text, or None if stopped or out of frames.

        Raises:
            CameraUnavailableError: If the device cannot be opened or stops
                delivering frames.
            EngineRegistryClosedError: If the decoder engines were closed
                before or during the scan.
        """
        try:
            self.open()
            frames = 0
            failures = 0

            while not self._stop_event.is_set():
                if max_frames is not None and frames >= max_frames:
                    logger.info(f"Camera scan ended after {frames} frame(s) without a match")
                    return None

                ok, frame = self._capture.read()
                if not ok or frame is None:
                    failures += 1
                    if failures >= self.max_read_failures:
                        raise CameraUnavailableError(
                            self.device_index,
                            f"no frame delivered in {failures} consecutive reads"
                        )
                    continue

                failures = 0
                frames += 1
                outcome = self.pipeline.decode_frame(frame_to_image(frame))
                if outcome.succeeded:
                    logger.info(f"Camera scan matched on frame {frames}")
                    return outcome.text

            logger.info("Camera scan stopped")
            return None
        finally:
            self.close()

    def close(self) -> None:
        """Release the capture device and owned engines. Idempotent."""
        if self._closed:
            return
        self._closed = True
        self._stop_event.set()

        if self._capture is not None:
            self._capture.release()
            self._capture = None
            logger.info(f"Camera {self.device_index} released")

        if self._owns_registry:
            self.registry.close()

    def __enter__(self) -> 'CameraSession':
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
