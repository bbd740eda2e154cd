"""
Barcode Exporter Module.

This module renders sealed report text as a QR code image using the
qrcode library.

Features:
    - Configurable error-correction level (L / M / Q / H)
    - Automatic symbol version selection
    - PNG export into the configured output directory
    - Plain-text export of the sealed report alongside the image

Author: Forensic Engineering Team
"""

from pathlib import Path
from typing import Optional

import qrcode
from qrcode.exceptions import DataOverflowError
from qrcode.image.pil import PilImage
from PIL import Image

from config import get_config
from forensic_qr.utils.logger import get_logger
from forensic_qr.utils.helpers import ensure_directory, safe_filename
from forensic_qr.utils.exceptions import BarcodeEncodingError, OutputError

# Initialize module logger
logger = get_logger(__name__)


ERROR_CORRECTION_LEVELS = {
    'L': qrcode.constants.ERROR_CORRECT_L,
    'M': qrcode.constants.ERROR_CORRECT_M,
    'Q': qrcode.constants.ERROR_CORRECT_Q,
    'H': qrcode.constants.ERROR_CORRECT_H,
}


class BarcodeExporter:
    """
    Encodes text into QR code images.

    Attributes:
        output_dir: Directory for exported files
        error_correction: Error-correction level letter
        box_size: Pixels per module
        border: Quiet-zone width in modules

    Example:
        >>> exporter = BarcodeExporter()
        >>> path = exporter.export(sealed.report_text)
        >>> print(f"Saved to: {path}")
    """

    DEFAULT_FILENAME = "forensic_qr.png"

    def __init__(
        self,
        output_dir: Optional[str] = None,
        error_correction: Optional[str] = None
    ) -> None:
        """Initialize the barcode exporter with configuration."""
        self.output_dir = Path(output_dir or get_config("paths.output_dir", "outputs"))
        level = (error_correction or get_config("barcode.error_correction", "M")).upper()
        if level not in ERROR_CORRECTION_LEVELS:
            raise ValueError(f"Unknown error-correction level: {level}")
        self.error_correction = level
        self.box_size = int(get_config("barcode.box_size", 10))
        self.border = int(get_config("barcode.border", 4))

        logger.debug(
            f"BarcodeExporter initialized (level={self.error_correction}, "
            f"output_dir={self.output_dir})"
        )

    def render(self, text: str) -> Image.Image:
        """
        Encode text as a QR code.

        Args:
            text: Payload, encoded as UTF-8 bytes.

        Returns:
            RGB PIL Image of the symbol.

        Raises:
            BarcodeEncodingError: If the text is empty or does not fit in
                the largest symbol at the configured level.
        """
        if not text:
            raise BarcodeEncodingError("empty payload", 0)

        qr = qrcode.QRCode(
            version=None,
            error_correction=ERROR_CORRECTION_LEVELS[self.error_correction],
            box_size=self.box_size,
            border=self.border,
            image_factory=PilImage
        )
        qr.add_data(text.encode('utf-8'))

        try:
            qr.make(fit=True)
        except DataOverflowError as e:
            payload_length = len(text.encode('utf-8'))
            logger.error(f"Payload of {payload_length} bytes does not fit in a QR symbol")
            raise BarcodeEncodingError(str(e) or "data overflow", payload_length)

        logger.debug(f"QR symbol version {qr.version} ({self.error_correction})")
        return qr.make_image(fill_color="black", back_color="white").get_image().convert('RGB')

    def export(self, text: str, filename: Optional[str] = None) -> str:
        """
        Encode text and save the symbol as PNG.

        Args:
            text: Payload.
            filename: Output filename. Defaults to forensic_qr.png.

        Returns:
            Path to the written image.

        Raises:
            BarcodeEncodingError: If encoding fails.
            OutputError: If the file cannot be written.
        """
        image = self.render(text)
        filepath = self._target(filename or self.DEFAULT_FILENAME, '.png')

        try:
            image.save(filepath, format='PNG')
        except OSError as e:
            logger.error(f"Failed to write {filepath}: {e}")
            raise OutputError(f"Could not save barcode image: {filepath}", {'reason': str(e)})

        logger.info(f"QR image saved: {filepath}")
        return str(filepath)

    def export_report(self, report_text: str, filename: str) -> str:
        """
        Save the sealed report text next to its barcode.

        Args:
            report_text: Sealed report.
            filename: Output filename.

        Returns:
            Path to the written text file.
        """
        filepath = self._target(filename, '.txt')
        try:
            filepath.write_text(report_text, encoding='utf-8')
        except OSError as e:
            logger.error(f"Failed to write {filepath}: {e}")
            raise OutputError(f"Could not save report: {filepath}", {'reason': str(e)})

        logger.info(f"Report saved: {filepath}")
        return str(filepath)

    def _target(self, filename: str, suffix: str) -> Path:
        path = Path(filename)
        if path.parent != Path('.'):
            ensure_directory(path.parent)
            target = path
        else:
            ensure_directory(self.output_dir)
            target = self.output_dir / safe_filename(path.name)
        if not target.suffix:
            target = target.with_suffix(suffix)
        return target
