"""
Image Processor Module.

This module prepares still images for barcode decoding:
    - Image loading and validation
    - Orientation correction from EXIF data
    - RGB normalization
    - Padding onto a white canvas (engines often miss codes touching the edge)
    - Upscaling with contrast/brightness enhancement for low-quality captures

Supports: JPG, JPEG, PNG, TIFF, BMP, GIF, WEBP

Author: Forensic Engineering Team
"""

from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from PIL import Image, ImageEnhance, ImageOps

from config import get_config
from forensic_qr.utils.logger import get_logger
from forensic_qr.utils.exceptions import ImageLoadError

# Initialize module logger
logger = get_logger(__name__)


class ImageProcessor:
    """
    Loads uploaded images and derives decode-friendly variants.

    Attributes:
        padding: White border added around the image, in pixels
        scale_factor: Upscaling factor for the enhanced variant
        contrast: Contrast multiplier for the enhanced variant
        brightness: Brightness multiplier for the enhanced variant

    Example:
        >>> processor = ImageProcessor()
        >>> image, metadata = processor.load("evidence_qr.png")
        >>> padded = processor.pad(image)
        >>> padded.width == image.width + 2 * processor.padding
        True
    """

    def __init__(
        self,
        padding: Optional[int] = None,
        scale_factor: Optional[float] = None,
        contrast: Optional[float] = None,
        brightness: Optional[float] = None
    ) -> None:
        """Initialize the image processor with configuration."""
        self.padding = int(padding if padding is not None else get_config("decode.padding", 100))
        self.scale_factor = float(
            scale_factor if scale_factor is not None else get_config("decode.scale_factor", 2)
        )
        self.contrast = float(contrast if contrast is not None else get_config("decode.contrast", 1.2))
        self.brightness = float(
            brightness if brightness is not None else get_config("decode.brightness", 1.1)
        )

        logger.debug(
            f"ImageProcessor initialized (padding={self.padding}, "
            f"scale={self.scale_factor}, contrast={self.contrast})"
        )

    def load(self, filepath: Union[str, Path]) -> Tuple[Image.Image, Dict[str, Any]]:
        """
        Load an uploaded image for decoding.

        Args:
            filepath: Path to the image file.

        Returns:
            Tuple of (RGB PIL Image, metadata dictionary).

        Raises:
            ImageLoadError: If the image cannot be read.
        """
        filepath = Path(filepath)
        logger.info(f"Loading image: {filepath.name}")

        try:
            with Image.open(filepath) as opened:
                opened.load()
                metadata = {
                    'original_filename': filepath.name,
                    'format': opened.format,
                    'original_width': opened.width,
                    'original_height': opened.height,
                    'original_mode': opened.mode,
                }
                image = ImageOps.exif_transpose(opened)
                image = self.to_rgb(image)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load image {filepath}: {e}")
            raise ImageLoadError(str(filepath), str(e))

        return image, metadata

    def to_rgb(self, image: Image.Image) -> Image.Image:
        """
        Convert image to RGB mode.

        Transparent pixels are flattened onto white so that codes printed on
        transparent backgrounds keep their quiet zone.

        Args:
            image: Input PIL Image.

        Returns:
            RGB image.
        """
        if image.mode == 'RGB':
            return image

        if image.mode in ('RGBA', 'LA') or (image.mode == 'P' and 'transparency' in image.info):
            rgba = image.convert('RGBA')
            background = Image.new('RGB', rgba.size, (255, 255, 255))
            background.paste(rgba, mask=rgba.split()[3])
            return background

        return image.convert('RGB')

    def pad(self, image: Image.Image) -> Image.Image:
        """
        Center the image on a white canvas with a fixed border.

        Args:
            image: Input PIL Image.

        Returns:
            Padded RGB image.
        """
        image = self.to_rgb(image)
        canvas = Image.new(
            'RGB',
            (image.width + 2 * self.padding, image.height + 2 * self.padding),
            (255, 255, 255)
        )
        canvas.paste(image, (self.padding, self.padding))
        return canvas

    def enhance(self, image: Image.Image) -> Image.Image:
        """
        Upscale, raise contrast and brightness, and convert to grayscale.

        Args:
            image: Input PIL Image.

        Returns:
            Enhanced grayscale image.
        """
        image = self.to_rgb(image)
        size = (int(image.width * self.scale_factor), int(image.height * self.scale_factor))
        image = image.resize(size, Image.Resampling.BICUBIC)
        image = ImageEnhance.Contrast(image).enhance(self.contrast)
        image = ImageEnhance.Brightness(image).enhance(self.brightness)
        return image.convert('L')
