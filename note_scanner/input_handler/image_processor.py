"""
Image Processor Module.

Inspects uploaded note images with Pillow: format, dimensions and MIME
type. The bytes sent to the OCR backend are never altered; deskewing,
binarization and other clean-up are left to the OCR service.

Author: ML Engineering Team
"""

import io
from typing import Any, Dict, Optional

from PIL import Image, UnidentifiedImageError

from note_scanner.utils.logger import get_logger
from note_scanner.utils.helpers import format_file_size

# Initialize module logger
logger = get_logger(__name__)


class ImageProcessor:
    """
    Read-only inspector for uploaded images.

    Example:
        >>> processor = ImageProcessor()
        >>> processor.describe(png_bytes)
        {'format': 'PNG', 'mime_type': 'image/png', 'width': 1240, ...}
        >>> processor.describe(b"%PDF-1.7 ...") is None
        True
    """

    def describe(self, content: bytes) -> Optional[Dict[str, Any]]:
        """
        Extract metadata from image bytes.

        Args:
            content: Raw file bytes.

        Returns:
            Metadata dictionary, or None when Pillow cannot decode the
            bytes (PDFs, truncated uploads).
        """
        if not content:
            return None

        try:
            with Image.open(io.BytesIO(content)) as image:
                metadata = {
                    'format': image.format,
                    'mime_type': Image.MIME.get(image.format) if image.format else None,
                    'width': image.width,
                    'height': image.height,
                    'mode': image.mode,
                    'file_size_bytes': len(content),
                }
        except (UnidentifiedImageError, OSError) as e:
            logger.debug(f"Not a decodable image ({format_file_size(len(content))}): {e}")
            return None

        logger.debug(
            f"Inspected {metadata['format']} image "
            f"{metadata['width']}x{metadata['height']} ({format_file_size(len(content))})"
        )
        return metadata

    def sniff_mime_type(self, content: bytes) -> Optional[str]:
        """MIME type detected from the bytes themselves, if any."""
        if content and content.lstrip()[:5] == b'%PDF-':
            return 'application/pdf'
        metadata = self.describe(content)
        if metadata:
            return metadata['mime_type']
        return None
