"""
Main Input Handler Module.

Turns a file selection (or drag-and-drop) into payloads ready for OCR.
Only images and PDFs are kept, and at most a configured number of files
are taken from one selection. Nothing is written to disk; payloads live
only as long as the session holds them.

Usage:
    from note_scanner.input_handler import InputHandler, UploadedFile

    handler = InputHandler()
    prepared = handler.prepare([UploadedFile("note.jpg", data)])

Classes:
    UploadedFile: One file as received from the UI
    PreparedFile: The same file encoded for the OCR backends
    InputHandler: Filtering and encoding of a selection
"""

import mimetypes
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from config import get_config
from note_scanner.utils.logger import get_logger
from note_scanner.utils.helpers import build_data_url, encode_base64, format_file_size
from note_scanner.utils.exceptions import IngestionError
from .image_processor import ImageProcessor


# Initialize module logger
logger = get_logger(__name__)

NO_IMAGES_MESSAGE = "画像ファイルを選択してください"


@dataclass
class UploadedFile:
    """
    A file as handed over by the UI.

    Attributes:
        filename: Original filename.
        content: Raw bytes.
        content_type: MIME type declared by the browser, if any.
    """
    filename: str
    content: bytes
    content_type: Optional[str] = None

    def __repr__(self) -> str:
        return (
            f"UploadedFile(filename='{self.filename}', "
            f"type='{self.content_type}', size={len(self.content or b'')})"
        )


@dataclass
class PreparedFile:
    """
    An accepted upload, encoded for the OCR backends.

    Attributes:
        filename: Original filename.
        content_type: Resolved MIME type.
        image_data: Base64 payload.
        image_data_url: ``data:`` URL used for previews and the structured backend.
        metadata: Pillow metadata when the bytes are a decodable image.
    """
    filename: str
    content_type: str
    image_data: str
    image_data_url: str
    metadata: Dict[str, Any] = field(default_factory=dict)


class InputHandler:
    """
    Filters and encodes a batch of uploaded files.

    Attributes:
        max_files: Files beyond this count in one selection are ignored.
        accepted_prefixes: MIME prefixes accepted (``image/``).
        accepted_types: Additional exact MIME types accepted (PDF).

    Example:
        >>> handler = InputHandler()
        >>> prepared = handler.prepare(files)
        >>> len(prepared) <= handler.max_files
        True
    """

    def __init__(self, image_processor: Optional[ImageProcessor] = None) -> None:
        self.max_files = get_config("input.max_files_per_batch", 10)
        self.accepted_prefixes = tuple(get_config("input.accepted_mime_prefixes", ["image/"]))
        self.accepted_types = set(get_config("input.accepted_mime_types", ["application/pdf"]))
        self.image_processor = image_processor or ImageProcessor()

        logger.info(f"InputHandler initialized (max_files={self.max_files})")

    def resolve_content_type(self, upload: UploadedFile) -> Optional[str]:
        """
        MIME type of an upload.

        The declared type wins; otherwise it is guessed from the file
        extension, then sniffed from the bytes.
        """
        if upload.content_type:
            return upload.content_type.lower()

        guessed, _ = mimetypes.guess_type(upload.filename or '')
        if guessed:
            return guessed

        return self.image_processor.sniff_mime_type(upload.content)

    def is_accepted(self, content_type: Optional[str]) -> bool:
        """True for images and PDFs."""
        if not content_type:
            return False
        return content_type.startswith(self.accepted_prefixes) or content_type in self.accepted_types

    def prepare(self, files: Sequence[UploadedFile]) -> List[PreparedFile]:
        """
        Keep the acceptable files of a selection and encode them.

        Args:
            files: Files in selection order.

        Returns:
            Prepared files, in the same order.

        Raises:
            IngestionError: If no image or PDF remains.
        """
        selection = list(files)[:self.max_files]
        if len(files) > self.max_files:
            logger.warning(
                f"{len(files)} files selected, only the first {self.max_files} are used"
            )

        prepared = []
        for upload in selection:
            content_type = self.resolve_content_type(upload)
            if not self.is_accepted(content_type):
                logger.info(f"Skipping non-image file: {upload.filename} ({content_type})")
                continue
            prepared.append(self._encode(upload, content_type))

        if not prepared:
            raise IngestionError(NO_IMAGES_MESSAGE, {"selected": len(selection)})

        logger.info(f"Accepted {len(prepared)} of {len(selection)} file(s)")
        return prepared

    def _encode(self, upload: UploadedFile, content_type: str) -> PreparedFile:
        b64_payload = encode_base64(upload.content or b'')
        metadata = {}
        if content_type.startswith('image/'):
            metadata = self.image_processor.describe(upload.content) or {}

        logger.debug(f"Encoded {upload.filename} ({format_file_size(len(upload.content or b''))})")
        return PreparedFile(
            filename=upload.filename,
            content_type=content_type,
            image_data=b64_payload,
            image_data_url=build_data_url(content_type, b64_payload),
            metadata=metadata
        )
