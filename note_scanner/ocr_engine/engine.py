"""
Main OCR Engine Module.

OCREngine is the single entry point the batch processor uses to turn a
note image into text. The backend is chosen once, from the
ProviderConfig passed at construction; a failing backend is never
swapped for the other one and calls are never retried here.

Usage:
    from note_scanner.ocr_engine import OCREngine, ProviderConfig

    engine = OCREngine(ProviderConfig(backend="raw_text", google_api_key="..."))
    text = engine.recognize(image_data, image_data_url)

Author: ML Engineering Team
"""

import time
from typing import Any, Dict

from note_scanner.utils.logger import get_logger
from note_scanner.utils.exceptions import ProviderError, UnknownBackendError
from .base import OCRBackend
from .provider_config import ProviderConfig, STRUCTURED, RAW_TEXT, SUPPORTED_BACKENDS
from .structured_backend import StructuredBackend
from .raw_text_backend import RawTextBackend

# Initialize module logger
logger = get_logger(__name__)


class OCREngine:
    """
    Unified interface over the structured and raw-text OCR backends.

    Supported Backends:
        - structured: OpenAI vision chat, returns formatted item lines
        - raw_text: Google Cloud Vision document text detection

    Attributes:
        provider_config: Configuration the engine was built from.
        backend_name: Name of the active backend.
        backend: The active backend instance.

    Example:
        >>> engine = OCREngine(config)
        >>> text = engine.recognize(note.image_data, note.image_data_url)
    """

    def __init__(self, provider_config: ProviderConfig) -> None:
        """
        Initialize the OCR engine.

        Args:
            provider_config: Backend selection and credentials.

        Raises:
            MissingCredentialError: If the selected backend has no key.
            UnknownBackendError: If the backend name is not supported.
        """
        self.provider_config = provider_config
        self.backend_name = provider_config.backend
        self.backend: OCRBackend = self._initialize_backend()

        logger.info(f"OCR Engine initialized with backend: {self.backend_name}")

    def _initialize_backend(self) -> OCRBackend:
        api_key = self.provider_config.require_credential()

        if self.backend_name == STRUCTURED:
            return StructuredBackend(api_key)

        elif self.backend_name == RAW_TEXT:
            return RawTextBackend(api_key)

        raise UnknownBackendError(self.backend_name, SUPPORTED_BACKENDS)

    def recognize(self, image_data: str, image_data_url: str) -> str:
        """
        Recognize text in one note image.

        Args:
            image_data: Base64 image payload.
            image_data_url: ``data:`` URL preview form of the same image.

        Returns:
            Recognized text, never empty.

        Raises:
            ProviderError: If the backend call fails or finds no text.
        """
        if not image_data:
            raise ProviderError("画像データがありません", backend=self.backend_name)

        start_time = time.time()
        logger.debug(f"Recognizing text using {self.backend_name} backend")
        text = self.backend.recognize(image_data, image_data_url)
        logger.debug(f"Recognition finished in {time.time() - start_time:.2f}s")
        return text

    def get_backend_info(self) -> Dict[str, Any]:
        """Backend details safe to show in a settings screen (no keys)."""
        info = {'backend': self.backend_name}
        for attr in ('endpoint', 'base_url', 'model', 'language_hints', 'timeout'):
            if hasattr(self.backend, attr):
                info[attr] = getattr(self.backend, attr)
        return info
