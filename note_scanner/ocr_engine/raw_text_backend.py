"""
Raw-Text OCR Backend.

Google Cloud Vision ``DOCUMENT_TEXT_DETECTION`` with Japanese/English
language hints. Returns the full detected text; all structure is left to
the extractor's heuristic parser.

Requirements:
    - Google Cloud Vision API key

Author: ML Engineering Team
"""

import time
from typing import Any, Dict

import requests

from config import get_config
from note_scanner.utils.logger import get_logger
from note_scanner.utils.exceptions import ProviderError
from .base import NO_TEXT_MESSAGE, api_error_message

# Initialize module logger
logger = get_logger(__name__)


DEFAULT_ENDPOINT = "https://vision.googleapis.com/v1/images:annotate"
DEFAULT_FAILURE_MESSAGE = "Google Vision API呼び出しに失敗しました"


class RawTextBackend:
    """
    Document text detection backend.

    Attributes:
        api_key: Google Cloud API key.
        endpoint: ``images:annotate`` URL.
        language_hints: OCR language hints.
        timeout: HTTP timeout in seconds.

    Example:
        >>> backend = RawTextBackend(api_key="AIza...")
        >>> text = backend.recognize(b64, data_url)
    """

    name = "raw_text"

    def __init__(self, api_key: str) -> None:
        self.api_key = api_key
        self.endpoint = get_config("ocr.google.endpoint", DEFAULT_ENDPOINT)
        self.language_hints = list(get_config("ocr.google.language_hints", ["ja", "en"]))
        self.timeout = get_config("ocr.timeout", 60)

        logger.debug(f"RawTextBackend initialized (hints={self.language_hints})")

    def build_payload(self, image_data: str) -> Dict[str, Any]:
        """Request body for one image."""
        return {
            "requests": [
                {
                    "image": {"content": image_data},
                    "features": [{"type": "DOCUMENT_TEXT_DETECTION", "maxResults": 1}],
                    "imageContext": {"languageHints": self.language_hints},
                }
            ]
        }

    def recognize(self, image_data: str, image_data_url: str) -> str:
        """
        Recognize a note image.

        Args:
            image_data: Base64 payload sent as image content.
            image_data_url: Preview form (unused by this backend).

        Returns:
            Full detected text.

        Raises:
            ProviderError: On transport failure, HTTP error or no text.
        """
        start_time = time.time()
        try:
            response = requests.post(
                self.endpoint,
                params={"key": self.api_key},
                headers={"Content-Type": "application/json"},
                json=self.build_payload(image_data),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            # The key travels in the query string; keep the URL out of the message
            logger.error(f"Google Vision request failed: {type(e).__name__}")
            raise ProviderError(DEFAULT_FAILURE_MESSAGE, backend=self.name)

        if not response.ok:
            message = api_error_message(response, DEFAULT_FAILURE_MESSAGE)
            logger.error(f"Google Vision HTTP {response.status_code}: {message}")
            raise ProviderError(message, backend=self.name, status_code=response.status_code)

        try:
            body = response.json()
        except ValueError:
            raise ProviderError(DEFAULT_FAILURE_MESSAGE, backend=self.name,
                                status_code=response.status_code)

        responses = body.get("responses") or [{}]
        annotation = responses[0].get("fullTextAnnotation") or {}
        text = annotation.get("text") or ''

        if not text:
            raise ProviderError(NO_TEXT_MESSAGE, backend=self.name)

        logger.info(
            f"Google Vision returned {len(text)} chars in {time.time() - start_time:.2f}s"
        )
        return text
