"""
Interface shared by the OCR backends.
"""

from typing import Protocol

import requests

NO_TEXT_MESSAGE = "テキストを検出できませんでした"


class OCRBackend(Protocol):
    """A backend turns one note image into recognized text."""

    name: str

    def recognize(self, image_data: str, image_data_url: str) -> str:
        """Return recognized text or raise ProviderError."""
        ...


def api_error_message(response: requests.Response, default: str) -> str:
    """
    ``error.message`` from an API error body, else ``default``.

    Google reports failures as ``{"error": {"message": ...}}``.
    """
    try:
        body = response.json()
    except ValueError:
        return default
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return error["message"]
    return default
