"""
OCR provider configuration.

The backend choice and its credentials are handed to the pipeline as one
immutable value. Persisting them is the host application's job.
"""

import os
from dataclasses import dataclass, replace
from typing import Optional

from config import get_config
from note_scanner.utils.exceptions import MissingCredentialError, UnknownBackendError

STRUCTURED = 'structured'
RAW_TEXT = 'raw_text'
SUPPORTED_BACKENDS = [STRUCTURED, RAW_TEXT]

# Environment variables consulted by ProviderConfig.from_settings()
BACKEND_ENV = 'NOTE_SCANNER_OCR_BACKEND'
OPENAI_KEY_ENV = 'OPENAI_API_KEY'
GOOGLE_KEY_ENV = 'GOOGLE_VISION_API_KEY'


@dataclass(frozen=True)
class ProviderConfig:
    """
    Selected OCR backend plus one credential per backend.

    Attributes:
        backend: 'structured' (OpenAI vision chat) or 'raw_text'
            (Google Cloud Vision document text detection).
        openai_api_key: Key for the structured backend.
        google_api_key: Key for the raw-text backend.
    """
    backend: str = STRUCTURED
    openai_api_key: str = ''
    google_api_key: str = ''

    def __post_init__(self):
        if self.backend not in SUPPORTED_BACKENDS:
            raise UnknownBackendError(self.backend, SUPPORTED_BACKENDS)

    @classmethod
    def from_settings(cls, backend: Optional[str] = None) -> 'ProviderConfig':
        """
        Build a config from settings.yaml and the environment.

        When no backend is configured anywhere, the structured backend is
        chosen if an OpenAI key is present, otherwise the raw-text one.
        """
        openai_key = os.environ.get(OPENAI_KEY_ENV, '')
        google_key = os.environ.get(GOOGLE_KEY_ENV, '')

        backend = backend or os.environ.get(BACKEND_ENV) or get_config("ocr.backend")
        if not backend:
            backend = STRUCTURED if openai_key else RAW_TEXT

        return cls(backend=backend, openai_api_key=openai_key, google_api_key=google_key)

    @property
    def active_credential(self) -> str:
        """API key of the selected backend (may be empty)."""
        if self.backend == STRUCTURED:
            return self.openai_api_key
        return self.google_api_key

    def require_credential(self) -> str:
        """
        Return the active key.

        Raises:
            MissingCredentialError: If the selected backend has no key.
        """
        key = (self.active_credential or '').strip()
        if not key:
            raise MissingCredentialError(self.backend)
        return key

    def with_backend(self, backend: str) -> 'ProviderConfig':
        """Copy with another backend selected, keys unchanged."""
        return replace(self, backend=backend)

    def __repr__(self) -> str:
        return (
            f"ProviderConfig(backend='{self.backend}', "
            f"openai_api_key={'***' if self.openai_api_key else ''!r}, "
            f"google_api_key={'***' if self.google_api_key else ''!r})"
        )
