"""
OCR Engine Module for the Delivery-Note Scanner.

Converts a note image into recognized text through one of two external
services, selected by configuration:
    - structured: OpenAI vision chat with a fixed extraction prompt
    - raw_text: Google Cloud Vision document text detection

Author: ML Engineering Team
"""

from .engine import OCREngine
from .base import OCRBackend
from .provider_config import ProviderConfig, STRUCTURED, RAW_TEXT, SUPPORTED_BACKENDS
from .structured_backend import StructuredBackend
from .raw_text_backend import RawTextBackend

__all__ = [
    'OCREngine',
    'OCRBackend',
    'ProviderConfig',
    'STRUCTURED',
    'RAW_TEXT',
    'SUPPORTED_BACKENDS',
    'StructuredBackend',
    'RawTextBackend'
]
