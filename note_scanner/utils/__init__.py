"""
Utility Module for the Delivery-Note Scanner.

Common utilities used across all other modules:
    - Logging configuration
    - Exception hierarchy
    - Encoding and identifier helpers
"""

from .logger import setup_logger, setup_logger_from_config, get_logger, get_note_logger
from .helpers import (
    generate_note_id,
    encode_base64,
    decode_base64,
    build_data_url,
    format_file_size
)

__all__ = [
    'setup_logger',
    'setup_logger_from_config',
    'get_logger',
    'get_note_logger',
    'generate_note_id',
    'encode_base64',
    'decode_base64',
    'build_data_url',
    'format_file_size'
]
