"""
Helper Utilities Module.

Small, generic functions shared across the scanner:
    - generate_note_id: Session-unique identifiers for scanned notes
    - encode_base64 / build_data_url: Payload encodings sent to OCR backends
    - format_file_size: Human-readable sizes for log lines
"""

import base64
import random
import string
import time


_ID_ALPHABET = string.digits + string.ascii_lowercase


def generate_note_id(prefix: str = "note") -> str:
    """
    Generate an identifier of the form ``note-<epoch ms>-<9 base36 chars>``.

    Example:
        >>> generate_note_id()
        'note-1760659200000-k3j9x0a2b'
    """
    millis = int(time.time() * 1000)
    suffix = ''.join(random.choices(_ID_ALPHABET, k=9))
    return f"{prefix}-{millis}-{suffix}"


def encode_base64(content: bytes) -> str:
    """Encode raw bytes as an ASCII base64 string."""
    return base64.b64encode(content).decode('ascii')


def decode_base64(data: str) -> bytes:
    """Decode a base64 string produced by encode_base64()."""
    return base64.b64decode(data)


def build_data_url(content_type: str, b64_payload: str) -> str:
    """
    Build a ``data:`` URL from a MIME type and base64 payload.

    Example:
        >>> build_data_url("image/png", "iVBORw0KGgo=")
        'data:image/png;base64,iVBORw0KGgo='
    """
    return f"data:{content_type};base64,{b64_payload}"


def format_file_size(size_bytes: int) -> str:
    """
    Format file size in human-readable format.

    Example:
        >>> format_file_size(1536)
        '1.5 KB'
    """
    size = float(size_bytes)
    for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
        if size < 1024.0:
            return f"{size:.1f} {unit}"
        size /= 1024.0
    return f"{size:.1f} PB"
