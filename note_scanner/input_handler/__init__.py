"""
Input Handler Module for the Delivery-Note Scanner.

This module provides functionality for:
    - Filtering a file selection down to images and PDFs
    - Capping the number of files taken from one selection
    - Encoding payloads as base64 and ``data:`` URLs
    - Inspecting image metadata with Pillow

Author: ML Engineering Team
"""

from .handler import InputHandler, UploadedFile, PreparedFile
from .image_processor import ImageProcessor

__all__ = ['InputHandler', 'UploadedFile', 'PreparedFile', 'ImageProcessor']
