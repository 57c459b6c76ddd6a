"""
Batch Module for the Delivery-Note Scanner.

Sequential processing of ingested note images and the operator's
editable review state.
"""

from .models import NoteStatus, ScannedNote
from .processor import BatchProcessor, ConfirmedItem

__all__ = ['NoteStatus', 'ScannedNote', 'BatchProcessor', 'ConfirmedItem']
