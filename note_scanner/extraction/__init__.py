"""
Extraction Module for the Delivery-Note Scanner.

Parses recognized delivery-note text into note fields and line items.

Features:
    - Supplier detection against the catalog
    - Note number and date detection
    - Structured line parsing with a heuristic fallback
    - Catalog matching of every line item

Author: ML Engineering Team
"""

from .extractor import EntityExtractor
from .extraction_result import LineItem, NoteExtraction
from .parsers import (
    HeuristicRules,
    RawLineItem,
    detect_supplier,
    parse_note_number,
    parse_structured_items,
    parse_heuristic_items
)

__all__ = [
    'EntityExtractor',
    'LineItem',
    'NoteExtraction',
    'HeuristicRules',
    'RawLineItem',
    'detect_supplier',
    'parse_note_number',
    'parse_structured_items',
    'parse_heuristic_items'
]
