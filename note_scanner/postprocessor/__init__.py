"""
Post-Processing Module for the Delivery-Note Scanner.

Normalization of values found in recognized note text:
    - Date detection (western and Japanese era formats)
    - Yen amount parsing

Author: ML Engineering Team
"""

from .normalizers import (
    DateNormalizer,
    AmountNormalizer,
    DATE_PARSERS,
    parse_full_year_date,
    parse_short_year_date,
    parse_reiwa_date
)

__all__ = [
    'DateNormalizer',
    'AmountNormalizer',
    'DATE_PARSERS',
    'parse_full_year_date',
    'parse_short_year_date',
    'parse_reiwa_date'
]
