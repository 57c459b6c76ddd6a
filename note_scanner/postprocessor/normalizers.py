"""
Data Normalizers Module.

Normalization of the two kinds of value a Japanese delivery note carries
in free text:
    - Dates (western 4- and 2-digit years, Reiwa era dates)
    - Yen amounts (``¥1,200``, ``1200円``)

Each date format is handled by its own parser function
``text -> Optional[str]``; DateNormalizer tries them in order and the
first hit wins.

Author: ML Engineering Team
"""

import re
from datetime import date, datetime, timezone
from typing import Callable, List, Optional, Union
from dateutil import parser as date_parser

from note_scanner.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)


# Reiwa 1 is 2019
REIWA_EPOCH = 2018

FULL_YEAR_PATTERN = re.compile(r'(\d{4})[/\-年](\d{1,2})[/\-月](\d{1,2})日?')
SHORT_YEAR_PATTERN = re.compile(r'(\d{2})[/\-](\d{1,2})[/\-](\d{1,2})')
REIWA_PATTERN = re.compile(r'令和(\d{1,3}|元)年(\d{1,2})月(\d{1,2})日')

# Yen amount token: optional currency sign, digits with separators, optional 円
PRICE_PATTERN = re.compile(r'[¥￥]?\s*([\d,]+)\s*円?')

# Longer digit runs are OCR noise, not counts or prices
MAX_NUMBER_DIGITS = 9


def parse_number(digits: str) -> Optional[int]:
    """
    ``"120"`` -> ``120``; None for an empty run or one over MAX_NUMBER_DIGITS.
    """
    if not digits or len(digits) > MAX_NUMBER_DIGITS:
        return None
    return int(digits)


def _format_ymd(year: Union[int, str], month: str, day: str) -> str:
    return f"{year}-{month.zfill(2)}-{day.zfill(2)}"


def parse_full_year_date(text: str) -> Optional[str]:
    """
    ``2024/5/1``, ``2024-05-01``, ``2024年5月1日`` -> ``2024-05-01``.
    """
    match = FULL_YEAR_PATTERN.search(text)
    if not match:
        return None
    return _format_ymd(match.group(1), match.group(2), match.group(3))


def parse_short_year_date(text: str) -> Optional[str]:
    """
    ``23/4/5`` -> ``2023-04-05``. Two-digit years are taken as 20YY.
    """
    match = SHORT_YEAR_PATTERN.search(text)
    if not match:
        return None
    return _format_ymd(f"20{match.group(1)}", match.group(2), match.group(3))


def parse_reiwa_date(text: str) -> Optional[str]:
    """
    ``令和6年5月1日`` -> ``2024-05-01``; ``令和元年`` is year 1.
    """
    match = REIWA_PATTERN.search(text)
    if not match:
        return None
    era_year = 1 if match.group(1) == '元' else int(match.group(1))
    return _format_ymd(REIWA_EPOCH + era_year, match.group(2), match.group(3))


DATE_PARSERS: List[Callable[[str], Optional[str]]] = [
    parse_full_year_date,
    parse_short_year_date,
    parse_reiwa_date,
]


class DateNormalizer:
    """
    Finds the note date in recognized text and normalizes operator dates.

    Example:
        >>> normalizer = DateNormalizer()
        >>> normalizer.extract_date("納品日 令和6年5月1日")
        '2024-05-01'
        >>> normalizer.extract_date("23/4/5 納品")
        '2023-04-05'
    """

    def __init__(self, parsers: Optional[List[Callable[[str], Optional[str]]]] = None) -> None:
        self.parsers = list(parsers) if parsers is not None else list(DATE_PARSERS)

    def extract_date(self, text: str) -> Optional[str]:
        """
        Return the first date any parser finds, as YYYY-MM-DD.

        Args:
            text: Recognized note text.

        Returns:
            Date string, or None if no parser matched.
        """
        if not text:
            return None

        for parser in self.parsers:
            result = parser(text)
            if result:
                logger.debug(f"Date found by {parser.__name__}: {result}")
                return result
        return None

    def to_iso_timestamp(self, value: Union[str, date, datetime]) -> str:
        """
        Convert an operator-supplied date to an ISO-8601 UTC timestamp.

        Plain dates become midnight UTC, matching how a browser reads an
        ``<input type="date">`` value.

        Args:
            value: ``date``, ``datetime`` or ISO string (``2024-05-01``).

        Returns:
            Timestamp such as ``2024-05-01T00:00:00.000Z``.

        Raises:
            ValueError: If the string cannot be parsed.
        """
        if isinstance(value, datetime):
            parsed = value
        elif isinstance(value, date):
            parsed = datetime(value.year, value.month, value.day)
        else:
            parsed = date_parser.isoparse(str(value).strip())

        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        else:
            parsed = parsed.astimezone(timezone.utc)

        return parsed.strftime('%Y-%m-%dT%H:%M:%S.') + f"{parsed.microsecond // 1000:03d}Z"


class AmountNormalizer:
    """
    Reads yen amounts out of a delivery-note line.

    Example:
        >>> normalizer = AmountNormalizer()
        >>> normalizer.extract_amounts("ボールペン 10本 ¥120 1,200円")
        [10, 120, 1200]
        >>> normalizer.extract_unit_price("ボールペン 10本 ¥120 1,200円")
        10
    """

    def to_int(self, amount_str: str) -> Optional[int]:
        """
        ``"¥1,200"`` -> ``1200``; None when no digits are present or the run is too long.
        """
        if not amount_str:
            return None
        return parse_number(re.sub(r'[^\d]', '', amount_str))

    def extract_amounts(self, line: str) -> List[int]:
        """All amount-like tokens on a line, in order of appearance."""
        amounts = []
        for match in PRICE_PATTERN.finditer(line):
            value = self.to_int(match.group(1))
            if value is not None:
                amounts.append(value)
        return amounts

    def extract_unit_price(self, line: str) -> Optional[int]:
        """
        Smallest amount on the line.

        The largest figure on a delivery-note row is usually the extended
        amount, so the minimum is taken as the unit price.
        """
        amounts = self.extract_amounts(line)
        return min(amounts) if amounts else None

    def strip_amounts(self, line: str) -> str:
        """Remove every amount token from a line."""
        return PRICE_PATTERN.sub('', line)
