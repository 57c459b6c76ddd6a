"""
Text Parsers for Recognized Delivery Notes.

Pure functions over recognized text. Each one either finds what it is
looking for or returns None / an empty list, so the extractor can run
them as an ordered cascade.

Line items come from one of two parsers:
    - parse_structured_items: the ``商品名: X / 数量: N`` lines the
      structured backend is prompted to emit
    - parse_heuristic_items: line-by-line guessing for raw OCR text,
      used only when the structured parser finds nothing

Author: ML Engineering Team
"""

import re
from dataclasses import dataclass
from functools import cached_property
from typing import List, Optional, Sequence, Tuple

from config import get_config
from note_scanner.catalog import Supplier
from note_scanner.postprocessor.normalizers import AmountNormalizer, parse_number

NOTE_NUMBER_PATTERN = re.compile(r'納品書(?:番号)?[：:\s]*([A-Za-z0-9\-]+)')
STRUCTURED_ITEM_PATTERN = re.compile(r'商品名[：:]\s*(.+?)\s*[/|]\s*数量[：:]\s*(\d+)')
CURRENCY_SIGN_PATTERN = re.compile(r'[¥￥]')
DIGIT_RUN_PATTERN = re.compile(r'[\d,]+')

DEFAULT_SKIP_PREFIXES = (
    '品名', '商品名', '数量', '単価', '金額', '合計', '小計',
    '納品書', '御中', '様', 'TEL', 'FAX', '〒',
)
DEFAULT_UNITS = ('個', '本', '枚', '箱', 'セット', 'kg', 'g', 'm', 'cm', 'mm')


@dataclass(frozen=True)
class RawLineItem:
    """A product row before catalog matching."""
    raw_text: str
    product_name: str
    quantity: int
    unit_price: Optional[int] = None


@dataclass(frozen=True)
class HeuristicRules:
    """
    Tunables for the fallback line parser.

    Attributes:
        skip_prefixes: Lines starting with one of these are headers,
            totals, addresses or honorifics, never products.
        units: Counter words that may follow a quantity.
        min_quantity / max_quantity: Exclusive bounds; values outside
            are phone numbers, postcodes or amounts.
        min_line_length: Shorter lines are ignored.
        min_name_length: Shorter product names are ignored.
    """
    skip_prefixes: Tuple[str, ...] = DEFAULT_SKIP_PREFIXES
    units: Tuple[str, ...] = DEFAULT_UNITS
    min_quantity: int = 0
    max_quantity: int = 10000
    min_line_length: int = 3
    min_name_length: int = 2

    @classmethod
    def from_config(cls) -> 'HeuristicRules':
        """Build rules from the ``extraction`` section of settings.yaml."""
        return cls(
            skip_prefixes=tuple(get_config("extraction.skip_prefixes", DEFAULT_SKIP_PREFIXES)),
            units=tuple(get_config("extraction.units", DEFAULT_UNITS)),
            min_quantity=get_config("extraction.quantity.min_exclusive", 0),
            max_quantity=get_config("extraction.quantity.max_exclusive", 10000),
            min_line_length=get_config("extraction.min_line_length", 3),
            min_name_length=get_config("extraction.min_name_length", 2)
        )

    @cached_property
    def quantity_pattern(self) -> re.Pattern:
        units = '|'.join(re.escape(unit) for unit in self.units)
        return re.compile(rf'[×x]?\s*(\d+)\s*({units})?', re.IGNORECASE)

    @cached_property
    def skip_pattern(self) -> re.Pattern:
        prefixes = '|'.join(re.escape(prefix) for prefix in self.skip_prefixes)
        return re.compile(rf'^({prefixes})')

    def accepts_quantity(self, quantity: int) -> bool:
        return self.min_quantity < quantity < self.max_quantity


DEFAULT_RULES = HeuristicRules()


def detect_supplier(text: str, suppliers: Sequence[Supplier]) -> Optional[Supplier]:
    """
    First supplier, in catalog order, whose name occurs in the text.

    Example:
        >>> detect_supplier("株式会社山田商事 御中", [Supplier("S1", "山田商事")])
        Supplier(id='S1', name='山田商事')
    """
    for supplier in suppliers:
        if supplier.name and supplier.name in text:
            return supplier
    return None


def parse_note_number(text: str) -> Optional[str]:
    """
    ``納品書番号: DN-2024-001`` -> ``DN-2024-001``.
    """
    match = NOTE_NUMBER_PATTERN.search(text)
    return match.group(1) if match else None


def parse_structured_items(text: str) -> List[RawLineItem]:
    """
    Every ``商品名: <name> / 数量: <qty>`` occurrence in the text.

    Rows with an empty name, a quantity of zero or an implausibly long
    quantity are dropped.
    """
    items = []
    for match in STRUCTURED_ITEM_PATTERN.finditer(text):
        name = match.group(1).strip()
        quantity = parse_number(match.group(2))
        if not name or quantity is None or quantity <= 0:
            continue
        items.append(RawLineItem(raw_text=match.group(0), product_name=name, quantity=quantity))
    return items


def parse_heuristic_items(
    text: str,
    rules: HeuristicRules = DEFAULT_RULES,
    amounts: Optional[AmountNormalizer] = None
) -> List[RawLineItem]:
    """
    Guess product rows from raw OCR text, one line at a time.

    A line qualifies when it carries at least one plausible quantity and
    something name-like remains once numbers and prices are removed.
    The first plausible quantity on the line is used.
    """
    amounts = amounts or AmountNormalizer()
    quantity_pattern = rules.quantity_pattern
    items = []

    for line in (raw.strip() for raw in text.split('\n')):
        if len(line) < rules.min_line_length:
            continue
        if rules.skip_pattern.match(line):
            continue

        candidates = (parse_number(match.group(1)) for match in quantity_pattern.finditer(line))
        quantities = [
            quantity for quantity in candidates
            if quantity is not None and rules.accepts_quantity(quantity)
        ]
        if not quantities:
            continue

        name = quantity_pattern.sub('', line)
        name = amounts.strip_amounts(name)
        name = CURRENCY_SIGN_PATTERN.sub('', name)
        name = DIGIT_RUN_PATTERN.sub(' ', name).strip()
        if len(name) < rules.min_name_length:
            continue

        items.append(RawLineItem(
            raw_text=line,
            product_name=name,
            quantity=quantities[0],
            unit_price=amounts.extract_unit_price(line)
        ))

    return items
