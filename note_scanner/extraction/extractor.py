"""
Entity Extractor Module.

Turns the text returned by an OCR backend into note-level fields and
matched line items.

Cascade:
    1. Supplier: first catalog supplier named in the text
    2. Note number: ``納品書(番号): <token>``
    3. Date: western 4-digit, 2-digit, then Reiwa era
    4. Line items: structured ``商品名 / 数量`` rows, falling back to the
       line heuristic only when there are none
    5. Each item matched against the product catalog

The result depends only on the text and the catalog snapshot, so running
it twice on the same input gives the same answer.

Author: ML Engineering Team
"""

import time
from typing import Callable, List, Optional, Tuple

from note_scanner.catalog import Catalog
from note_scanner.matching.matcher import ProductMatcher
from note_scanner.postprocessor.normalizers import DateNormalizer, AmountNormalizer
from note_scanner.utils.logger import get_logger
from note_scanner.utils.exceptions import ExtractionError
from .extraction_result import LineItem, NoteExtraction
from .parsers import (
    HeuristicRules,
    RawLineItem,
    detect_supplier,
    parse_heuristic_items,
    parse_note_number,
    parse_structured_items
)

# Initialize module logger
logger = get_logger(__name__)


class EntityExtractor:
    """
    Extracts supplier, date, note number and line items from note text.

    Attributes:
        catalog: Catalog snapshot used for supplier detection and matching.
        matcher: ProductMatcher over the same catalog.
        rules: Tunables for the heuristic line parser.

    Example:
        >>> extractor = EntityExtractor(catalog)
        >>> result = extractor.extract("商品名: 軍手 / 数量: 5")
        >>> result.items[0].quantity
        5
    """

    def __init__(
        self,
        catalog: Catalog,
        matcher: Optional[ProductMatcher] = None,
        rules: Optional[HeuristicRules] = None
    ) -> None:
        self.catalog = catalog
        self.matcher = matcher or ProductMatcher(catalog)
        self.rules = rules or HeuristicRules.from_config()
        self.date_normalizer = DateNormalizer()
        self.amount_normalizer = AmountNormalizer()

        self.item_parsers: List[Tuple[str, Callable[[str], List[RawLineItem]]]] = [
            ('structured', parse_structured_items),
            ('heuristic', self._parse_heuristic),
        ]

        logger.debug(
            f"EntityExtractor initialized ({len(catalog.products)} products, "
            f"{len(catalog.suppliers)} suppliers)"
        )

    def extract(self, raw_text: str) -> NoteExtraction:
        """
        Run the full cascade on recognized text.

        Args:
            raw_text: Text returned by the OCR backend.

        Returns:
            NoteExtraction; ``items`` may be empty, which is not an error.

        Raises:
            ExtractionError: If ``raw_text`` is not a string.
        """
        start_time = time.time()
        if raw_text is None:
            raw_text = ''
        if not isinstance(raw_text, str):
            raise ExtractionError(
                "Recognized text must be a string",
                {"type": type(raw_text).__name__}
            )

        result = NoteExtraction()

        supplier = detect_supplier(raw_text, self.catalog.suppliers)
        if supplier is not None:
            result.supplier_name = supplier.name
            result.matched_supplier_id = supplier.id

        result.note_number = parse_note_number(raw_text)
        result.note_date = self.date_normalizer.extract_date(raw_text)

        parse_path, raw_items = self._extract_items(raw_text)
        result.parse_path = parse_path
        result.items = [self._to_line_item(raw) for raw in raw_items]

        elapsed = time.time() - start_time
        if result.is_empty:
            logger.warning("Text recognized but no line items could be extracted")
        else:
            matched = sum(1 for item in result.items if item.matched)
            logger.info(
                f"Extracted {len(result.items)} item(s) via {parse_path} parser, "
                f"{matched} matched ({elapsed:.3f}s)"
            )

        return result

    def _extract_items(self, raw_text: str) -> Tuple[str, List[RawLineItem]]:
        for name, parser in self.item_parsers:
            items = parser(raw_text)
            if items:
                return name, items
        return 'none', []

    def _parse_heuristic(self, raw_text: str) -> List[RawLineItem]:
        return parse_heuristic_items(raw_text, self.rules, self.amount_normalizer)

    def _to_line_item(self, raw: RawLineItem) -> LineItem:
        item = LineItem(
            raw_text=raw.raw_text,
            product_name=raw.product_name,
            quantity=raw.quantity,
            unit_price=raw.unit_price
        )
        item.apply_match(self.matcher.match(raw.product_name))
        return item
