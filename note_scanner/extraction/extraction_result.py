"""
Extraction Result Data Classes.

Structures produced by the EntityExtractor: one ``LineItem`` per product
row and a ``NoteExtraction`` holding the note-level fields.

Author: ML Engineering Team
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from note_scanner.matching.matcher import MatchOutcome, MatchTier


# Thresholds the review screen uses to colour confidence badges
REVIEW_HIGH_THRESHOLD = 80
REVIEW_MEDIUM_THRESHOLD = 50


@dataclass
class LineItem:
    """
    One product row read from a delivery note.

    ``matched`` and ``confidence`` are derived from ``match_tier`` so the
    two can never disagree.

    Attributes:
        raw_text: Source substring (structured path) or line (heuristic path).
        product_name: Product name as read.
        quantity: Delivered quantity, never negative.
        product_code: Product code as read, when the note carries one.
        unit_price: Unit price in yen, heuristic path only.
        match_tier: Outcome of automatic or manual matching.
        matched_product_id: Weak reference into the catalog.

    Example:
        >>> item = LineItem(raw_text="商品名: 軍手 / 数量: 5",
        ...                 product_name="軍手", quantity=5)
        >>> item.confidence
        30
    """
    raw_text: str
    product_name: str
    quantity: int
    product_code: Optional[str] = None
    unit_price: Optional[int] = None
    match_tier: MatchTier = MatchTier.NONE
    matched_product_id: Optional[str] = None

    @property
    def matched(self) -> bool:
        return self.match_tier.matched

    @property
    def confidence(self) -> int:
        return self.match_tier.confidence

    @property
    def review_level(self) -> str:
        """'high', 'medium' or 'low' for badge colouring."""
        if self.confidence >= REVIEW_HIGH_THRESHOLD:
            return 'high'
        if self.confidence >= REVIEW_MEDIUM_THRESHOLD:
            return 'medium'
        return 'low'

    @property
    def is_confirmed(self) -> bool:
        """Eligible for commit: matched, resolved and quantity > 0."""
        return self.matched and self.matched_product_id is not None and self.quantity > 0

    def apply_match(self, outcome: MatchOutcome) -> None:
        """Overwrite the match fields with a new outcome."""
        self.match_tier = outcome.tier
        self.matched_product_id = outcome.matched_product_id

    def to_dict(self) -> Dict[str, Any]:
        return {
            'raw_text': self.raw_text,
            'product_name': self.product_name,
            'product_code': self.product_code,
            'quantity': self.quantity,
            'unit_price': self.unit_price,
            'matched': self.matched,
            'matched_product_id': self.matched_product_id,
            'confidence': self.confidence,
            'match_tier': self.match_tier.value,
        }


@dataclass
class NoteExtraction:
    """
    Everything the extractor derived from one recognized text.

    Attributes:
        supplier_name: Registered name of the first supplier found in the text.
        matched_supplier_id: That supplier's catalog id.
        note_date: Note date as YYYY-MM-DD.
        note_number: Delivery-note number token.
        items: Extracted line items, already matched.
        parse_path: 'structured', 'heuristic' or 'none' (no items found).
    """
    supplier_name: Optional[str] = None
    matched_supplier_id: Optional[str] = None
    note_date: Optional[str] = None
    note_number: Optional[str] = None
    items: List[LineItem] = field(default_factory=list)
    parse_path: str = 'none'

    @property
    def is_empty(self) -> bool:
        """True when text was recognized but no line items came out of it."""
        return not self.items

    def to_dict(self) -> Dict[str, Any]:
        return {
            'supplier_name': self.supplier_name,
            'matched_supplier_id': self.matched_supplier_id,
            'note_date': self.note_date,
            'note_number': self.note_number,
            'items': [item.to_dict() for item in self.items],
            'parse_path': self.parse_path,
        }
