"""
Product Matcher Module.

Resolves the free-text product name read off a delivery note to a
catalog product. Matching is deliberately simple: exact name/id first,
then substring containment in either direction, with the catalog's own
order deciding ties. There is no edit-distance scoring.

Confidence tiers:
    EXACT             100  name or id identical
    PARTIAL            70  substring either way, or id contains the text
    NONE               30  nothing found
    MANUAL            100  operator picked a product
    MANUALLY_CLEARED    0  operator removed the match

Author: ML Engineering Team
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from note_scanner.catalog import Catalog, Product
from note_scanner.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)


class MatchTier(Enum):
    """Discrete match outcome, each carrying its confidence score."""

    EXACT = "exact"
    PARTIAL = "partial"
    NONE = "none"
    MANUAL = "manual"
    MANUALLY_CLEARED = "manually_cleared"

    @property
    def confidence(self) -> int:
        return _TIER_CONFIDENCE[self]

    @property
    def matched(self) -> bool:
        return self in (MatchTier.EXACT, MatchTier.PARTIAL, MatchTier.MANUAL)


_TIER_CONFIDENCE = {
    MatchTier.EXACT: 100,
    MatchTier.PARTIAL: 70,
    MatchTier.NONE: 30,
    MatchTier.MANUAL: 100,
    MatchTier.MANUALLY_CLEARED: 0,
}


@dataclass(frozen=True)
class MatchOutcome:
    """
    Result of matching one candidate name.

    Attributes:
        tier: Which rule produced the outcome.
        matched_product_id: Catalog id, present only when matched.
    """
    tier: MatchTier
    matched_product_id: Optional[str] = None

    @property
    def matched(self) -> bool:
        return self.tier.matched

    @property
    def confidence(self) -> int:
        return self.tier.confidence


class ProductMatcher:
    """
    Matches extracted product names against a catalog snapshot.

    Example:
        >>> matcher = ProductMatcher(catalog)
        >>> outcome = matcher.match("ボールペン 黒")
        >>> outcome.tier, outcome.matched_product_id
        (<MatchTier.PARTIAL: 'partial'>, 'P-001')
    """

    def __init__(self, catalog: Catalog) -> None:
        self.catalog = catalog

    def match(self, candidate: str) -> MatchOutcome:
        """
        Match a candidate name.

        Args:
            candidate: Product name (or code) as read from the note.

        Returns:
            MatchOutcome with tier EXACT, PARTIAL or NONE.
        """
        if not candidate or not candidate.strip():
            return MatchOutcome(MatchTier.NONE)

        exact = self._find(lambda p: p.name == candidate or p.id == candidate)
        if exact is not None:
            logger.debug(f"Exact match '{candidate}' -> {exact.id}")
            return MatchOutcome(MatchTier.EXACT, exact.id)

        partial = self._find(
            lambda p: candidate in p.name or p.name in candidate or candidate in p.id
        )
        if partial is not None:
            logger.debug(f"Partial match '{candidate}' -> {partial.id}")
            return MatchOutcome(MatchTier.PARTIAL, partial.id)

        logger.debug(f"No catalog match for '{candidate}'")
        return MatchOutcome(MatchTier.NONE)

    def manual_select(self, product_id: Optional[str]) -> MatchOutcome:
        """
        Outcome for an operator choosing a product.

        An id missing from the catalog (including an empty selection) is
        treated as clearing the match.
        """
        if product_id and self.catalog.get_product(product_id) is not None:
            return MatchOutcome(MatchTier.MANUAL, product_id)
        return self.manual_clear()

    def manual_clear(self) -> MatchOutcome:
        """Outcome for an operator explicitly rejecting the match."""
        return MatchOutcome(MatchTier.MANUALLY_CLEARED)

    def _find(self, predicate) -> Optional[Product]:
        for product in self.catalog.products:
            if predicate(product):
                return product
        return None
