"""
Stock ledger interface consumed by the committer.

The ledger itself (stock levels, transaction history, durability) lives
in the surrounding inventory application. The scanner only calls
``adjust_stock`` once per confirmed line item.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol


class StockDirection(str, Enum):
    IN = "in"
    OUT = "out"


@dataclass(frozen=True)
class AdjustmentOptions:
    """
    Metadata recorded with one stock transaction.

    Attributes:
        sub_type: Transaction sub-type; always 'purchase' for scanned notes.
        date: Effective date as an ISO-8601 UTC timestamp.
        operator: Name of the person who confirmed the receipt.
        note: Free-text memo stored on the transaction.
        customer_id: Only used by outgoing usage transactions.
    """
    sub_type: str
    date: str
    operator: str
    note: str
    customer_id: Optional[str] = None


class StockLedger(Protocol):
    """Append-only stock ledger."""

    def adjust_stock(
        self,
        product_id: str,
        quantity: int,
        direction: StockDirection,
        options: AdjustmentOptions
    ) -> None:
        ...
