"""
Reconciliation Committer Module.

Books the operator-confirmed line items of a review session into the
stock ledger as purchase receipts.

Behaviour:
    - Refused up front, with nothing written, when there is no confirmed
      item or no operator name
    - One ``adjust_stock`` call per confirmed item
    - A failing call is logged and reported; the remaining items are
      still booked and nothing is rolled back or retried
    - The session's notes are cleared afterwards; there is no undo

Author: ML Engineering Team
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional, Union

from config import get_config
from note_scanner.batch.processor import BatchProcessor, ConfirmedItem
from note_scanner.postprocessor.normalizers import DateNormalizer
from note_scanner.utils.logger import get_logger
from note_scanner.utils.exceptions import CommitPreconditionError
from .ledger import AdjustmentOptions, StockDirection, StockLedger

# Initialize module logger
logger = get_logger(__name__)

NO_CONFIRMED_ITEMS_MESSAGE = "入荷確認できる商品がありません"
NO_OPERATOR_MESSAGE = "担当者名を入力してください"
DEFAULT_NOTE = "納品書スキャン入荷"


@dataclass
class FailedCommit:
    """A confirmed item whose ledger call raised."""
    product_id: str
    quantity: int
    error: str


@dataclass
class CommitResult:
    """
    Outcome of one commit.

    Attributes:
        operator: Trimmed operator name.
        date: ISO timestamp recorded on every transaction.
        committed: Items booked successfully.
        failed: Items whose ledger call raised.
        cleared_notes: Number of notes discarded afterwards.
    """
    operator: str
    date: str
    committed: List[ConfirmedItem] = field(default_factory=list)
    failed: List[FailedCommit] = field(default_factory=list)
    cleared_notes: int = 0

    @property
    def success(self) -> bool:
        return not self.failed

    @property
    def message(self) -> str:
        """Summary line for the operator."""
        text = f"{len(self.committed)}件の入荷を処理しました（担当: {self.operator}）"
        if self.failed:
            text += f" {len(self.failed)}件は失敗しました"
        return text


class ReconciliationCommitter:
    """
    Translates confirmed line items into stock-ledger writes.

    Attributes:
        ledger: The ledger to append to.
        sub_type: Transaction sub-type (``purchase``).
        base_note: Memo prefix stored on each transaction.

    Example:
        >>> committer = ReconciliationCommitter(ledger)
        >>> result = committer.commit(processor, "Sato", "2024-05-01")
        >>> result.message
        '1件の入荷を処理しました（担当: Sato）'
    """

    def __init__(self, ledger: StockLedger) -> None:
        self.ledger = ledger
        self.sub_type = get_config("reconciliation.sub_type", "purchase")
        self.base_note = get_config("reconciliation.note", DEFAULT_NOTE)
        self.date_normalizer = DateNormalizer()

    def check_ready(self, processor: BatchProcessor, operator: Optional[str]) -> List[ConfirmedItem]:
        """
        Confirmed items, if a commit may proceed.

        Raises:
            CommitPreconditionError: No confirmed items, or blank operator.
        """
        confirmed = processor.confirmed_items()
        if not confirmed:
            raise CommitPreconditionError(NO_CONFIRMED_ITEMS_MESSAGE)
        if not operator or not operator.strip():
            raise CommitPreconditionError(NO_OPERATOR_MESSAGE)
        return confirmed

    def can_commit(self, processor: BatchProcessor, operator: Optional[str]) -> bool:
        """Whether the commit button should be enabled."""
        try:
            self.check_ready(processor, operator)
        except CommitPreconditionError:
            return False
        return True

    def commit(
        self,
        processor: BatchProcessor,
        operator: str,
        receipt_date: Union[str, date, datetime]
    ) -> CommitResult:
        """
        Book every confirmed item and clear the session.

        Args:
            processor: Session holding the reviewed notes.
            operator: Name of the person receiving the goods.
            receipt_date: Effective receipt date chosen by the operator.

        Returns:
            CommitResult listing booked and failed items.

        Raises:
            CommitPreconditionError: Nothing confirmed or no operator.
            ValueError: If ``receipt_date`` cannot be parsed.
        """
        confirmed = self.check_ready(processor, operator)
        operator = operator.strip()
        date_iso = self.date_normalizer.to_iso_timestamp(receipt_date)

        result = CommitResult(operator=operator, date=date_iso)
        logger.info(f"Committing {len(confirmed)} item(s) for {operator} on {date_iso}")

        for entry in confirmed:
            options = AdjustmentOptions(
                sub_type=self.sub_type,
                date=date_iso,
                operator=operator,
                note=self.build_note(entry)
            )
            try:
                self.ledger.adjust_stock(
                    entry.product_id, entry.quantity, StockDirection.IN, options
                )
            except Exception as e:
                logger.error(f"adjust_stock failed for {entry.product_id}: {e}")
                result.failed.append(FailedCommit(entry.product_id, entry.quantity, str(e)))
                continue
            result.committed.append(entry)

        result.cleared_notes = processor.clear()
        logger.info(result.message)
        return result

    def build_note(self, entry: ConfirmedItem) -> str:
        """
        Memo for one transaction: the base text plus the note number and
        supplier when they were read.

        Example:
            '納品書スキャン入荷 (No.DN-001 山田商事)'
        """
        context = []
        if entry.note_number:
            context.append(f"No.{entry.note_number}")
        if entry.supplier_name:
            context.append(entry.supplier_name)
        if not context:
            return self.base_note
        return f"{self.base_note} ({' '.join(context)})"
