"""
Reconciliation Module for the Delivery-Note Scanner.

Commits operator-confirmed line items to the external stock ledger.
"""

from .committer import ReconciliationCommitter, CommitResult, FailedCommit
from .ledger import StockLedger, StockDirection, AdjustmentOptions

__all__ = [
    'ReconciliationCommitter',
    'CommitResult',
    'FailedCommit',
    'StockLedger',
    'StockDirection',
    'AdjustmentOptions'
]
