"""
Delivery-Note Scanner - Source Package.

Turns photographed or scanned supplier delivery notes (納品書) into
reviewed, catalog-matched line items and books them into the stock
ledger as purchase receipts.

Modules:
    - input_handler: Upload filtering and base64 encoding
    - ocr_engine: OpenAI / Google Vision text recognition
    - extraction: Supplier, date, note number and line-item parsing
    - matching: Catalog product matching
    - postprocessor: Date and yen amount normalization
    - batch: Sequential processing and operator review state
    - reconciliation: Stock-ledger commit

Architecture:
    Input → OCR → Extraction → Matching → Review → Ledger commit
"""

__version__ = "1.0.0"
__author__ = "ML Engineering Team"

__all__ = [
    'catalog',
    'input_handler',
    'ocr_engine',
    'extraction',
    'matching',
    'postprocessor',
    'batch',
    'reconciliation',
    'utils'
]
