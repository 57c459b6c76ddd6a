"""
Custom Exceptions Module.

All errors raised by the delivery-note scanner. Callers that only care
whether "the scanner" failed can catch the base class; the batch
processor and the UI layer branch on the concrete types.

Exception Hierarchy:
    NoteScannerError (base)
    ├── ConfigurationError
    ├── IngestionError
    │   └── BatchInProgressError
    ├── ProviderError
    ├── ExtractionError
    ├── NoteNotFoundError
    │   └── ItemNotFoundError
    └── CommitPreconditionError
"""


class NoteScannerError(Exception):
    """
    Base exception for all scanner errors.

    Attributes:
        message: Human-readable error message, safe to show to the operator.
        details: Optional dictionary with additional error details.
    """

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(NoteScannerError):
    """Raised when the provider configuration cannot be used."""
    pass


class MissingCredentialError(ConfigurationError):
    """
    Raised when the selected OCR backend has no API key.

    Example:
        >>> raise MissingCredentialError("raw_text")
    """

    LABELS = {
        'structured': 'OpenAI',
        'raw_text': 'Google Cloud Vision',
    }

    def __init__(self, backend: str):
        label = self.LABELS.get(backend, backend)
        message = f"{label} APIキーを設定してください"
        super().__init__(message, {"backend": backend})


class UnknownBackendError(ConfigurationError):
    """Raised when the configured backend name is not recognised."""

    def __init__(self, backend: str, supported: list):
        message = f"Unknown OCR backend: '{backend}'"
        details = {"backend": backend, "supported": supported}
        super().__init__(message, details)


# =============================================================================
# INGESTION ERRORS
# =============================================================================

class IngestionError(NoteScannerError):
    """Raised when a submitted batch cannot be accepted; no notes are created."""
    pass


class BatchInProgressError(IngestionError):
    """Raised when a batch is submitted while another is still processing."""

    def __init__(self):
        super().__init__("処理中のバッチが完了するまでお待ちください")


# =============================================================================
# PROVIDER / EXTRACTION ERRORS
# =============================================================================

class ProviderError(NoteScannerError):
    """
    Raised when an OCR backend call fails or returns no text.

    The message is shown verbatim on the failed note.
    """

    def __init__(self, message: str, backend: str = None, status_code: int = None):
        details = {}
        if backend:
            details["backend"] = backend
        if status_code is not None:
            details["status_code"] = status_code
        self.backend = backend
        self.status_code = status_code
        super().__init__(message, details)


class ExtractionError(NoteScannerError):
    """Raised when recognized text cannot be parsed at all."""
    pass


# =============================================================================
# REVIEW / COMMIT ERRORS
# =============================================================================

class NoteNotFoundError(NoteScannerError):
    """Raised when an operator edit targets a note that no longer exists."""

    def __init__(self, note_id: str):
        super().__init__(f"Scanned note not found: {note_id}", {"note_id": note_id})


class ItemNotFoundError(NoteNotFoundError):
    """Raised when an operator edit targets a line index out of range."""

    def __init__(self, note_id: str, index: int):
        NoteScannerError.__init__(
            self,
            f"Line item {index} not found on note {note_id}",
            {"note_id": note_id, "index": index}
        )


class CommitPreconditionError(NoteScannerError):
    """Raised when commit is attempted without confirmed items or operator."""
    pass


__all__ = [
    'NoteScannerError',
    'ConfigurationError',
    'MissingCredentialError',
    'UnknownBackendError',
    'IngestionError',
    'BatchInProgressError',
    'ProviderError',
    'ExtractionError',
    'NoteNotFoundError',
    'ItemNotFoundError',
    'CommitPreconditionError',
]
