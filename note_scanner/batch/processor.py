"""
Batch Processor Module.

Owns the in-memory list of scanned notes for one review session and
drives each note through OCR and extraction.

Processing rules:
    - Notes are processed strictly one after another; a note is not
      marked ``processing`` until the previous one is completed or failed
    - A failure on one note is recorded on that note and the batch moves on
    - No automatic retries; a failed note can be resubmitted as a new note
    - ``cancel()`` stops further notes from being dispatched; the note
      already sent to the provider runs to completion
    - A failing ``on_update`` listener is logged and never stops the batch

All reads and writes of the note list go through one re-entrant lock,
so operator edits arriving from another thread never interleave with a
status update.

Author: ML Engineering Team
"""

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

from note_scanner.catalog import Catalog
from note_scanner.extraction.extractor import EntityExtractor
from note_scanner.extraction.extraction_result import LineItem
from note_scanner.input_handler.handler import InputHandler, UploadedFile
from note_scanner.ocr_engine.engine import OCREngine
from note_scanner.ocr_engine.provider_config import ProviderConfig
from note_scanner.utils.logger import get_logger, get_note_logger
from note_scanner.utils.exceptions import (
    BatchInProgressError,
    IngestionError,
    ItemNotFoundError,
    NoteNotFoundError,
    NoteScannerError,
    ProviderError
)
from .models import NoteStatus, ScannedNote

# Initialize module logger
logger = get_logger(__name__)

DEFAULT_ERROR_MESSAGE = "OCR処理に失敗しました"

UpdateListener = Callable[[Optional[ScannedNote]], None]


@dataclass(frozen=True)
class ConfirmedItem:
    """A line item ready to be committed, with its note's context."""
    note_id: str
    file_name: str
    note_number: Optional[str]
    supplier_name: Optional[str]
    item: LineItem

    @property
    def product_id(self) -> str:
        return self.item.matched_product_id

    @property
    def quantity(self) -> int:
        return self.item.quantity


class BatchProcessor:
    """
    Sequential OCR pipeline plus the operator's editable review state.

    Attributes:
        provider_config: OCR backend selection, fixed for the processor's life.
        catalog: Catalog snapshot used for matching.
        extractor: EntityExtractor over the catalog.
        input_handler: Filters and encodes uploads.

    Example:
        >>> processor = BatchProcessor(config, catalog)
        >>> notes = processor.submit([UploadedFile("note1.jpg", data, "image/jpeg")])
        >>> notes[0].status
        <NoteStatus.COMPLETED: 'completed'>
        >>> processor.select_product(notes[0].id, 0, "P-001")
    """

    def __init__(
        self,
        provider_config: ProviderConfig,
        catalog: Catalog,
        engine: Optional[OCREngine] = None,
        extractor: Optional[EntityExtractor] = None,
        input_handler: Optional[InputHandler] = None,
        on_update: Optional[UpdateListener] = None
    ) -> None:
        self.provider_config = provider_config
        self.catalog = catalog
        self.extractor = extractor or EntityExtractor(catalog)
        self.input_handler = input_handler or InputHandler()
        self.on_update = on_update

        self._engine = engine
        self._notes: List[ScannedNote] = []
        self._lock = threading.RLock()
        self._processing = False
        self._cancel_requested = False

        logger.info(f"BatchProcessor initialized (backend={provider_config.backend})")

    # ------------------------------------------------------------------
    # State queries
    # ------------------------------------------------------------------

    @property
    def engine(self) -> OCREngine:
        """OCR engine, built from the provider config on first use."""
        if self._engine is None:
            self._engine = OCREngine(self.provider_config)
        return self._engine

    @property
    def notes(self) -> List[ScannedNote]:
        """Snapshot of the current notes, in intake order."""
        with self._lock:
            return list(self._notes)

    @property
    def is_processing(self) -> bool:
        with self._lock:
            return self._processing

    def get_note(self, note_id: str) -> ScannedNote:
        """
        Raises:
            NoteNotFoundError: If no note has this id.
        """
        with self._lock:
            for note in self._notes:
                if note.id == note_id:
                    return note
        raise NoteNotFoundError(note_id)

    def confirmed_items(self) -> List[ConfirmedItem]:
        """Matched items with quantity > 0 across all completed notes."""
        with self._lock:
            return [
                ConfirmedItem(
                    note_id=note.id,
                    file_name=note.file_name,
                    note_number=note.note_number,
                    supplier_name=note.supplier_name,
                    item=item
                )
                for note in self._notes
                for item in note.confirmed_items()
            ]

    def summary(self) -> Dict[str, int]:
        """Note counts per status plus the number of confirmed items."""
        with self._lock:
            counts = {status.value: 0 for status in NoteStatus}
            for note in self._notes:
                counts[note.status.value] += 1
            counts['total'] = len(self._notes)
            counts['confirmed_items'] = len(self.confirmed_items())
            return counts

    # ------------------------------------------------------------------
    # Intake and processing
    # ------------------------------------------------------------------

    def submit(self, files: Sequence[UploadedFile]) -> List[ScannedNote]:
        """
        Accept a file selection and process it.

        Args:
            files: Uploaded files; at most the configured number are used.

        Returns:
            The notes created for this selection, all in a terminal state
            unless cancel() was called.

        Raises:
            MissingCredentialError: If the active backend has no API key.
            BatchInProgressError: If another batch is still processing.
            IngestionError: If no image or PDF is in the selection.
        """
        self.provider_config.require_credential()

        # the batch is claimed before intake so no other batch can slip in
        self._claim_batch()
        try:
            notes = self.add_files(files)
        except Exception:
            self._release_batch()
            raise

        self._run_batch(notes)
        return notes

    def add_files(self, files: Sequence[UploadedFile]) -> List[ScannedNote]:
        """
        Create pending notes for the acceptable files of a selection.

        Raises:
            IngestionError: If no image or PDF is in the selection.
        """
        prepared = self.input_handler.prepare(files)
        notes = [ScannedNote.from_prepared(p) for p in prepared]

        with self._lock:
            self._notes.extend(notes)

        for note in notes:
            self._notify(note)

        logger.info(f"Queued {len(notes)} note(s) for OCR")
        return notes

    def process_pending(self) -> List[ScannedNote]:
        """Process every note still pending, e.g. after cancel()."""
        with self._lock:
            pending = [n for n in self._notes if n.status is NoteStatus.PENDING]
        self.process_notes(pending)
        return pending

    def process_notes(self, notes: Sequence[ScannedNote]) -> None:
        """
        Run OCR and extraction on notes, one at a time.

        Notes that were removed or are no longer pending are skipped.

        Raises:
            BatchInProgressError: If another batch is still processing.
        """
        self._claim_batch()
        self._run_batch(notes)

    def _claim_batch(self) -> None:
        with self._lock:
            if self._processing:
                raise BatchInProgressError()
            self._processing = True
            self._cancel_requested = False

    def _release_batch(self) -> None:
        with self._lock:
            self._processing = False
            self._cancel_requested = False

    def _run_batch(self, notes: Sequence[ScannedNote]) -> None:
        """Process notes of a claimed batch; the claim is released at the end."""
        start_time = time.time()
        processed = 0
        try:
            for note in notes:
                with self._lock:
                    if self._cancel_requested:
                        logger.info("Batch cancelled; remaining notes stay pending")
                        break
                    if note not in self._notes or note.status is not NoteStatus.PENDING:
                        continue
                    note.mark_processing()
                self._notify(note)

                self._process_note(note)
                processed += 1
        finally:
            self._release_batch()

        logger.info(
            f"Batch finished: {processed} note(s) processed in "
            f"{time.time() - start_time:.2f}s"
        )

    def _process_note(self, note: ScannedNote) -> None:
        note_logger = get_note_logger(logger, note.id, note.file_name)
        note_logger.info("Processing")
        start_time = time.time()

        error = None
        raw_text = ''
        extraction = None
        try:
            raw_text = self.engine.recognize(note.image_data, note.image_data_url)
            extraction = self.extractor.extract(raw_text)
        except ProviderError as e:
            note_logger.error(f"Provider failed: {e}")
            error = e.message
        except NoteScannerError as e:
            note_logger.error(f"Processing failed: {e}")
            error = e.message
        except Exception as e:
            note_logger.exception(f"Unexpected error: {e}")
            error = str(e) or DEFAULT_ERROR_MESSAGE

        with self._lock:
            note.processing_time = time.time() - start_time
            if error is not None:
                note.mark_error(error)
            else:
                note.mark_completed(raw_text, extraction)
                if not note.items:
                    note_logger.warning("No line items found")
        self._notify(note)

    def cancel(self) -> None:
        """Stop dispatching further notes of the running batch."""
        with self._lock:
            if self._processing:
                self._cancel_requested = True
                logger.info("Cancellation requested")

    def resubmit(self, note_id: str) -> ScannedNote:
        """
        Queue a failed note's image again as a new note and process it.

        The failed note is left untouched for the operator to remove.

        Raises:
            NoteNotFoundError: If no note has this id.
            IngestionError: If the note has not failed.
            BatchInProgressError: If another batch is still processing.
        """
        original = self.get_note(note_id)
        if original.status is not NoteStatus.ERROR:
            raise IngestionError(
                "Only failed notes can be resubmitted",
                {"note_id": note_id, "status": original.status.value}
            )
        note = original.copy_for_resubmit()
        self._claim_batch()
        with self._lock:
            self._notes.append(note)
        self._notify(note)

        logger.info(f"Resubmitting {original.file_name} as {note.id}")
        self._run_batch([note])
        return note

    # ------------------------------------------------------------------
    # Operator edits
    # ------------------------------------------------------------------

    def select_product(self, note_id: str, index: int, product_id: Optional[str]) -> LineItem:
        """
        Manually match a line item to a catalog product.

        An unknown or empty id clears the match instead.
        """
        with self._lock:
            note, item = self._get_item(note_id, index)
            item.apply_match(self.extractor.matcher.manual_select(product_id))
        logger.debug(f"Item {index} on {note_id} set to {item.matched_product_id}")
        self._notify(note)
        return item

    def clear_product(self, note_id: str, index: int) -> LineItem:
        """Explicitly reject the match of a line item (confidence 0)."""
        with self._lock:
            note, item = self._get_item(note_id, index)
            item.apply_match(self.extractor.matcher.manual_clear())
        self._notify(note)
        return item

    def update_quantity(self, note_id: str, index: int, quantity: int) -> LineItem:
        """Set a line item's quantity; negative values become 0."""
        with self._lock:
            note, item = self._get_item(note_id, index)
            item.quantity = max(0, int(quantity))
        self._notify(note)
        return item

    def remove_item(self, note_id: str, index: int) -> LineItem:
        """Delete a line item from its note."""
        with self._lock:
            note, item = self._get_item(note_id, index)
            del note.items[index]
        self._notify(note)
        return item

    def remove_note(self, note_id: str) -> ScannedNote:
        """Discard a note, whatever its status."""
        with self._lock:
            note = self.get_note(note_id)
            self._notes.remove(note)
        logger.info(f"Removed note {note_id}")
        self._notify(None)
        return note

    def toggle_expanded(self, note_id: str) -> bool:
        """Flip the note's review-panel flag and return the new value."""
        with self._lock:
            note = self.get_note(note_id)
            note.expanded = not note.expanded
        self._notify(note)
        return note.expanded

    def clear(self) -> int:
        """Drop every note; returns how many were discarded."""
        with self._lock:
            count = len(self._notes)
            self._notes.clear()
        logger.info(f"Cleared {count} note(s)")
        self._notify(None)
        return count

    def _get_item(self, note_id: str, index: int):
        note = self.get_note(note_id)
        if not 0 <= index < len(note.items):
            raise ItemNotFoundError(note_id, index)
        return note, note.items[index]

    def _notify(self, note: Optional[ScannedNote]) -> None:
        """Tell the listener about a change; its failures never reach the pipeline."""
        if self.on_update is None:
            return
        try:
            self.on_update(note)
        except Exception:
            logger.exception(f"Update listener failed for {note.id if note else 'session'}")
