"""
Scanned note state held for operator review.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from note_scanner.extraction.extraction_result import LineItem, NoteExtraction
from note_scanner.input_handler.handler import PreparedFile
from note_scanner.utils.helpers import decode_base64, generate_note_id


class NoteStatus(str, Enum):
    """pending -> processing -> completed | error"""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (NoteStatus.COMPLETED, NoteStatus.ERROR)


@dataclass(eq=False)
class ScannedNote:
    """
    One ingested delivery-note image and everything derived from it.

    The note owns its ``items`` list; catalog references are ids only.

    Attributes:
        id: Session-unique identifier.
        file_name: Original filename.
        content_type: MIME type of the payload.
        image_data: Base64 image payload.
        image_data_url: ``data:`` URL preview form.
        image_metadata: Format and dimensions, when decodable.
        status: Processing state.
        error: Provider or processing error shown to the operator.
        supplier_name / matched_supplier_id: Detected supplier.
        note_date: Note date, YYYY-MM-DD.
        note_number: Delivery-note number.
        items: Extracted line items.
        raw_text: Text returned by the OCR backend.
        expanded: Whether the review panel is open.
        processing_time: Seconds spent in OCR and extraction.
    """
    file_name: str
    image_data: str
    image_data_url: str
    content_type: str = 'application/octet-stream'
    id: str = field(default_factory=generate_note_id)
    image_metadata: Dict[str, Any] = field(default_factory=dict)
    status: NoteStatus = NoteStatus.PENDING
    error: Optional[str] = None
    supplier_name: Optional[str] = None
    matched_supplier_id: Optional[str] = None
    note_date: Optional[str] = None
    note_number: Optional[str] = None
    items: List[LineItem] = field(default_factory=list)
    raw_text: str = ''
    expanded: bool = True
    processing_time: float = 0.0

    @classmethod
    def from_prepared(cls, prepared: PreparedFile) -> 'ScannedNote':
        """New pending note for an accepted upload."""
        return cls(
            file_name=prepared.filename,
            image_data=prepared.image_data,
            image_data_url=prepared.image_data_url,
            content_type=prepared.content_type,
            image_metadata=dict(prepared.metadata)
        )

    def copy_for_resubmit(self) -> 'ScannedNote':
        """New pending note carrying the same image payload."""
        return ScannedNote(
            file_name=self.file_name,
            image_data=self.image_data,
            image_data_url=self.image_data_url,
            content_type=self.content_type,
            image_metadata=dict(self.image_metadata)
        )

    @property
    def raw_bytes(self) -> bytes:
        return decode_base64(self.image_data)

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def mark_processing(self) -> None:
        self.status = NoteStatus.PROCESSING
        self.error = None

    def mark_completed(self, raw_text: str, extraction: NoteExtraction) -> None:
        self.status = NoteStatus.COMPLETED
        self.raw_text = raw_text
        self.supplier_name = extraction.supplier_name
        self.matched_supplier_id = extraction.matched_supplier_id
        self.note_date = extraction.note_date
        self.note_number = extraction.note_number
        self.items = list(extraction.items)

    def mark_error(self, message: str) -> None:
        self.status = NoteStatus.ERROR
        self.error = message

    def confirmed_items(self) -> List[LineItem]:
        """Items eligible for commit; empty unless the note completed."""
        if self.status is not NoteStatus.COMPLETED:
            return []
        return [item for item in self.items if item.is_confirmed]

    def to_dict(self, include_image: bool = False) -> Dict[str, Any]:
        data = {
            'id': self.id,
            'file_name': self.file_name,
            'content_type': self.content_type,
            'image_metadata': self.image_metadata,
            'status': self.status.value,
            'error': self.error,
            'supplier_name': self.supplier_name,
            'matched_supplier_id': self.matched_supplier_id,
            'note_date': self.note_date,
            'note_number': self.note_number,
            'items': [item.to_dict() for item in self.items],
            'raw_text': self.raw_text,
            'expanded': self.expanded,
            'processing_time': self.processing_time,
        }
        if include_image:
            data['image_data_url'] = self.image_data_url
        return data

    def __repr__(self) -> str:
        return (
            f"ScannedNote(id='{self.id}', file='{self.file_name}', "
            f"status='{self.status.value}', items={len(self.items)})"
        )
