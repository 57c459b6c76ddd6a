import threading

import pytest

from note_scanner.batch import BatchProcessor, NoteStatus
from note_scanner.input_handler import InputHandler, UploadedFile
from note_scanner.matching import MatchTier
from note_scanner.ocr_engine import ProviderConfig
from note_scanner.utils.exceptions import (
    BatchInProgressError,
    IngestionError,
    ItemNotFoundError,
    MissingCredentialError,
    NoteNotFoundError,
    ProviderError,
)


def test_notes_processed_in_order_one_at_a_time(make_processor, image_upload, structured_note_text):
    processor, engine = make_processor([structured_note_text] * 3)
    overlaps = []

    def check_single_flight():
        states = [n.status for n in processor.notes]
        if states.count(NoteStatus.PROCESSING) != 1:
            overlaps.append(states)
        # everything before the note in flight is already finished
        current = states.index(NoteStatus.PROCESSING)
        if not all(s.is_terminal for s in states[:current]):
            overlaps.append(states)

    engine.before_call = check_single_flight
    notes = processor.submit([image_upload("a.png"), image_upload("b.png"), image_upload("c.png")])

    assert overlaps == []
    assert len(engine.calls) == 3
    assert [n.file_name for n in notes] == ["a.png", "b.png", "c.png"]
    assert all(n.status is NoteStatus.COMPLETED for n in notes)
    assert not processor.is_processing


def test_one_failure_does_not_stop_the_batch(make_processor, image_upload, structured_note_text):
    processor, _ = make_processor([
        structured_note_text,
        ProviderError("テキストを検出できませんでした"),
        RuntimeError("boom"),
        structured_note_text,
    ])
    notes = processor.submit([image_upload(f"{i}.png") for i in range(4)])

    assert [n.status for n in notes] == [
        NoteStatus.COMPLETED, NoteStatus.ERROR, NoteStatus.ERROR, NoteStatus.COMPLETED
    ]
    assert notes[1].error == "テキストを検出できませんでした"
    assert notes[2].error == "boom"
    assert notes[1].items == []


def test_completed_note_carries_extraction(make_processor, image_upload, structured_note_text):
    processor, _ = make_processor([structured_note_text])
    note = processor.submit([image_upload()])[0]

    assert note.supplier_name == "山田商事"
    assert note.note_number == "DN-2024-001"
    assert note.note_date == "2024-05-01"
    assert note.raw_text == structured_note_text
    assert len(note.items) == 2
    assert note.processing_time >= 0


def test_missing_credential_rejected_before_intake(catalog, image_upload):
    processor = BatchProcessor(ProviderConfig(backend="raw_text"), catalog)
    with pytest.raises(MissingCredentialError):
        processor.submit([image_upload()])
    assert processor.notes == []


def test_selection_without_images_creates_no_notes(make_processor):
    processor, engine = make_processor([])
    with pytest.raises(IngestionError):
        processor.submit([UploadedFile("memo.txt", b"hello", "text/plain")])
    assert processor.notes == []
    assert engine.calls == []
    assert not processor.is_processing


def test_submit_while_processing_is_refused(make_processor, image_upload, structured_note_text):
    processor, engine = make_processor([structured_note_text])
    refused = []

    def submit_again():
        try:
            processor.submit([image_upload("other.png")])
        except BatchInProgressError:
            refused.append(True)

    engine.before_call = submit_again
    processor.submit([image_upload()])

    assert refused == [True]
    assert len(processor.notes) == 1


def test_submit_from_another_thread_during_intake_is_refused(
        make_processor, image_upload, structured_note_text):
    processor, _ = make_processor([structured_note_text, structured_note_text])
    outcome = []

    def submit_other():
        try:
            processor.submit([image_upload("other.png")])
            outcome.append("accepted")
        except BatchInProgressError:
            outcome.append("refused")

    class RacingInputHandler(InputHandler):
        def prepare(self, files):
            worker = threading.Thread(target=submit_other)
            worker.start()
            worker.join(timeout=5)
            return super().prepare(files)

    processor.input_handler = RacingInputHandler()
    processor.submit([image_upload("mine.png")])

    assert outcome == ["refused"]
    assert [(n.file_name, n.status) for n in processor.notes] == [
        ("mine.png", NoteStatus.COMPLETED)
    ]
    assert not processor.is_processing


def test_cancel_leaves_remaining_notes_pending(make_processor, image_upload, structured_note_text):
    processor, engine = make_processor([structured_note_text] * 3)
    engine.before_call = processor.cancel

    notes = processor.submit([image_upload("a.png"), image_upload("b.png"), image_upload("c.png")])

    assert [n.status for n in notes] == [NoteStatus.COMPLETED, NoteStatus.PENDING, NoteStatus.PENDING]

    engine.before_call = None
    processor.process_pending()
    assert all(n.status is NoteStatus.COMPLETED for n in processor.notes)


def test_resubmit_failed_note(make_processor, image_upload, structured_note_text):
    processor, _ = make_processor([ProviderError("quota exceeded"), structured_note_text])
    failed = processor.submit([image_upload()])[0]

    retry = processor.resubmit(failed.id)

    assert retry.id != failed.id
    assert retry.image_data == failed.image_data
    assert retry.status is NoteStatus.COMPLETED
    assert failed.status is NoteStatus.ERROR
    assert len(processor.notes) == 2

    with pytest.raises(IngestionError):
        processor.resubmit(retry.id)


def test_update_listener_sees_every_transition(make_processor, image_upload, structured_note_text):
    seen = []
    processor, _ = make_processor(
        [structured_note_text],
        on_update=lambda note: seen.append(note.status if note else None)
    )
    processor.submit([image_upload()])
    assert seen == [NoteStatus.PENDING, NoteStatus.PROCESSING, NoteStatus.COMPLETED]


def test_failing_listener_does_not_stall_the_batch(make_processor, image_upload, structured_note_text):
    def listener(note):
        if note is not None and note.status is NoteStatus.PROCESSING:
            raise RuntimeError("ui gone")

    processor, engine = make_processor([structured_note_text] * 2, on_update=listener)
    notes = processor.submit([image_upload("a.png"), image_upload("b.png")])

    assert [n.status for n in notes] == [NoteStatus.COMPLETED, NoteStatus.COMPLETED]
    assert len(engine.calls) == 2
    assert not processor.is_processing


@pytest.fixture
def completed_note(make_processor, image_upload, structured_note_text):
    processor, _ = make_processor([structured_note_text])
    note = processor.submit([image_upload()])[0]
    return processor, note


def test_manual_selection_and_clear(completed_note):
    processor, note = completed_note

    item = processor.select_product(note.id, 1, "P-002")
    assert item.match_tier is MatchTier.MANUAL
    assert item.confidence == 100
    assert item.matched_product_id == "P-002"

    item = processor.clear_product(note.id, 1)
    assert item.confidence == 0
    assert not item.matched

    item = processor.select_product(note.id, 0, "P-404")
    assert item.confidence == 0
    assert item.matched_product_id is None


def test_quantity_edits_are_clamped(completed_note):
    processor, note = completed_note
    item = processor.update_quantity(note.id, 0, -5)
    assert item.quantity == 0
    assert processor.confirmed_items() == []

    processor.update_quantity(note.id, 0, 12)
    assert [c.quantity for c in processor.confirmed_items()] == [12]


def test_confirmed_items_carry_note_context(completed_note):
    processor, note = completed_note
    confirmed = processor.confirmed_items()

    assert len(confirmed) == 1
    assert confirmed[0].product_id == "P-001"
    assert confirmed[0].note_id == note.id
    assert confirmed[0].note_number == "DN-2024-001"


def test_remove_item_note_and_toggle(completed_note):
    processor, note = completed_note

    removed = processor.remove_item(note.id, 1)
    assert removed.product_name == "ホッチキス"
    assert len(note.items) == 1

    assert processor.toggle_expanded(note.id) is False

    processor.remove_note(note.id)
    assert processor.notes == []
    with pytest.raises(NoteNotFoundError):
        processor.get_note(note.id)


def test_edit_targets_must_exist(completed_note):
    processor, note = completed_note
    with pytest.raises(ItemNotFoundError):
        processor.update_quantity(note.id, 5, 1)
    with pytest.raises(NoteNotFoundError):
        processor.select_product("note-missing", 0, "P-001")


def test_summary(make_processor, image_upload, structured_note_text):
    processor, _ = make_processor([structured_note_text, ProviderError("x")])
    processor.submit([image_upload("a.png"), image_upload("b.png")])

    summary = processor.summary()
    assert summary["completed"] == 1
    assert summary["error"] == 1
    assert summary["pending"] == 0
    assert summary["total"] == 2
    assert summary["confirmed_items"] == 1


def test_note_keeps_original_bytes(make_processor, png_bytes, image_upload, structured_note_text):
    processor, _ = make_processor([structured_note_text])
    note = processor.submit([image_upload()])[0]

    assert note.raw_bytes == png_bytes
    assert note.image_metadata["format"] == "PNG"
    data = note.to_dict()
    assert data["status"] == "completed"
    assert "image_data_url" not in data
    assert note.to_dict(include_image=True)["image_data_url"] == note.image_data_url
