import pytest

from note_scanner.input_handler import ImageProcessor, InputHandler, UploadedFile
from note_scanner.utils.exceptions import IngestionError


def test_non_images_are_dropped(image_upload):
    files = [
        image_upload("a.png"),
        UploadedFile("memo.txt", b"hello", "text/plain"),
        image_upload("b.png"),
        image_upload("c.png"),
    ]
    prepared = InputHandler().prepare(files)

    assert [p.filename for p in prepared] == ["a.png", "b.png", "c.png"]
    assert prepared[0].content_type == "image/png"
    assert prepared[0].image_data_url.startswith("data:image/png;base64,")
    assert prepared[0].image_data_url.endswith(prepared[0].image_data)
    assert prepared[0].metadata["width"] == 8
    assert prepared[0].metadata["format"] == "PNG"


def test_selection_without_images_is_rejected():
    files = [UploadedFile("memo.txt", b"hello", "text/plain")]
    with pytest.raises(IngestionError) as exc:
        InputHandler().prepare(files)
    assert exc.value.message == "画像ファイルを選択してください"


def test_only_first_files_of_a_selection_are_used(image_upload):
    files = [image_upload(f"note{i}.png") for i in range(12)]
    prepared = InputHandler().prepare(files)
    assert len(prepared) == 10
    assert prepared[-1].filename == "note9.png"


def test_pdf_accepted_by_extension():
    prepared = InputHandler().prepare([UploadedFile("scan.pdf", b"%PDF-1.7\n...")])
    assert prepared[0].content_type == "application/pdf"
    assert prepared[0].metadata == {}


def test_content_type_sniffed_when_nothing_declared(png_bytes):
    prepared = InputHandler().prepare([UploadedFile("upload", png_bytes)])
    assert prepared[0].content_type == "image/png"


def test_describe_returns_none_for_non_images():
    processor = ImageProcessor()
    assert processor.describe(b"not an image") is None
    assert processor.describe(b"") is None
    assert processor.sniff_mime_type(b"%PDF-1.4") == "application/pdf"
