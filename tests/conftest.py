import io

import pytest
from PIL import Image

from config import ConfigurationManager, CONFIG_PATH_ENV
from note_scanner.batch import BatchProcessor
from note_scanner.catalog import Catalog
from note_scanner.input_handler import UploadedFile
from note_scanner.ocr_engine import ProviderConfig


STRUCTURED_NOTE_TEXT = """仕入先: 山田商事株式会社
納品書番号: DN-2024-001
日付: 2024年5月1日
商品名: ボールペン 黒 / 数量: 10
商品名: ホッチキス / 数量: 2
"""


@pytest.fixture(autouse=True)
def fresh_config(monkeypatch):
    monkeypatch.delenv(CONFIG_PATH_ENV, raising=False)
    ConfigurationManager.reset()
    yield
    ConfigurationManager.reset()


@pytest.fixture
def catalog():
    return Catalog.from_records(
        products=[
            {"id": "P-001", "name": "ボールペン 黒", "supplier_id": "S-01", "unit_price": 120},
            {"id": "P-002", "name": "消しゴム", "supplier_id": "S-01"},
            {"id": "P-003", "name": "コピー用紙 A4", "supplier_id": "S-02"},
        ],
        suppliers=[
            {"id": "S-01", "name": "山田商事"},
            {"id": "S-02", "name": "鈴木紙業"},
        ],
    )


@pytest.fixture
def structured_note_text():
    return STRUCTURED_NOTE_TEXT


@pytest.fixture
def provider_config():
    return ProviderConfig(backend="structured", openai_api_key="sk-test")


def make_png(width=8, height=8):
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), "white").save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def png_bytes():
    return make_png()


@pytest.fixture
def image_upload(png_bytes):
    def _make(name="note.png"):
        return UploadedFile(name, png_bytes, "image/png")
    return _make


class FakeEngine:
    """Returns scripted results in call order; Exceptions are raised."""

    def __init__(self, results):
        self.results = list(results)
        self.calls = []
        self.before_call = None

    def recognize(self, image_data, image_data_url):
        self.calls.append(image_data_url)
        if self.before_call is not None:
            self.before_call()
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


class RecordingLedger:
    def __init__(self, fail_for=()):
        self.calls = []
        self.fail_for = set(fail_for)

    def adjust_stock(self, product_id, quantity, direction, options):
        if product_id in self.fail_for:
            raise RuntimeError(f"ledger unavailable for {product_id}")
        self.calls.append((product_id, quantity, direction, options))


@pytest.fixture
def make_processor(catalog, provider_config):
    def _make(results, **kwargs):
        engine = FakeEngine(results)
        processor = BatchProcessor(provider_config, catalog, engine=engine, **kwargs)
        return processor, engine
    return _make


@pytest.fixture
def ledger():
    return RecordingLedger()


@pytest.fixture
def ledger_factory():
    return RecordingLedger
