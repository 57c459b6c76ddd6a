from note_scanner.catalog import Supplier
from note_scanner.extraction.parsers import (
    DEFAULT_RULES,
    HeuristicRules,
    detect_supplier,
    parse_heuristic_items,
    parse_note_number,
    parse_structured_items,
)


RAW_OCR_TEXT = """納品書
山田商事 御中
ボールペン 黒 10本 ¥120 ¥1,200
TEL 03-1234-5678
消しゴム x5
合計 ¥1,700
"""


def test_detect_supplier_takes_first_in_catalog_order():
    long_first = [Supplier("S1", "山田商事"), Supplier("S2", "山田")]
    short_first = [Supplier("S2", "山田"), Supplier("S1", "山田商事")]
    assert detect_supplier("株式会社山田商事", long_first).id == "S1"
    assert detect_supplier("株式会社山田商事", short_first).id == "S2"
    assert detect_supplier("鈴木紙業", long_first) is None


def test_parse_note_number():
    assert parse_note_number("納品書番号: DN-2024-001") == "DN-2024-001"
    assert parse_note_number("納品書：A123") == "A123"
    assert parse_note_number("請求書") is None


def test_structured_items_skip_zero_quantity_and_empty_names():
    text = (
        "商品名: ボールペン 黒 / 数量: 10\n"
        "商品名: 消しゴム / 数量: 0\n"
        "商品名:  / 数量: 4\n"
        "商品名：ノート | 数量：3\n"
    )
    items = parse_structured_items(text)
    assert [(i.product_name, i.quantity) for i in items] == [("ボールペン 黒", 10), ("ノート", 3)]
    assert items[0].raw_text == "商品名: ボールペン 黒 / 数量: 10"
    assert items[0].unit_price is None


def test_structured_items_none_in_raw_text():
    assert parse_structured_items(RAW_OCR_TEXT) == []


def test_heuristic_items_from_raw_text():
    items = parse_heuristic_items(RAW_OCR_TEXT)
    assert [(i.product_name, i.quantity) for i in items] == [("ボールペン 黒", 10), ("消しゴム", 5)]
    assert items[0].raw_text == "ボールペン 黒 10本 ¥120 ¥1,200"


def test_heuristic_unit_price_is_smallest_number_on_line():
    items = parse_heuristic_items("軍手 5双 ¥300 ¥1,500")
    assert len(items) == 1
    assert items[0].quantity == 5
    assert items[0].unit_price == 5


def test_heuristic_rejects_out_of_range_quantities():
    assert parse_heuristic_items("部品A 12345\n部品B 0") == []


def test_heuristic_skips_short_names_and_lines():
    assert parse_heuristic_items("12 個\nab\n") == []


def test_heuristic_rules_are_configurable():
    rules = HeuristicRules(skip_prefixes=("備考",), max_quantity=100)
    assert parse_heuristic_items("備考 ネジ 5個", rules) == []
    assert parse_heuristic_items("ネジ 500個", rules) == []
    assert parse_heuristic_items("ネジ 50個", rules)[0].quantity == 50


def test_default_rules_match_settings():
    assert HeuristicRules.from_config() == DEFAULT_RULES
