import pytest

from note_scanner.extraction import EntityExtractor
from note_scanner.matching import MatchTier
from note_scanner.utils.exceptions import ExtractionError


def test_structured_note(catalog, structured_note_text):
    result = EntityExtractor(catalog).extract(structured_note_text)

    assert result.supplier_name == "山田商事"
    assert result.matched_supplier_id == "S-01"
    assert result.note_number == "DN-2024-001"
    assert result.note_date == "2024-05-01"
    assert result.parse_path == "structured"

    pen, stapler = result.items
    assert (pen.product_name, pen.quantity) == ("ボールペン 黒", 10)
    assert pen.match_tier is MatchTier.EXACT
    assert pen.matched_product_id == "P-001"
    assert pen.review_level == "high"
    assert pen.is_confirmed

    assert stapler.product_name == "ホッチキス"
    assert stapler.confidence == 30
    assert stapler.review_level == "low"
    assert not stapler.is_confirmed


def test_heuristic_fallback_when_no_structured_rows(catalog):
    text = "鈴木紙業\nコピー用紙 5箱 ¥2,500\n"
    result = EntityExtractor(catalog).extract(text)

    assert result.supplier_name == "鈴木紙業"
    assert result.parse_path == "heuristic"
    assert len(result.items) == 1
    item = result.items[0]
    assert item.product_name == "コピー用紙"
    assert item.quantity == 5
    assert item.matched_product_id == "P-003"
    assert item.match_tier is MatchTier.PARTIAL
    assert item.review_level == "medium"


def test_structured_rows_suppress_heuristic(catalog, structured_note_text):
    text = structured_note_text + "消しゴム 3個\n"
    result = EntityExtractor(catalog).extract(text)
    assert [i.product_name for i in result.items] == ["ボールペン 黒", "ホッチキス"]


def test_text_without_items_is_not_an_error(catalog):
    result = EntityExtractor(catalog).extract("山田商事 御中\nいつもお世話になっております")
    assert result.is_empty
    assert result.parse_path == "none"
    assert result.supplier_name == "山田商事"

    assert EntityExtractor(catalog).extract("").items == []


def test_extraction_is_repeatable(catalog, structured_note_text):
    extractor = EntityExtractor(catalog)
    assert extractor.extract(structured_note_text).to_dict() == \
        extractor.extract(structured_note_text).to_dict()


def test_non_text_input_is_an_extraction_error(catalog):
    with pytest.raises(ExtractionError):
        EntityExtractor(catalog).extract(b"\xe5\x95\x86")


def test_overlong_digit_runs_are_not_quantities(catalog):
    noise = "1" * 5000
    extractor = EntityExtractor(catalog)

    structured = extractor.extract(f"商品名: 軍手 / 数量: {noise}\n商品名: 消しゴム / 数量: 3\n")
    assert [(i.product_name, i.quantity) for i in structured.items] == [("消しゴム", 3)]

    heuristic = extractor.extract(f"軍手 {noise}双\nコピー用紙 5箱 ¥{noise}\n")
    assert [(i.product_name, i.quantity) for i in heuristic.items] == [("コピー用紙", 5)]
    assert heuristic.items[0].unit_price == 5
