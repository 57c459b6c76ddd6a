from note_scanner.catalog import Catalog, Product
from note_scanner.matching import MatchTier, ProductMatcher


def test_exact_match_by_name_and_id(catalog):
    matcher = ProductMatcher(catalog)

    by_name = matcher.match("消しゴム")
    assert by_name.tier is MatchTier.EXACT
    assert by_name.matched_product_id == "P-002"
    assert by_name.confidence == 100

    by_id = matcher.match("P-003")
    assert by_id.tier is MatchTier.EXACT
    assert by_id.matched_product_id == "P-003"


def test_partial_match_either_direction(catalog):
    matcher = ProductMatcher(catalog)

    shorter = matcher.match("ボールペン")
    assert shorter.tier is MatchTier.PARTIAL
    assert shorter.matched_product_id == "P-001"
    assert shorter.confidence == 70

    longer = matcher.match("消しゴム MONO 大")
    assert longer.matched_product_id == "P-002"
    assert longer.matched


def test_partial_match_on_id_fragment(catalog):
    assert ProductMatcher(catalog).match("P-00").matched_product_id == "P-001"


def test_no_match(catalog):
    outcome = ProductMatcher(catalog).match("ホッチキス")
    assert outcome.tier is MatchTier.NONE
    assert outcome.confidence == 30
    assert not outcome.matched
    assert outcome.matched_product_id is None


def test_blank_candidate_never_matches(catalog):
    matcher = ProductMatcher(catalog)
    assert matcher.match("").tier is MatchTier.NONE
    assert matcher.match("   ").tier is MatchTier.NONE


def test_exact_beats_earlier_partial_and_ties_follow_catalog_order():
    catalog = Catalog(products=[Product("A", "ペン"), Product("B", "ペンケース")])
    matcher = ProductMatcher(catalog)
    assert matcher.match("ペンケース").matched_product_id == "B"
    assert matcher.match("赤ペン").matched_product_id == "A"


def test_manual_select_and_clear(catalog):
    matcher = ProductMatcher(catalog)

    selected = matcher.manual_select("P-002")
    assert selected.tier is MatchTier.MANUAL
    assert selected.confidence == 100
    assert selected.matched

    unknown = matcher.manual_select("P-999")
    assert unknown.tier is MatchTier.MANUALLY_CLEARED
    assert unknown.confidence == 0
    assert not unknown.matched

    assert matcher.manual_select(None).tier is MatchTier.MANUALLY_CLEARED
    assert matcher.manual_clear().matched_product_id is None
