from finediet.fallbacks.loader import load_fallback
from finediet.results_packs.validation import hash_results_pack, validate_results_pack


def test_bundled_packs_are_valid():
    packs = load_fallback("results_gut_check_v2.json")
    assert set(packs) == {"level1", "level2", "level3", "level4"}
    for pack in packs.values():
        result = validate_results_pack(pack)
        assert result["ok"] is True, result["errors"]


def test_rejects_non_object():
    assert validate_results_pack("pack")["errors"] == ["Pack JSON must be an object."]


def test_reports_missing_flow():
    result = validate_results_pack({})
    assert result["ok"] is False
    assert result["errors"] == ["Missing flow."]


def test_reports_non_object_flow():
    assert validate_results_pack({"flow": ["page1"]})["errors"] == ["flow must be an object."]


def test_reports_missing_pages_and_headline_warning():
    result = validate_results_pack({"flow": {"page1": {"body": "text"}, "page3": {"title": "x"}}})
    assert result["errors"] == ["Missing flow.page2."]
    assert result["warnings"] == ["flow.page1 headline/title is missing."]


def test_hash_depends_on_key_order():
    a = {"label": "x", "flow": {}}
    b = {"flow": {}, "label": "x"}
    assert hash_results_pack(a) != hash_results_pack(b)
    assert hash_results_pack(a) == hash_results_pack(dict(a))
