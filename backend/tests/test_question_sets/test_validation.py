from finediet.fallbacks.loader import load_fallback
from finediet.question_sets.service import parse_version
from finediet.question_sets.validation import hash_question_set, validate_question_set


def minimal_set() -> dict:
    return {
        "version": "2",
        "assessmentType": "gut-check",
        "sections": [{"id": "s1", "title": "Start", "questionIds": ["q1"]}],
        "questions": [
            {
                "id": "q1",
                "text": "How often?",
                "options": [{"id": f"q1_{i}", "label": f"Option {i}", "value": i} for i in range(4)],
            }
        ],
    }


def test_bundled_question_set_is_valid():
    result = validate_question_set(load_fallback("questions_gut_check_v2.json"))
    assert result["ok"] is True
    assert result["errors"] == []


def test_minimal_set_is_valid():
    content = minimal_set()
    result = validate_question_set(content)
    assert result["ok"] is True
    assert result["normalized"] == content


def test_rejects_non_object():
    result = validate_question_set(["not", "a", "dict"])
    assert result["ok"] is False
    assert result["errors"] == ["Question set JSON must be an object."]


def test_rejects_wrong_version_and_type():
    content = {**minimal_set(), "version": "3", "assessmentType": "sleep"}
    errors = validate_question_set(content)["errors"]
    assert 'version must be "2", got "3".' in errors
    assert 'assessmentType must be "gut-check", got "sleep".' in errors


def test_reports_option_count_and_missing_value():
    content = minimal_set()
    content["questions"][0]["options"].pop()
    errors = validate_question_set(content)["errors"]
    assert "questions[0].options must have exactly 4 options, got 3." in errors
    assert "questions[0] is missing option with value 3." in errors


def test_reports_duplicate_option_ids_and_values():
    content = minimal_set()
    options = content["questions"][0]["options"]
    options[1]["id"] = "q1_0"
    options[2]["value"] = 0
    errors = validate_question_set(content)["errors"]
    assert 'questions[0].options[1].id "q1_0" is duplicate within question.' in errors
    assert "questions[0].options[2].value 0 is duplicate within question." in errors
    assert "questions[0] is missing option with value 2." in errors


def test_reports_out_of_range_and_non_numeric_values():
    content = minimal_set()
    options = content["questions"][0]["options"]
    options[0]["value"] = 7
    options[1]["value"] = "1"
    errors = validate_question_set(content)["errors"]
    assert "questions[0].options[0].value must be one of {0,1,2,3}, got 7." in errors
    assert "questions[0].options[1].value must be a number." in errors


def test_reports_dangling_section_reference():
    content = minimal_set()
    content["sections"][0]["questionIds"].append("q9")
    errors = validate_question_set(content)["errors"]
    assert 'Section references question.id "q9" which does not exist.' in errors


def test_stops_early_when_sections_missing():
    content = minimal_set()
    del content["sections"]
    result = validate_question_set(content)
    assert result["errors"] == ["sections must be an array."]
    assert result["normalized"] is None


def test_hash_ignores_key_order():
    content = minimal_set()
    reordered = dict(reversed(list(content.items())))
    assert hash_question_set(content) == hash_question_set(reordered)
    assert len(hash_question_set(content)) == 64


def test_parse_version():
    assert parse_version(None) == 2
    assert parse_version("") == 2
    assert parse_version("1") == 1
    assert parse_version("3abc") == 3
    assert parse_version("v2") == 2
    assert parse_version("0") == 2
    assert parse_version("100") == 2
    assert parse_version(["5", "6"]) == 5
