from finediet.question_sets.csv_import import import_question_set_csv, parse_csv, parse_csv_line

META = "key,value\nversion,2\nassessmentType,gut-check\nassessmentVersion,3\nnotes,From the spreadsheet\n"
SECTIONS = "section_id,title,order\ns2,Second,2\ns1,First,1\n"
QUESTIONS = (
    "question_id,section_id,text,order\n"
    'q2,s1,"Second, with a comma",2\n'
    "q1,s1,First question,1\n"
    "q3,s2,Third question,1\n"
)


def options_csv(question_ids=("q1", "q2", "q3")) -> str:
    lines = ["question_id,option_id,label,value"]
    for qid in question_ids:
        for value in (3, 1, 0, 2):
            lines.append(f"{qid},{qid}_{value},Label {value},{value}")
    return "\n".join(lines) + "\n"


def test_parse_csv_line_handles_quotes():
    assert parse_csv_line('a,"b ""c""",d') == ["a", 'b "c"', "d"]
    assert parse_csv_line('"x,y",') == ["x,y", ""]


def test_parse_csv_line_follows_csv_module_rules():
    assert parse_csv_line('a,"b,c') == ["a", "b,c"]
    assert parse_csv_line('"say ""hi""",x') == ['say "hi"', "x"]


def test_parse_csv_skips_blank_lines_and_numbers_rows():
    rows, errors = parse_csv("a,b\n\n1,2\r\n  \n3,4", "t.csv", ["a", "b"])
    assert errors == []
    assert [(r["a"], r["__row_number"]) for r in rows] == [("1", 2), ("3", 3)]


def test_parse_csv_header_mismatch():
    _, errors = parse_csv("key,val\nversion,2\n", "meta.csv", ["key", "value"])
    assert errors == [{
        "file": "meta.csv",
        "row": 1,
        "column": "value",
        "message": 'Header mismatch: expected "value", got "val"',
    }]


def test_parse_csv_empty_file():
    _, errors = parse_csv("\n\n", "sections.csv", ["section_id", "title", "order"])
    assert errors == [{"file": "sections.csv", "row": 0, "message": "CSV file is empty"}]


def test_parse_csv_column_count():
    rows, errors = parse_csv("a,b\n1,2,3\n", "t.csv", ["a", "b"])
    assert rows == []
    assert errors[0]["row"] == 2
    assert errors[0]["message"] == "Row has 3 columns, expected 2"


def test_import_builds_ordered_question_set():
    result = import_question_set_csv(META, SECTIONS, QUESTIONS, options_csv())
    assert result["errors"] == []
    question_set = result["question_set"]
    assert question_set["version"] == "2"
    assert [s["id"] for s in question_set["sections"]] == ["s1", "s2"]
    assert question_set["sections"][0]["questionIds"] == ["q1", "q2"]
    q2 = next(q for q in question_set["questions"] if q["id"] == "q2")
    assert q2["text"] == "Second, with a comma"
    assert [o["value"] for o in q2["options"]] == [0, 1, 2, 3]
    assert result["meta"] == {
        "assessment_type": "gut-check",
        "assessment_version": "3",
        "locale": None,
        "notes": "From the spreadsheet",
    }


def test_import_reports_parse_errors_from_every_file():
    result = import_question_set_csv("", "bad\n", QUESTIONS, options_csv())
    assert result["question_set"] is None
    assert {e["file"] for e in result["errors"]} == {"meta.csv", "sections.csv"}


def test_import_requires_meta_fields():
    result = import_question_set_csv("key,value\nversion,1\n", SECTIONS, QUESTIONS, options_csv())
    messages = [e["message"] for e in result["errors"]]
    assert 'version must be "2", got "1"' in messages
    assert "assessmentType is required" in messages
    assert "assessmentVersion is required" in messages


def test_import_reports_bad_rows():
    questions = QUESTIONS + "q4,s9,Orphan,1\n"
    options = options_csv() + "q1,q1_x,Extra,7\n"
    result = import_question_set_csv(META, SECTIONS, questions, options)
    errors = result["errors"]
    assert {
        "file": "questions.csv",
        "row": 5,
        "column": "section_id",
        "message": 'section_id "s9" does not exist in sections.csv',
    } in errors
    assert {
        "file": "options.csv",
        "row": 14,
        "column": "value",
        "message": 'value must be one of {0,1,2,3}, got "7"',
    } in errors


def test_import_reports_option_count_and_duplicates():
    options = options_csv(("q1", "q2")) + "q3,q3_a,A,0\nq3,q3_a,B,0\nq3,q3_c,C,1\nq3,q3_d,D,2\n"
    result = import_question_set_csv(META, SECTIONS, QUESTIONS, options)
    messages = [e["message"] for e in result["errors"]]
    assert 'Duplicate option_id "q3_a" within question "q3"' in messages
    assert 'Question "q3" has duplicate value 0' in messages
    assert 'Question "q3" is missing option with value 3' in messages


def test_import_reports_duplicate_section_and_question():
    sections = SECTIONS + "s1,Again,3\n"
    questions = QUESTIONS + "q1,s2,Dup,2\n"
    result = import_question_set_csv(META, sections, questions, options_csv())
    messages = [e["message"] for e in result["errors"]]
    assert 'Duplicate section_id: "s1"' in messages
    assert 'Duplicate question_id: "q1"' in messages
