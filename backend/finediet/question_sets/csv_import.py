"""Build a v2 question set from four CSV exports (meta, sections, questions, options).

Every problem is reported as {"file", "row", "column", "message"} with 1-based
row numbers counted over non-blank lines, header included.
"""

import csv
import math
import re

META_HEADERS = ["key", "value"]
SECTION_HEADERS = ["section_id", "title", "order"]
QUESTION_HEADERS = ["question_id", "section_id", "text", "order"]
OPTION_HEADERS = ["question_id", "option_id", "label", "value"]

ROW_NUMBER = "__row_number"

_LINE_SPLIT = re.compile(r"\r?\n")


def _error(file: str, row: int, message: str, column: str | None = None) -> dict:
    error = {"file": file, "row": row, "message": message}
    if column is not None:
        error["column"] = column
    return error


def parse_csv_line(line: str) -> list[str]:
    return next(csv.reader([line]), [""])


def parse_csv(content: str, filename: str, expected_headers: list[str]) -> tuple[list[dict], list[dict]]:
    """Returns (rows, errors). Each row maps header -> trimmed value plus its row number."""
    errors: list[dict] = []
    rows: list[dict] = []

    lines = [line for line in _LINE_SPLIT.split(content) if line.strip()]
    if not lines:
        return rows, [_error(filename, 0, "CSV file is empty")]

    headers = parse_csv_line(lines[0])
    if len(headers) != len(expected_headers):
        return rows, [_error(filename, 1, f"Expected {len(expected_headers)} columns, got {len(headers)}")]
    for got, expected in zip(headers, expected_headers):
        if got != expected:
            return rows, [
                _error(filename, 1, f'Header mismatch: expected "{expected}", got "{got}"', expected)
            ]

    for index, line in enumerate(lines[1:], start=2):
        values = parse_csv_line(line)
        if len(values) != len(headers):
            errors.append(_error(filename, index, f"Row has {len(values)} columns, expected {len(headers)}"))
            continue
        row = {header: value.strip() for header, value in zip(headers, values)}
        row[ROW_NUMBER] = index
        rows.append(row)

    return rows, errors


def _parse_order(value: str) -> float | None:
    try:
        order = float(value)
    except ValueError:
        return None
    if math.isnan(order):
        return None
    return order


def _parse_option_value(value: str) -> int | None:
    match = re.match(r"^\s*([+-]?\d+)", value)
    if not match:
        return None
    parsed = int(match.group(1))
    return parsed if parsed in (0, 1, 2, 3) else None


def build_question_set(
    meta_rows: list[dict],
    section_rows: list[dict],
    question_rows: list[dict],
    option_rows: list[dict],
) -> dict:
    """Returns {"question_set", "meta", "errors"}; question_set is None whenever errors is non-empty."""
    errors: list[dict] = []
    failed = {"question_set": None, "meta": None, "errors": errors}

    if not meta_rows:
        errors.append(_error("meta.csv", 0, "meta.csv must have at least one data row"))
        return failed

    meta = {}
    meta_row_numbers = {}
    for row in meta_rows:
        key = (row.get("key") or "").strip()
        if key:
            meta[key] = (row.get("value") or "").strip()
            meta_row_numbers.setdefault(key, row[ROW_NUMBER])
    first_meta_row = meta_rows[0][ROW_NUMBER]

    version = meta.get("version", "")
    assessment_type = meta.get("assessmentType", "")
    assessment_version = meta.get("assessmentVersion", "")

    if version != "2":
        errors.append(_error(
            "meta.csv", meta_row_numbers.get("version", first_meta_row),
            f'version must be "2", got "{version or "empty"}"', "value",
        ))
    if not assessment_type:
        errors.append(_error(
            "meta.csv", meta_row_numbers.get("assessmentType", first_meta_row),
            "assessmentType is required", "value",
        ))
    if not assessment_version:
        errors.append(_error(
            "meta.csv", meta_row_numbers.get("assessmentVersion", first_meta_row),
            "assessmentVersion is required", "value",
        ))
    if errors:
        return failed

    sections = []
    for row in section_rows:
        order = _parse_order(row["order"])
        if order is None:
            errors.append(_error("sections.csv", row[ROW_NUMBER], f'order must be numeric, got "{row["order"]}"', "order"))
            continue
        sections.append({"row": row[ROW_NUMBER], "id": row["section_id"], "title": row["title"], "order": order})
    sections.sort(key=lambda s: s["order"])

    section_ids: set[str] = set()
    for section in sections:
        if section["id"] in section_ids:
            errors.append(_error(
                "sections.csv", section["row"], f'Duplicate section_id: "{section["id"]}"', "section_id",
            ))
        section_ids.add(section["id"])

    questions_by_section: dict[str, list[dict]] = {}
    for row in question_rows:
        order = _parse_order(row["order"])
        if order is None:
            errors.append(_error("questions.csv", row[ROW_NUMBER], f'order must be numeric, got "{row["order"]}"', "order"))
            continue
        if row["section_id"] not in section_ids:
            errors.append(_error(
                "questions.csv", row[ROW_NUMBER],
                f'section_id "{row["section_id"]}" does not exist in sections.csv', "section_id",
            ))
            continue
        questions_by_section.setdefault(row["section_id"], []).append({
            "row": row[ROW_NUMBER],
            "id": row["question_id"],
            "text": row["text"],
            "order": order,
        })
    for questions in questions_by_section.values():
        questions.sort(key=lambda q: q["order"])

    question_text: dict[str, str] = {}
    for questions in questions_by_section.values():
        for question in questions:
            if question["id"] in question_text:
                errors.append(_error(
                    "questions.csv", question["row"], f'Duplicate question_id: "{question["id"]}"', "question_id",
                ))
                continue
            question_text[question["id"]] = question["text"]

    options_by_question: dict[str, list[dict]] = {}
    for row in option_rows:
        value = _parse_option_value(row["value"])
        if value is None:
            errors.append(_error(
                "options.csv", row[ROW_NUMBER], f'value must be one of {{0,1,2,3}}, got "{row["value"]}"', "value",
            ))
            continue
        if row["question_id"] not in question_text:
            errors.append(_error(
                "options.csv", row[ROW_NUMBER],
                f'question_id "{row["question_id"]}" does not exist in questions.csv', "question_id",
            ))
            continue
        options_by_question.setdefault(row["question_id"], []).append({
            "row": row[ROW_NUMBER],
            "id": row["option_id"],
            "label": row["label"],
            "value": value,
        })

    for question_id, options in options_by_question.items():
        first_row = options[0]["row"]
        if len(options) != 4:
            errors.append(_error(
                "options.csv", first_row,
                f'Question "{question_id}" must have exactly 4 options, got {len(options)}', "question_id",
            ))
            continue

        option_ids: set[str] = set()
        for option in options:
            if option["id"] in option_ids:
                errors.append(_error(
                    "options.csv", option["row"],
                    f'Duplicate option_id "{option["id"]}" within question "{question_id}"', "option_id",
                ))
            option_ids.add(option["id"])

        for expected in (0, 1, 2, 3):
            matches = [o for o in options if o["value"] == expected]
            if not matches:
                errors.append(_error(
                    "options.csv", first_row,
                    f'Question "{question_id}" is missing option with value {expected}', "value",
                ))
            elif len(matches) > 1:
                errors.append(_error(
                    "options.csv", matches[1]["row"],
                    f'Question "{question_id}" has duplicate value {expected}', "value",
                ))

    if errors:
        return failed

    question_set = {
        "version": "2",
        "assessmentType": assessment_type,
        "sections": [
            {
                "id": section["id"],
                "title": section["title"],
                "questionIds": [q["id"] for q in questions_by_section.get(section["id"], [])],
            }
            for section in sections
        ],
        "questions": [
            {
                "id": question_id,
                "text": text,
                "options": [
                    {"id": o["id"], "label": o["label"], "value": o["value"]}
                    for o in sorted(options_by_question.get(question_id, []), key=lambda o: o["value"])
                ],
            }
            for question_id, text in question_text.items()
        ],
    }
    return {
        "question_set": question_set,
        "meta": {
            "assessment_type": assessment_type,
            "assessment_version": assessment_version,
            "locale": meta.get("locale") or None,
            "notes": meta.get("notes") or None,
        },
        "errors": [],
    }


def import_question_set_csv(meta_csv: str, sections_csv: str, questions_csv: str, options_csv: str) -> dict:
    """Parse all four files and build the question set. Parse errors from every file are reported together."""
    meta_rows, meta_errors = parse_csv(meta_csv, "meta.csv", META_HEADERS)
    section_rows, section_errors = parse_csv(sections_csv, "sections.csv", SECTION_HEADERS)
    question_rows, question_errors = parse_csv(questions_csv, "questions.csv", QUESTION_HEADERS)
    option_rows, option_errors = parse_csv(options_csv, "options.csv", OPTION_HEADERS)

    parse_errors = meta_errors + section_errors + question_errors + option_errors
    if parse_errors:
        return {"question_set": None, "meta": None, "errors": parse_errors}
    return build_question_set(meta_rows, section_rows, question_rows, option_rows)
