import hashlib
import json

SCHEMA_VERSION = "v2_question_schema_1"
OPTION_VALUES = (0, 1, 2, 3)


def hash_question_set(content: dict) -> str:
    """sha256 over key-sorted compact JSON, so key order in the stored document does not matter."""
    canonical = json.dumps(content, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def _non_empty_str(value) -> bool:
    return isinstance(value, str) and bool(value)


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _validate_options(i: int, options: list, errors: list[str]) -> None:
    if len(options) != 4:
        errors.append(f"questions[{i}].options must have exactly 4 options, got {len(options)}.")

    option_ids: set[str] = set()
    values: set[int] = set()
    for j, option in enumerate(options):
        where = f"questions[{i}].options[{j}]"
        if not isinstance(option, dict):
            errors.append(f"{where} must be an object.")
            continue

        option_id = option.get("id")
        if not _non_empty_str(option_id):
            errors.append(f"{where}.id must be a non-empty string.")
        else:
            if option_id in option_ids:
                errors.append(f'{where}.id "{option_id}" is duplicate within question.')
            option_ids.add(option_id)

        if not _non_empty_str(option.get("label")):
            errors.append(f"{where}.label must be a non-empty string.")

        value = option.get("value")
        if not _is_number(value):
            errors.append(f"{where}.value must be a number.")
        elif value not in OPTION_VALUES:
            errors.append(f"{where}.value must be one of {{0,1,2,3}}, got {value}.")
        else:
            if value in values:
                errors.append(f"{where}.value {value} is duplicate within question.")
            values.add(int(value))

    for expected in OPTION_VALUES:
        if expected not in values:
            errors.append(f"questions[{i}] is missing option with value {expected}.")


def validate_question_set(content) -> dict:
    """Structural checks for a v2 Gut Check question set.

    Returns {"ok", "errors", "warnings", "normalized"}. Errors are human-readable
    strings naming the offending path, e.g. 'questions[3].options must have exactly 4 options, got 3.'
    """
    errors: list[str] = []
    warnings: list[str] = []

    if not isinstance(content, dict):
        return {"ok": False, "errors": ["Question set JSON must be an object."], "warnings": warnings, "normalized": None}

    if content.get("version") != "2":
        errors.append(f'version must be "2", got "{content.get("version")}".')
    if content.get("assessmentType") != "gut-check":
        errors.append(f'assessmentType must be "gut-check", got "{content.get("assessmentType")}".')

    sections = content.get("sections")
    if not isinstance(sections, list):
        errors.append("sections must be an array.")
        return {"ok": False, "errors": errors, "warnings": warnings, "normalized": None}
    if not sections:
        errors.append("sections array must be non-empty.")

    section_ids: set[str] = set()
    referenced: dict[str, None] = {}
    for i, section in enumerate(sections):
        if not isinstance(section, dict):
            errors.append(f"sections[{i}] must be an object.")
            continue

        section_id = section.get("id")
        if not _non_empty_str(section_id):
            errors.append(f"sections[{i}].id must be a non-empty string.")
        else:
            if section_id in section_ids:
                errors.append(f'sections[{i}].id "{section_id}" is duplicate.')
            section_ids.add(section_id)

        if not _non_empty_str(section.get("title")):
            errors.append(f"sections[{i}].title must be a non-empty string.")

        question_ids = section.get("questionIds")
        if not isinstance(question_ids, list):
            errors.append(f"sections[{i}].questionIds must be an array.")
        else:
            if not question_ids:
                errors.append(f"sections[{i}].questionIds must be non-empty.")
            for qid in question_ids:
                if isinstance(qid, str):
                    referenced[qid] = None

    questions = content.get("questions")
    if not isinstance(questions, list):
        errors.append("questions must be an array.")
        return {"ok": False, "errors": errors, "warnings": warnings, "normalized": None}
    if not questions:
        errors.append("questions array must be non-empty.")

    question_ids_seen: set[str] = set()
    for i, question in enumerate(questions):
        if not isinstance(question, dict):
            errors.append(f"questions[{i}] must be an object.")
            continue

        question_id = question.get("id")
        if not _non_empty_str(question_id):
            errors.append(f"questions[{i}].id must be a non-empty string.")
        else:
            if question_id in question_ids_seen:
                errors.append(f'questions[{i}].id "{question_id}" is duplicate.')
            question_ids_seen.add(question_id)

        if not _non_empty_str(question.get("text")):
            errors.append(f"questions[{i}].text must be a non-empty string.")

        options = question.get("options")
        if not isinstance(options, list):
            errors.append(f"questions[{i}].options must be an array.")
        else:
            _validate_options(i, options, errors)

    for qid in referenced:
        if qid not in question_ids_seen:
            errors.append(f'Section references question.id "{qid}" which does not exist.')

    return {"ok": not errors, "errors": errors, "warnings": warnings, "normalized": content}
