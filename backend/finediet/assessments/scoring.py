"""Gut Check scoring: the v2 five-axis level classifier and the v1 avatar scorer."""

import re

AXES = ("capacity", "buffer", "responsiveness", "recovery", "protection")
V2_QUESTION_IDS = tuple(f"q{i}" for i in range(1, 18))

# question -> (primary axis, secondary axis, reverse). Integration questions only feed confidence.
QUESTION_AXIS_MAP: dict[str, tuple[str, str | None, bool]] = {
    "q1": ("capacity", "buffer", True),
    "q2": ("capacity", None, True),
    "q3": ("capacity", None, True),
    "q4": ("buffer", None, True),
    "q5": ("buffer", None, True),
    "q6": ("buffer", "responsiveness", False),
    "q7": ("responsiveness", None, False),
    "q8": ("responsiveness", "recovery", False),
    "q9": ("responsiveness", None, False),
    "q10": ("recovery", None, True),
    "q11": ("recovery", None, True),
    "q12": ("recovery", "capacity", True),
    "q13": ("protection", None, False),
    "q14": ("protection", "responsiveness", False),
    "q15": ("protection", None, False),
    "q16": ("integration", None, False),
    "q17": ("integration", None, False),
}

SECONDARY_WEIGHT = 0.5

DEFAULT_AXIS_BAND_HIGH = 2.3
DEFAULT_AXIS_BAND_MODERATE = 1.3

_QUESTION_ID_RE = re.compile(r"^q\d+$")


def _find_option(question_set: dict, question_id: str, option_id: str) -> tuple[int, dict] | None:
    for question in question_set.get("questions", []):
        if question.get("id") != question_id:
            continue
        for index, option in enumerate(question.get("options", [])):
            if option.get("id") == option_id:
                return index, option
        return None
    return None


def answers_to_responses(answers: list[dict], question_set: dict) -> dict[str, int]:
    """Turn [{question_id, option_id}] into {q1..q17: 0..3}. Unanswered questions count as 0."""
    responses = {qid: 0 for qid in V2_QUESTION_IDS}
    for answer in answers:
        question_id = answer.get("question_id")
        if not question_id or not _QUESTION_ID_RE.match(question_id):
            continue
        found = _find_option(question_set, question_id, answer.get("option_id"))
        if found is None:
            continue
        index, option = found
        value = option.get("value")
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            responses[question_id] = int(min(max(value, 0), 3))
        else:
            responses[question_id] = min(index, 3)
    return responses


def compute_axis_averages(responses: dict[str, int]) -> dict[str, float]:
    totals = {axis: 0.0 for axis in AXES}
    counts = {axis: 0.0 for axis in AXES}

    for question_id, answer in responses.items():
        mapping = QUESTION_AXIS_MAP.get(question_id)
        if mapping is None:
            continue
        primary, secondary, reverse = mapping
        if primary == "integration":
            continue

        value = 3 - answer if reverse else answer
        totals[primary] += value
        counts[primary] += 1
        if secondary:
            totals[secondary] += value * SECONDARY_WEIGHT
            counts[secondary] += SECONDARY_WEIGHT

    return {axis: (totals[axis] / counts[axis] if counts[axis] > 0 else 0.0) for axis in AXES}


def band_axis(average: float, high: float, moderate: float) -> str:
    if average >= high:
        return "high"
    if average >= moderate:
        return "moderate"
    return "low"


def determine_level(bands: dict[str, str]) -> str:
    capacity = bands["capacity"]
    buffer = bands["buffer"]
    responsiveness = bands["responsiveness"]
    recovery = bands["recovery"]
    protection = bands["protection"]

    if protection == "high" and (capacity == "low" or buffer == "low"):
        return "level4"
    if capacity == "low" and protection != "high" and (buffer == "low" or recovery == "low"):
        return "level3"
    if capacity == "moderate" and buffer == "low" and responsiveness == "high" and recovery != "low":
        return "level2"
    if capacity != "low" and buffer != "low" and recovery != "low" and protection != "high":
        return "level1"
    return "level3"


def determine_modifier(bands: dict[str, str]) -> str | None:
    if bands["responsiveness"] == "high":
        return "high_responsiveness"
    if bands["recovery"] == "low":
        return "poor_recovery"
    if bands["buffer"] == "low":
        return "narrow_buffer"
    return None


def determine_confidence(responses: dict[str, int]) -> str:
    spread = abs(responses.get("q16", 0) - responses.get("q17", 0))
    if spread == 0:
        return "high"
    if spread == 1:
        return "moderate"
    return "low"


def score_v2(responses: dict[str, int], thresholds: dict | None = None) -> dict:
    thresholds = thresholds or {}
    high = thresholds.get("axisBandHigh") or DEFAULT_AXIS_BAND_HIGH
    moderate = thresholds.get("axisBandModerate") or DEFAULT_AXIS_BAND_MODERATE

    averages = compute_axis_averages(responses)
    bands = {axis: band_axis(avg, high, moderate) for axis, avg in averages.items()}

    return {
        "assessment_version": 2,
        "primary_level": determine_level(bands),
        "secondary_modifier": determine_modifier(bands),
        "confidence": determine_confidence(responses),
        "axis_bands": bands,
        "axis_averages": averages,
    }


# v1

DEFAULT_V1_THRESHOLDS = {
    "confidenceThresholds": {"high": 0.3, "medium": 0.15},
    "secondaryAvatarThreshold": 0.15,
}


def calculate_score_map(answers: list[dict], definition: dict) -> dict[str, float]:
    avatars = definition["avatars"]
    score_map = {avatar: 0.0 for avatar in avatars}
    for answer in answers:
        found = _find_option(definition, answer.get("question_id"), answer.get("option_id"))
        if found is None:
            continue
        _, option = found
        for avatar, weight in (option.get("scoreWeights") or {}).items():
            if avatar in score_map:
                score_map[avatar] += weight
    return score_map


def normalize_score_map(score_map: dict[str, float]) -> dict[str, float]:
    if not score_map:
        return {}
    values = list(score_map.values())
    top = max(*values, 1)
    bottom = min(*values, 0)
    spread = top - bottom
    if spread == 0:
        return {avatar: 1 / len(score_map) for avatar in score_map}
    return {avatar: (score - bottom) / spread for avatar, score in score_map.items()}


def get_primary_avatar(normalized: dict[str, float]) -> str:
    primary = ""
    best = -1.0
    for avatar, score in normalized.items():
        if score > best:
            best = score
            primary = avatar
    return primary


def get_secondary_avatar(normalized: dict[str, float], primary: str, threshold: float) -> str | None:
    primary_score = normalized.get(primary, 0)
    secondary = None
    best = -1.0
    for avatar, score in normalized.items():
        if avatar == primary:
            continue
        if primary_score - score <= threshold and score > best:
            best = score
            secondary = avatar
    return secondary


def calculate_confidence_score(normalized: dict[str, float], primary: str, high: float, medium: float) -> float:
    others = [score for avatar, score in normalized.items() if avatar != primary]
    if not others:
        return 1.0
    gap = normalized.get(primary, 0) - max(others)
    if gap >= high:
        return 1.0
    if gap >= medium:
        return 0.5 + 0.5 * (gap - medium) / (high - medium)
    return max(0.0, gap / medium) * 0.5


def score_v1(answers: list[dict], definition: dict, thresholds: dict | None = None) -> dict:
    overrides = {key: value for key, value in (thresholds or {}).items() if value is not None}
    thresholds = {**DEFAULT_V1_THRESHOLDS, **overrides}
    confidence_thresholds = thresholds["confidenceThresholds"]

    score_map = calculate_score_map(answers, definition)
    normalized = normalize_score_map(score_map)
    primary = get_primary_avatar(normalized)

    return {
        "assessment_version": 1,
        "score_map": score_map,
        "normalized_score_map": normalized,
        "primary_avatar": primary,
        "secondary_avatar": get_secondary_avatar(normalized, primary, thresholds["secondaryAvatarThreshold"]),
        "confidence_score": calculate_confidence_score(
            normalized, primary, confidence_thresholds["high"], confidence_thresholds["medium"],
        ),
    }
