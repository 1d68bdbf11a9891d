import re

_VIDEO_ID = r"([a-zA-Z0-9_-]{11})"

_WATCH_RE = re.compile(r"youtube\.com/watch\?v=" + _VIDEO_ID)
_SHORT_RE = re.compile(r"youtu\.be/" + _VIDEO_ID)
_EMBED_RE = re.compile(r"youtube\.com/embed/" + _VIDEO_ID)
_SHORTS_RE = re.compile(r"youtube\.com/shorts/" + _VIDEO_ID)
_ID_ONLY_RE = re.compile(r"^" + _VIDEO_ID + r"$")

_T_PARAM_RE = re.compile(r"[?&]t=([^&]+)")
_START_PARAM_RE = re.compile(r"[?&]start=([0-9]+)")

_DIGITS_RE = re.compile(r"[0-9]+")
_HOURS_RE = re.compile(r"([0-9]+)h")
_MINUTES_RE = re.compile(r"([0-9]+)m")
_SECONDS_RE = re.compile(r"([0-9]+)s")


def parse_time_string(value: str) -> int | None:
    """'90', '90s' and '1h2m3s' style offsets to seconds."""
    if not value:
        return None
    if _DIGITS_RE.fullmatch(value):
        return int(value)

    total = 0
    found = False
    for pattern, multiplier in ((_HOURS_RE, 3600), (_MINUTES_RE, 60), (_SECONDS_RE, 1)):
        match = pattern.search(value)
        if match:
            total += int(match.group(1)) * multiplier
            found = True
    return total if found else None


def _t_param(url: str) -> int | None:
    match = _T_PARAM_RE.search(url)
    return parse_time_string(match.group(1)) if match else None


def parse_youtube(value: str | None) -> dict | None:
    """Extract {video_id, start_seconds} from a YouTube URL or bare id."""
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None

    match = _WATCH_RE.search(text) or _SHORT_RE.search(text)
    if match:
        return {"video_id": match.group(1), "start_seconds": _t_param(text)}

    match = _EMBED_RE.search(text)
    if match:
        start = _START_PARAM_RE.search(text)
        return {"video_id": match.group(1), "start_seconds": int(start.group(1)) if start else None}

    match = _SHORTS_RE.search(text) or _ID_ONLY_RE.match(text)
    if match:
        return {"video_id": match.group(1), "start_seconds": None}

    return None


def build_embed_url(video_id: str, start_seconds: int | None = None) -> str:
    if not _ID_ONLY_RE.match(video_id or ""):
        raise ValueError(f"Invalid video ID format: {video_id}")
    url = f"https://www.youtube.com/embed/{video_id}?autoplay=1&rel=0"
    if start_seconds:
        url += f"&start={start_seconds}"
    return url
