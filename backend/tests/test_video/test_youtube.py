import pytest
from httpx import AsyncClient

from finediet.video.youtube import build_embed_url, parse_time_string, parse_youtube

VIDEO_ID = "dQw4w9WgXcQ"


@pytest.mark.parametrize(
    "value, expected",
    [
        (f"https://www.youtube.com/watch?v={VIDEO_ID}", {"video_id": VIDEO_ID, "start_seconds": None}),
        (f"https://www.youtube.com/watch?v={VIDEO_ID}&t=1m30s", {"video_id": VIDEO_ID, "start_seconds": 90}),
        (f"https://youtu.be/{VIDEO_ID}?t=42", {"video_id": VIDEO_ID, "start_seconds": 42}),
        (f"https://www.youtube.com/embed/{VIDEO_ID}?start=15", {"video_id": VIDEO_ID, "start_seconds": 15}),
        (f"https://youtube.com/shorts/{VIDEO_ID}", {"video_id": VIDEO_ID, "start_seconds": None}),
        (f"  {VIDEO_ID}  ", {"video_id": VIDEO_ID, "start_seconds": None}),
    ],
)
def test_parse_youtube(value, expected):
    assert parse_youtube(value) == expected


@pytest.mark.parametrize("value", [None, "", "   ", "https://vimeo.com/123", "tooshort", f"{VIDEO_ID}x"])
def test_parse_youtube_rejects(value):
    assert parse_youtube(value) is None


@pytest.mark.parametrize(
    "value, expected",
    [("90", 90), ("45s", 45), ("2m", 120), ("1h2m3s", 3723), ("", None), ("later", None)],
)
def test_parse_time_string(value, expected):
    assert parse_time_string(value) == expected


def test_build_embed_url():
    assert build_embed_url(VIDEO_ID) == f"https://www.youtube.com/embed/{VIDEO_ID}?autoplay=1&rel=0"
    assert build_embed_url(VIDEO_ID, 30).endswith("&start=30")
    with pytest.raises(ValueError):
        build_embed_url("bad id")


@pytest.mark.asyncio
async def test_youtube_endpoint(client: AsyncClient):
    response = await client.get("/api/v1/video/youtube", params={"url": f"https://youtu.be/{VIDEO_ID}?t=1m"})
    assert response.status_code == 200
    assert response.json() == {
        "video_id": VIDEO_ID,
        "start_seconds": 60,
        "embed_url": f"https://www.youtube.com/embed/{VIDEO_ID}?autoplay=1&rel=0&start=60",
    }

    response = await client.get("/api/v1/video/youtube", params={"url": "https://example.org/clip"})
    assert response.status_code == 404


@pytest.mark.parametrize("value", ["²", "１２", "٣s"])
def test_parse_time_string_rejects_non_ascii_digits(value):
    assert parse_time_string(value) is None


@pytest.mark.asyncio
async def test_youtube_endpoint_ignores_superscript_start(client: AsyncClient):
    assert parse_youtube(f"https://youtu.be/{VIDEO_ID}?t=²") == {"video_id": VIDEO_ID, "start_seconds": None}
    response = await client.get("/api/v1/video/youtube", params={"url": f"https://youtu.be/{VIDEO_ID}?t=²"})
    assert response.status_code == 200
    assert response.json()["start_seconds"] is None
    assert response.json()["embed_url"] == f"https://www.youtube.com/embed/{VIDEO_ID}?autoplay=1&rel=0"
