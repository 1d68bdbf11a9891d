from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel

from finediet.video.youtube import build_embed_url, parse_youtube

router = APIRouter(prefix="/video", tags=["video"])


class YoutubeResponse(BaseModel):
    video_id: str
    start_seconds: int | None
    embed_url: str


@router.get("/youtube", response_model=YoutubeResponse)
async def youtube(url: str = Query(..., min_length=1)):
    parsed = parse_youtube(url)
    if parsed is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not a YouTube URL or video id")
    return YoutubeResponse(
        video_id=parsed["video_id"],
        start_seconds=parsed["start_seconds"],
        embed_url=build_embed_url(parsed["video_id"], parsed["start_seconds"]),
    )
