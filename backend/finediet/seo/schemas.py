from typing import Any

from pydantic import BaseModel


class SeoMeta(BaseModel):
    title: str
    description: str
    canonical: str
    og_title: str
    og_description: str
    og_image: str | None
    og_type: str
    og_url: str
    twitter_card: str
    twitter_title: str
    twitter_description: str
    twitter_image: str | None
    robots: str


class SeoResponse(BaseModel):
    seo: SeoMeta
    assets: dict[str, Any] | None


class RobotsUpdate(BaseModel):
    content: str = ""
