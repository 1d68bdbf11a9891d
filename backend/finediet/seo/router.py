from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from finediet.audit.service import record_audit
from finediet.content.service import delete_content, save_content
from finediet.database import get_db
from finediet.dependencies import require_editor
from finediet.seo.schemas import RobotsUpdate, SeoResponse
from finediet.seo.service import (
    build_manifest,
    build_sitemap_xml,
    get_browser_assets,
    get_robots_txt,
    get_seo_for_route,
    get_sitemap_urls,
)
from finediet.users.models import User

router = APIRouter(prefix="/seo", tags=["seo"])
admin_router = APIRouter(prefix="/admin/seo", tags=["seo"])


@router.get("", response_model=SeoResponse)
async def get_seo(
    path: str = Query("/"),
    page_title: str | None = Query(None),
    page_description: str | None = Query(None),
    canonical_path: str | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    return await get_seo_for_route(db, path, page_title, page_description, canonical_path)


@router.get("/robots.txt", response_class=PlainTextResponse)
async def robots_txt(db: AsyncSession = Depends(get_db)):
    content = await get_robots_txt(db)
    return PlainTextResponse(content, headers={"Cache-Control": "public, max-age=3600"})


@router.get("/sitemap.xml")
async def sitemap_xml(db: AsyncSession = Depends(get_db)):
    xml = build_sitemap_xml(await get_sitemap_urls(db))
    return Response(
        xml,
        media_type="application/xml",
        headers={"Cache-Control": "public, s-maxage=3600, stale-while-revalidate=86400"},
    )


@router.get("/manifest.webmanifest")
async def manifest(db: AsyncSession = Depends(get_db)):
    assets = await get_browser_assets(db)
    return JSONResponse(
        build_manifest(assets),
        media_type="application/manifest+json",
        headers={"Cache-Control": "public, max-age=3600"},
    )


@admin_router.put("/robots")
async def update_robots(
    data: RobotsUpdate,
    user: User = Depends(require_editor),
    db: AsyncSession = Depends(get_db),
):
    if not data.content.strip():
        await delete_content(db, "seo:robots", "published")
        await record_audit(db, user.id, "seo.robots_clear", "site_content")
        return {"success": True, "deleted": True}

    row = await save_content(db, "seo:robots", "published", {"content": data.content}, user.id)
    await record_audit(db, user.id, "content.save", "site_content", row.id, {"key": "seo:robots"})
    return {"success": True, "deleted": False}
