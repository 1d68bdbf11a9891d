import html
import re

from sqlalchemy.ext.asyncio import AsyncSession

from finediet.config import settings
from finediet.content.service import get_public_content, list_products, read_validated
from finediet.content.validators import (
    SEO_ROUTE_PREFIX,
    BrowserAssets,
    RobotsContent,
    SeoGlobalConfig,
    SeoRouteConfig,
)

DEFAULT_ROBOTS_TXT = "User-agent: *\nAllow: /"

SITEMAP_NAMESPACE = "http://www.sitemaps.org/schemas/sitemap/0.9"

_SITEMAP_RE = re.compile(r"^Sitemap:\s*.+$", re.IGNORECASE | re.MULTILINE)


def fallback_global_config() -> dict:
    return {
        "siteName": settings.SITE_NAME,
        "titleTemplate": "{{pageTitle}} | {{siteName}}",
        "defaultTitle": "Fine Diet • Read your body. Reset your health.",
        "defaultDescription": (
            "Bridging everyday wellness with real nutrition strategy and lifestyle therapy "
            "so you don't have to figure it out alone."
        ),
        "canonicalBase": settings.CANONICAL_BASE,
        "twitterCard": "summary_large_image",
        "robots": "index,follow",
    }


def normalize_route_path(path: str | None) -> str:
    """'/category/?a=1#x' -> '/category'. Empty input is the root."""
    if not path:
        return "/"
    normalized = path.split("?", 1)[0].split("#", 1)[0]
    if not normalized.startswith("/"):
        normalized = f"/{normalized}"
    if len(normalized) > 1 and normalized.endswith("/"):
        normalized = normalized[:-1]
    return normalized


def apply_title_template(template: str, variables: dict[str, str]) -> str:
    result = template
    for name, value in variables.items():
        result = result.replace("{{" + name + "}}", value)
    return result


def merge_seo(
    global_config: dict | None,
    route_config: dict | None,
    route_path: str,
    page_title: str | None = None,
    page_description: str | None = None,
    canonical_path: str | None = None,
) -> dict:
    """Combine the site-wide SEO config with a per-route override into head metadata."""
    config = global_config or fallback_global_config()
    route = route_config or {}
    normalized_path = normalize_route_path(route_path)

    final_page_title = route.get("title") or route.get("pageTitle") or page_title or config["defaultTitle"]
    final_description = (
        route.get("description") or route.get("pageDescription") or page_description
        or config["defaultDescription"]
    )

    if route.get("canonical"):
        canonical = route["canonical"]
    else:
        path = route.get("canonicalPath") or canonical_path or normalized_path
        base = config["canonicalBase"].strip().rstrip("/")
        canonical = f"{base}{normalize_route_path(path)}"

    robots = config.get("robots") or "index,follow"
    if route.get("noindex") is True:
        robots = "noindex,follow"
    elif route.get("robots"):
        robots = route["robots"]

    if route.get("title"):
        title = route["title"]
    else:
        title = apply_title_template(
            config["titleTemplate"],
            {"pageTitle": final_page_title, "siteName": config["siteName"]},
        )

    og = route.get("og") or {}
    og_title = og.get("title") or final_page_title
    og_description = og.get("description") or final_description
    og_image = og.get("image") or route.get("ogImage") or config.get("ogImage") or None

    twitter = route.get("twitter") or {}

    return {
        "title": title,
        "description": final_description,
        "canonical": canonical,
        "og_title": og_title,
        "og_description": og_description,
        "og_image": og_image,
        "og_type": og.get("type") or "website",
        "og_url": canonical,
        "twitter_card": twitter.get("card") or config.get("twitterCard") or "summary_large_image",
        "twitter_title": twitter.get("title") or final_page_title,
        "twitter_description": twitter.get("description") or final_description,
        "twitter_image": twitter.get("image") or og_image,
        "robots": robots,
    }


async def get_browser_assets(db: AsyncSession) -> dict | None:
    return await read_validated(db, "seo:assets", BrowserAssets)


async def get_seo_for_route(
    db: AsyncSession,
    route_path: str,
    page_title: str | None = None,
    page_description: str | None = None,
    canonical_path: str | None = None,
) -> dict:
    normalized = normalize_route_path(route_path)
    global_config = await read_validated(db, "seo:global", SeoGlobalConfig)
    route_config = await read_validated(db, f"{SEO_ROUTE_PREFIX}{normalized}", SeoRouteConfig)
    assets = await get_browser_assets(db)
    return {
        "seo": merge_seo(global_config, route_config, normalized, page_title, page_description, canonical_path),
        "assets": assets,
    }


def ensure_sitemap_line(content: str, canonical_base: str) -> str:
    if _SITEMAP_RE.search(content):
        return content
    sitemap_line = f"Sitemap: {canonical_base.rstrip('/')}/sitemap.xml"
    trimmed = content.strip()
    if trimmed:
        return f"{trimmed}\n\n{sitemap_line}"
    return sitemap_line


async def get_robots_txt(db: AsyncSession) -> str:
    stored = await read_validated(db, "seo:robots", RobotsContent)
    content = (stored or {}).get("content") or DEFAULT_ROBOTS_TXT
    global_config = await read_validated(db, "seo:global", SeoGlobalConfig)
    canonical_base = (global_config or fallback_global_config())["canonicalBase"]
    return ensure_sitemap_line(content, canonical_base)


def build_manifest(assets: dict | None) -> dict:
    assets = assets or {}
    manifest = {
        "name": assets.get("manifestName") or settings.SITE_NAME,
        "short_name": assets.get("manifestShortName") or settings.SITE_NAME,
        "display": "standalone",
    }
    icons = []
    if assets.get("favicon"):
        icons.append({"src": assets["favicon"], "sizes": "32x32", "type": "image/png"})
    if assets.get("appleTouchIcon"):
        icons.append({"src": assets["appleTouchIcon"], "sizes": "180x180", "type": "image/png"})
    if icons:
        manifest["icons"] = icons
    if assets.get("themeColor"):
        manifest["theme_color"] = assets["themeColor"]
    return manifest


async def get_sitemap_urls(db: AsyncSession) -> list[dict]:
    """Home, navigation categories and published products, minus any route whose robots says noindex."""
    global_config = await read_validated(db, "seo:global", SeoGlobalConfig)
    base = (global_config or fallback_global_config())["canonicalBase"].strip().rstrip("/")

    candidates = [("/", "daily", "1.0", None)]
    navigation = await get_public_content(db, "navigation")
    for category in navigation.get("categories") or []:
        if category.get("id"):
            candidates.append((f"/{category['id']}", "weekly", "0.8", None))
    for product in await list_products(db):
        candidates.append((f"/products/{product['slug']}", "weekly", "0.6", product["updated_at"]))

    urls = []
    for path, changefreq, priority, updated_at in candidates:
        route = normalize_route_path(path)
        route_config = await read_validated(db, f"{SEO_ROUTE_PREFIX}{route}", SeoRouteConfig)
        if "noindex" in merge_seo(global_config, route_config, route)["robots"].lower():
            continue
        url = {"loc": f"{base}{route}", "changefreq": changefreq, "priority": priority}
        if updated_at is not None:
            url["lastmod"] = updated_at.date().isoformat()
        urls.append(url)
    return urls


def build_sitemap_xml(urls: list[dict]) -> str:
    lines = ['<?xml version="1.0" encoding="UTF-8"?>', f'<urlset xmlns="{SITEMAP_NAMESPACE}">']
    for url in urls:
        lines.append("  <url>")
        for tag in ("loc", "lastmod", "changefreq", "priority"):
            if url.get(tag):
                lines.append(f"    <{tag}>{html.escape(url[tag])}</{tag}>")
        lines.append("  </url>")
    lines.append("</urlset>")
    return "\n".join(lines)
