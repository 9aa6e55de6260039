"""
Server-rendered public pages, the admin panel shell and sitemap.xml.

Pages read content through the ``ContentManager``; a failing read renders the
page with empty content rather than an error page.
"""

from __future__ import annotations

import copy
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, Response
from fastapi.templating import Jinja2Templates

from cms.auth import is_authenticated
from cms.config import Settings, get_settings
from cms.content import CONTENT_TYPES, ContentManager, empty_content
from cms.dependencies import get_content_manager
from cms.sitemap import build_fallback_sitemap, build_sitemap
from shared.string_utils import (
    create_excerpt_from_html,
    item_slug,
    sort_by_date_desc,
    sort_by_order,
)

logger = logging.getLogger(__name__)

router = APIRouter()

_TEMPLATE_DIR = Path(__file__).parent / "templates"
templates = Jinja2Templates(directory=str(_TEMPLATE_DIR))

HOME_PORTFOLIO_LIMIT = 6
HOME_NEWS_LIMIT = 3
RELATED_POSTS_LIMIT = 3

SITEMAP_HEADERS = {"Cache-Control": "public, max-age=3600, s-maxage=3600"}

# Fields a new item starts with in the admin panel.
NEW_ITEM_DEFAULTS = {
    "news": {
        "category": "announcement",
        "excerpt": "",
        "tags": [],
        "featured": False,
        "publication_date": None,
        "image_urls": [],
    },
    "services": {
        "description": "",
        "detailed_description": "",
        "features": [],
        "category": "service",
        "icon": "",
        "pricing": "",
    },
    "portfolio": {
        "description": "",
        "detailed_description": "",
        "technologies": [],
        "year": None,
        "category": "project",
        "client": "",
        "image_urls": [],
    },
}


def _load_all(manager: ContentManager) -> dict:
    try:
        return manager.get_all_content()
    except Exception:
        logger.exception("Failed to load content for page render")
        return empty_content()


def _load_items(manager: ContentManager, content_type: str) -> list[dict]:
    try:
        items = manager.get_content(content_type)
    except Exception:
        logger.exception("Failed to load %s for page render", content_type)
        return []
    return [item for item in items if isinstance(item, dict)]


def _with_display_fields(item: dict) -> dict:
    """Adds ``url_slug`` and a plain-text ``excerpt`` when the item lacks one."""
    display = dict(item)
    display["url_slug"] = item_slug(item)
    if not display.get("excerpt") and isinstance(item.get("content"), str):
        display["excerpt"] = create_excerpt_from_html(item["content"])
    return display


def _load_body(manager: ContentManager, item: dict) -> str:
    if item.get("content_file"):
        try:
            return manager.html_store.load(item["content_file"])
        except Exception:
            logger.exception("Failed to load HTML body %s", item["content_file"])
            return ""
    content = item.get("content")
    return content if isinstance(content, str) else ""


def _find(items: list[dict], slug: str) -> Optional[dict]:
    for item in items:
        if item.get("slug") == slug:
            return item
    for item in items:
        if item.get("id") == slug or item_slug(item) == slug:
            return item
    return None


def _render(request: Request, name: str, settings: Settings, status_code: int = 200, **context):
    context.setdefault("page_title", None)
    ctx = {"site_name": settings.site_name, "base_url": settings.site_base_url, **context}
    return templates.TemplateResponse(request, name, ctx, status_code=status_code)


def _not_found(request: Request, settings: Settings, what: str):
    return _render(
        request,
        "not_found.html",
        settings,
        status_code=404,
        page_title="Not found",
        what=what,
    )


@router.get("/", response_class=HTMLResponse)
def home(
    request: Request,
    manager: ContentManager = Depends(get_content_manager),
    settings: Settings = Depends(get_settings),
):
    content = _load_all(manager)
    return _render(
        request,
        "home.html",
        settings,
        site_settings=content.get("settings") or {},
        services=[_with_display_fields(i) for i in sort_by_order(content.get("services") or [])],
        portfolio=[
            _with_display_fields(i)
            for i in sort_by_order(content.get("portfolio") or [])[:HOME_PORTFOLIO_LIMIT]
        ],
        news=[
            _with_display_fields(i)
            for i in sort_by_date_desc(content.get("news") or [])[:HOME_NEWS_LIMIT]
        ],
    )


@router.get("/about", response_class=HTMLResponse)
def about(
    request: Request,
    manager: ContentManager = Depends(get_content_manager),
    settings: Settings = Depends(get_settings),
):
    try:
        about_content = manager.get_content("about")
    except Exception:
        logger.exception("Failed to load about content")
        about_content = {}
    return _render(request, "about.html", settings, page_title="About", about=about_content)


@router.get("/portfolio", response_class=HTMLResponse)
def portfolio_list(
    request: Request,
    manager: ContentManager = Depends(get_content_manager),
    settings: Settings = Depends(get_settings),
):
    items = sort_by_order(_load_items(manager, "portfolio"))
    return _render(
        request,
        "portfolio_list.html",
        settings,
        page_title="Portfolio",
        items=[_with_display_fields(i) for i in items],
    )


@router.get("/portfolio/{slug}", response_class=HTMLResponse)
def portfolio_detail(
    slug: str,
    request: Request,
    manager: ContentManager = Depends(get_content_manager),
    settings: Settings = Depends(get_settings),
):
    item = _find(_load_items(manager, "portfolio"), slug)
    if item is None:
        return _not_found(request, settings, "Portfolio item")
    return _render(
        request,
        "portfolio_detail.html",
        settings,
        page_title=item.get("title"),
        item=_with_display_fields(item),
        body=_load_body(manager, item),
    )


@router.get("/news", response_class=HTMLResponse)
def news_list(
    request: Request,
    manager: ContentManager = Depends(get_content_manager),
    settings: Settings = Depends(get_settings),
):
    items = sort_by_date_desc(_load_items(manager, "news"))
    return _render(
        request,
        "news_list.html",
        settings,
        page_title="News",
        items=[_with_display_fields(i) for i in items],
    )


def related_posts(news: list[dict], current: dict, limit: int = RELATED_POSTS_LIMIT) -> list[dict]:
    """Other posts of the same category, newest first."""
    category = current.get("category")
    if not category:
        return []
    candidates = [
        item
        for item in news
        if item.get("category") == category and item.get("id") != current.get("id")
    ]
    return sort_by_date_desc(candidates)[:limit]


@router.get("/news/{slug}", response_class=HTMLResponse)
def news_detail(
    slug: str,
    request: Request,
    manager: ContentManager = Depends(get_content_manager),
    settings: Settings = Depends(get_settings),
):
    news = _load_items(manager, "news")
    item = _find(news, slug)
    if item is None:
        return _not_found(request, settings, "News article")
    return _render(
        request,
        "news_detail.html",
        settings,
        page_title=item.get("title"),
        item=_with_display_fields(item),
        body=_load_body(manager, item),
        related=[_with_display_fields(i) for i in related_posts(news, item)],
    )


@router.get("/materials", response_class=HTMLResponse)
def materials_list(
    request: Request,
    manager: ContentManager = Depends(get_content_manager),
    settings: Settings = Depends(get_settings),
):
    items = sort_by_order(_load_items(manager, "services"))
    return _render(
        request,
        "materials_list.html",
        settings,
        page_title="Materials",
        items=[_with_display_fields(i) for i in items],
    )


@router.get("/materials/{slug}", response_class=HTMLResponse)
def materials_detail(
    slug: str,
    request: Request,
    manager: ContentManager = Depends(get_content_manager),
    settings: Settings = Depends(get_settings),
):
    item = _find(_load_items(manager, "services"), slug)
    if item is None:
        return _not_found(request, settings, "Material")
    return _render(
        request,
        "materials_detail.html",
        settings,
        page_title=item.get("title"),
        item=_with_display_fields(item),
        body=_load_body(manager, item),
    )


@router.get("/impressum", response_class=HTMLResponse)
def impressum(request: Request, settings: Settings = Depends(get_settings)):
    return _render(request, "impressum.html", settings, page_title="Impressum")


@router.get("/datenschutz", response_class=HTMLResponse)
def datenschutz(request: Request, settings: Settings = Depends(get_settings)):
    return _render(request, "datenschutz.html", settings, page_title="Datenschutz")


def admin_sections(now: Optional[datetime] = None) -> list[dict]:
    """Content sections shown in the admin panel, with new-item defaults."""
    now = now or datetime.now(timezone.utc)
    sections = []
    for key, spec in CONTENT_TYPES.items():
        defaults = copy.deepcopy(NEW_ITEM_DEFAULTS.get(key, {}))
        if "publication_date" in defaults:
            defaults["publication_date"] = now.date().isoformat()
        if "year" in defaults:
            defaults["year"] = now.year
        sections.append(
            {
                "key": key,
                "is_array": spec.is_array,
                "has_html_body": spec.has_html_body,
                "defaults": defaults,
            }
        )
    return sections


@router.get("/admin", response_class=HTMLResponse)
@router.get("/zs-panel", response_class=HTMLResponse)
def admin_panel(request: Request, settings: Settings = Depends(get_settings)):
    return _render(
        request,
        "admin.html",
        settings,
        page_title="Admin",
        authenticated=is_authenticated(request.cookies, settings),
        api_prefix=settings.api_prefix,
        sections=admin_sections(),
    )


@router.get("/sitemap.xml")
def sitemap(
    manager: ContentManager = Depends(get_content_manager),
    settings: Settings = Depends(get_settings),
):
    try:
        xml = build_sitemap(manager.get_all_content(), settings.site_base_url)
    except Exception:
        logger.exception("Error generating sitemap; serving fallback")
        xml = build_fallback_sitemap(settings.site_base_url)
    return Response(content=xml, media_type="application/xml", headers=SITEMAP_HEADERS)
