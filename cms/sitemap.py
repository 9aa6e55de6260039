"""
sitemap.xml generation (sitemaps.org 0.9 schema).
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Optional

from shared.string_utils import item_slug, utc_now_iso

SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"

# (path, changefreq, priority)
STATIC_PAGES = [
    ("/", "weekly", "1.0"),
    ("/portfolio", "weekly", "0.8"),
    ("/news", "daily", "0.8"),
    ("/materials", "weekly", "0.8"),
    ("/about", "monthly", "0.6"),
    ("/impressum", "yearly", "0.2"),
    ("/datenschutz", "yearly", "0.2"),
]

# content type -> (URL section, fallback slug, priority)
ITEM_SECTIONS = [
    ("portfolio", "portfolio", "portfolio-item", "0.8"),
    ("news", "news", "news-item", "0.6"),
    ("services", "materials", "service", "0.7"),
]

FALLBACK_PAGES = [
    ("/", "weekly", "1.0"),
    ("/portfolio", "weekly", "0.9"),
    ("/materials", "weekly", "0.9"),
]


def _add_url(urlset: ET.Element, loc: str, lastmod: str, changefreq: str, priority: str):
    url = ET.SubElement(urlset, "url")
    ET.SubElement(url, "loc").text = loc
    ET.SubElement(url, "lastmod").text = lastmod
    ET.SubElement(url, "changefreq").text = changefreq
    ET.SubElement(url, "priority").text = priority


def _serialize(urlset: ET.Element) -> str:
    ET.indent(urlset, space="  ")
    body = ET.tostring(urlset, encoding="unicode")
    return '<?xml version="1.0" encoding="UTF-8"?>\n' + body + "\n"


def build_sitemap(content: dict, base_url: str, now: Optional[str] = None) -> str:
    now = now or utc_now_iso()
    base_url = base_url.rstrip("/")
    urlset = ET.Element("urlset", xmlns=SITEMAP_NS)

    for path, changefreq, priority in STATIC_PAGES:
        _add_url(urlset, f"{base_url}{path}", now, changefreq, priority)

    for content_type, section, fallback, priority in ITEM_SECTIONS:
        for item in content.get(content_type) or []:
            if not isinstance(item, dict):
                continue
            slug = item_slug(item, fallback)
            lastmod = item.get("updated_at") or item.get("created_at") or now
            _add_url(urlset, f"{base_url}/{section}/{slug}", lastmod, "monthly", priority)

    return _serialize(urlset)


def build_fallback_sitemap(base_url: str, now: Optional[str] = None) -> str:
    now = now or utc_now_iso()
    base_url = base_url.rstrip("/")
    urlset = ET.Element("urlset", xmlns=SITEMAP_NS)
    for path, changefreq, priority in FALLBACK_PAGES:
        _add_url(urlset, f"{base_url}{path}", now, changefreq, priority)
    return _serialize(urlset)
