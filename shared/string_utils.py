from __future__ import annotations

import random
import re
import string
import time
from datetime import datetime, timezone
from typing import Any, Iterable

from bs4 import BeautifulSoup

_BASE36 = string.digits + string.ascii_lowercase


def utc_now_iso() -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a ``Z`` suffix."""
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def random_base36(length: int) -> str:
    return "".join(random.choice(_BASE36) for _ in range(length))


def generate_item_id(content_type: str) -> str:
    """
    Builds a new item identifier, e.g. ``news_1718000000000_k3j9x0a2b``.
    """
    return f"{content_type}_{int(time.time() * 1000)}_{random_base36(9)}"


def slugify(value: str | None) -> str:
    """
    Lowercases and collapses every run of non ``[a-z0-9]`` characters into a
    single dash. Leading and trailing dashes are stripped.

    >>> slugify("Grand Opera: Act II")
    'grand-opera-act-ii'
    """
    if not value:
        return ""
    return re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")


def item_slug(item: dict, fallback: str = "item") -> str:
    return item.get("slug") or item.get("id") or slugify(item.get("title")) or fallback


def html_to_text(html: str | None) -> str:
    if not html:
        return ""
    return BeautifulSoup(html, "html.parser").get_text()


def create_excerpt_from_html(html: str | None, max_length: int = 150) -> str:
    """
    Strips tags and truncates to ``max_length`` characters on a word boundary.

    Args:
        html (str): The rich HTML body.
        max_length (int): Maximum excerpt length before the ellipsis.

    Returns:
        str: Plain-text excerpt, ending in ``...`` when truncated.
    """
    text = re.sub(r"\s+", " ", html_to_text(html)).strip()
    if len(text) <= max_length:
        return text

    truncated = text[:max_length]
    last_space = truncated.rfind(" ")
    if last_space > 0:
        return truncated[:last_space] + "..."
    return truncated + "..."


def _parse_timestamp(value: Any) -> float:
    if not value or not isinstance(value, str):
        return 0.0
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).timestamp()
    except ValueError:
        return 0.0


def sort_by_order(items: Iterable[dict]) -> list[dict]:
    """
    Items with a numeric ``order`` come first (ascending); the rest follow,
    newest ``created_at`` first.
    """
    ordered = []
    unordered = []
    for item in items:
        order = item.get("order")
        if isinstance(order, (int, float)) and not isinstance(order, bool):
            ordered.append(item)
        else:
            unordered.append(item)
    ordered.sort(key=lambda item: item["order"])
    unordered.sort(key=lambda item: _parse_timestamp(item.get("created_at")), reverse=True)
    return ordered + unordered


def sort_by_date_desc(items: Iterable[dict], *fields: str) -> list[dict]:
    fields = fields or ("publication_date", "created_at")

    def key(item: dict) -> float:
        for field_name in fields:
            ts = _parse_timestamp(item.get(field_name))
            if ts:
                return ts
        return 0.0

    return sorted(items, key=key, reverse=True)
