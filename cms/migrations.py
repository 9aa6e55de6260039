"""
One-off content migrations run from ``scripts/``.

- Split a legacy nested ``site-content.json`` into one document per type.
- Rewrite image URLs after images moved to the content repository.
"""

from __future__ import annotations

import logging
from typing import Any

from cms.content import CONTENT_TYPES, ContentManager
from cms.storage import BlobStore
from shared.string_utils import utc_now_iso
from shared.types import MigrationReport

logger = logging.getLogger(__name__)

LEGACY_SITE_CONTENT = "site-content.json"
LEGACY_KEYS = ("services", "news", "portfolio", "about", "settings", "hero", "contact", "categories")

OLD_IMAGE_BASE_URL = (
    "https://raw.githubusercontent.com/zscorenotes/zscorenotes.github.io/main/public/images/"
)
NEW_IMAGE_BASE_URL = "https://raw.githubusercontent.com/zscorenotes/zscore-content/main/images/"


def migrate_site_content(
    manager: ContentManager,
    source_path: str | None = None,
    *,
    overwrite: bool = False,
    dry_run: bool = False,
) -> list[MigrationReport]:
    """
    Splits the legacy nested document into per-type documents.

    Returns:
        list[MigrationReport]: One report per legacy key. An empty list means
        there was no legacy document to migrate.
    """
    store = manager.blob_store
    source_path = source_path or f"{manager.prefix}{LEGACY_SITE_CONTENT}"
    legacy = store.get_json(source_path)
    if not isinstance(legacy, dict):
        logger.warning("No site-content found at %s", source_path)
        return []

    nested = legacy.get("site_content")
    data = nested if isinstance(nested, dict) else legacy
    reports = []
    for key in LEGACY_KEYS:
        if key not in CONTENT_TYPES:
            reports.append(MigrationReport(key, "skipped", reason="Unsupported content type"))
            continue
        value = data.get(key)
        if value is None:
            reports.append(MigrationReport(key, "skipped", reason="No data found"))
            continue
        if not overwrite and store.get_json(manager.document_path(key)) is not None:
            reports.append(MigrationReport(key, "skipped", reason="Document already exists"))
            continue

        try:
            if not CONTENT_TYPES[key].is_array and isinstance(value, dict):
                value = {**value, "updated_at": utc_now_iso()}
            if not dry_run:
                manager.save_content(key, value)
        except Exception as e:
            logger.exception("Failed to migrate %s", key)
            reports.append(MigrationReport(key, "error", reason=str(e)))
            continue

        count = len(value) if isinstance(value, list) else 1
        reports.append(MigrationReport(key, "success", item_count=count))
        logger.info("Migrated %s (%d item(s))", key, count)
    return reports


def _replace_urls(value: Any, old: str, new: str, changes: list[str]) -> Any:
    if isinstance(value, str):
        if old in value:
            changes.append(value)
            return value.replace(old, new)
        return value
    if isinstance(value, list):
        return [_replace_urls(v, old, new, changes) for v in value]
    if isinstance(value, dict):
        return {k: _replace_urls(v, old, new, changes) for k, v in value.items()}
    return value


def rewrite_image_urls(
    store: BlobStore,
    prefix: str = "clean-data/",
    old_base: str = OLD_IMAGE_BASE_URL,
    new_base: str = NEW_IMAGE_BASE_URL,
    *,
    dry_run: bool = False,
) -> list[MigrationReport]:
    """
    Replaces ``old_base`` with ``new_base`` in every JSON document and HTML
    body under ``prefix``. Only blobs that changed are reported.
    """
    reports = []
    for info in store.list(prefix):
        path = info.pathname
        changes: list[str] = []
        if path.endswith(".json"):
            data = store.get_json(path)
            updated = _replace_urls(data, old_base, new_base, changes)
            if changes and not dry_run:
                store.put_json(path, updated)
        elif path.endswith(".html"):
            html = store.get_text(path) or ""
            count = html.count(old_base)
            changes = [old_base] * count
            if count and not dry_run:
                store.put_text(path, html.replace(old_base, new_base))
        else:
            continue

        if changes:
            logger.info(
                "%s %d image URL(s) in %s",
                "Would update" if dry_run else "Updated",
                len(changes),
                path,
            )
            reports.append(
                MigrationReport(path, "success", item_count=len(changes), changes=changes)
            )
    return reports
