"""
Content manager: the single entry point for reading and writing site content.

Every content type is one JSON document in the blob store
(``clean-data/<type>.json``). Writes replace the whole document, so the last
write wins.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from cms.exceptions import (
    CmsError,
    InvalidContentTypeError,
    ItemNotFoundError,
    NotArrayTypeError,
    StorageError,
)
from cms.html_content import HtmlContentStore
from cms.storage import BlobStore
from shared.string_utils import generate_item_id, utc_now_iso
from shared.types import ContentShape, ContentTypeSpec

logger = logging.getLogger(__name__)

CONTENT_TYPES: dict[str, ContentTypeSpec] = {
    "news": ContentTypeSpec("news", ContentShape.ARRAY, has_html_body=True),
    "services": ContentTypeSpec("services", ContentShape.ARRAY, has_html_body=True),
    "portfolio": ContentTypeSpec("portfolio", ContentShape.ARRAY, has_html_body=True),
    "about": ContentTypeSpec("about", ContentShape.OBJECT),
    "settings": ContentTypeSpec("settings", ContentShape.OBJECT),
    "categories": ContentTypeSpec("categories", ContentShape.OBJECT),
}

ORDER_STEP = 10


def get_content_type(content_type: str) -> ContentTypeSpec:
    spec = CONTENT_TYPES.get(content_type)
    if spec is None:
        raise InvalidContentTypeError(content_type)
    return spec


def default_content(content_type: str) -> Any:
    spec = get_content_type(content_type)
    if spec.is_array:
        return []
    if content_type == "categories":
        return {
            "services": [],
            "portfolio": [],
            "news": [],
            "updated_at": utc_now_iso(),
        }
    return {"updated_at": utc_now_iso()}


def empty_content() -> dict:
    return {key: default_content(key) for key in CONTENT_TYPES}


@dataclass
class ContentManager:
    blob_store: BlobStore
    html_store: HtmlContentStore
    prefix: str = "clean-data/"
    image_remover: Optional[Callable[[str], Any]] = None

    def document_path(self, content_type: str) -> str:
        return f"{self.prefix}{get_content_type(content_type).filename}"

    # ------------------------------------------------------------------
    # Whole documents
    # ------------------------------------------------------------------

    def get_content(self, content_type: str) -> Any:
        spec = get_content_type(content_type)
        try:
            data = self.blob_store.get_json(self.document_path(content_type))
        except Exception:
            logger.exception("Failed to load %s; using default content", content_type)
            return default_content(content_type)

        if data is None:
            return default_content(content_type)
        if spec.is_array != isinstance(data, list):
            logger.warning(
                "Stored %s document has the wrong shape (%s); using default content",
                content_type,
                type(data).__name__,
            )
            return default_content(content_type)
        return data

    def load_content(self, content_type: str) -> Any:
        """
        Reads a document for a read-modify-write. A missing document yields
        the default; read failures and wrong shapes raise ``StorageError``.
        """
        spec = get_content_type(content_type)
        path = self.document_path(content_type)
        try:
            data = self.blob_store.get_json(path)
        except ValueError as e:
            raise StorageError(f"Stored {content_type} document is not valid JSON") from e

        if data is None:
            return default_content(content_type)
        if spec.is_array != isinstance(data, list):
            raise StorageError(
                f"Stored {content_type} document has the wrong shape ({type(data).__name__})"
            )
        return data

    def get_all_content(self) -> dict:
        return {key: self.get_content(key) for key in CONTENT_TYPES}

    def save_content(self, content_type: str, data: Any) -> bool:
        spec = get_content_type(content_type)
        if spec.is_array and not isinstance(data, list):
            raise CmsError(f"{content_type} must be a list", 400)
        if not spec.is_array and not isinstance(data, dict):
            raise CmsError(f"{content_type} must be an object", 400)

        self.blob_store.put_json(self.document_path(content_type), data)
        logger.info("Saved %s", content_type)
        return True

    def update_object(self, content_type: str, data: dict) -> dict:
        spec = get_content_type(content_type)
        if spec.is_array:
            raise NotArrayTypeError(content_type, expected_array=False)
        updated = {**data, "updated_at": utc_now_iso()}
        self.save_content(content_type, updated)
        return updated

    # ------------------------------------------------------------------
    # Items of array documents
    # ------------------------------------------------------------------

    def _array_items(self, content_type: str) -> list[dict]:
        spec = get_content_type(content_type)
        if not spec.is_array:
            raise NotArrayTypeError(content_type)
        return list(self.load_content(content_type))

    def _store_html_body(self, content_type: str, item_id: str, item: dict) -> None:
        """
        Moves ``item["content"]`` into an HTML blob and replaces it with a
        ``content_file`` reference. On failure the body stays inline.
        """
        body = item.get("content")
        if not body or not isinstance(body, str):
            return
        try:
            item["content_file"] = self.html_store.save(content_type, item_id, body)
        except Exception:
            logger.exception(
                "Failed to save HTML content for %s item %s; keeping it inline",
                content_type,
                item_id,
            )
            return
        del item["content"]

    def add_item(self, content_type: str, item: dict) -> dict:
        items = self._array_items(content_type)

        orders = [
            i.get("order")
            for i in items
            if isinstance(i.get("order"), (int, float)) and not isinstance(i.get("order"), bool)
        ]
        next_order = (max(orders) if orders else 0) + ORDER_STEP

        now = utc_now_iso()
        item_id = generate_item_id(content_type)
        existing_ids = {i.get("id") for i in items}
        while item_id in existing_ids:
            item_id = generate_item_id(content_type)

        new_item = {
            **copy.deepcopy(item),
            "id": item_id,
            "order": next_order,
            "created_at": now,
            "updated_at": now,
        }
        self._store_html_body(content_type, item_id, new_item)

        items.append(new_item)
        self.save_content(content_type, items)
        logger.info("Added %s item %s", content_type, item_id)
        return new_item

    def update_item(self, content_type: str, item_id: str, item: dict) -> dict:
        items = self._array_items(content_type)
        index = next((n for n, i in enumerate(items) if i.get("id") == item_id), None)
        if index is None:
            raise ItemNotFoundError(content_type, item_id)

        existing = items[index]
        updated = {
            **copy.deepcopy(item),
            "id": item_id,
            "updated_at": utc_now_iso(),
        }
        if "created_at" not in updated and "created_at" in existing:
            updated["created_at"] = existing["created_at"]

        if updated.get("content") and isinstance(updated["content"], str):
            self._store_html_body(content_type, item_id, updated)
        elif existing.get("content_file") and not updated.get("content"):
            updated.pop("content", None)
            updated["content_file"] = existing["content_file"]

        items[index] = updated
        self.save_content(content_type, items)
        logger.info("Updated %s item %s", content_type, item_id)
        return updated

    def delete_item(self, content_type: str, item_id: str) -> bool:
        items = self._array_items(content_type)
        target = next((i for i in items if i.get("id") == item_id), None)
        if target is None:
            raise ItemNotFoundError(content_type, item_id)

        self._delete_item_images(target)
        if target.get("content_file"):
            try:
                self.html_store.delete(target["content_file"])
            except Exception:
                logger.warning(
                    "Error deleting HTML content file %s", target["content_file"], exc_info=True
                )

        remaining = [i for i in items if i.get("id") != item_id]
        self.save_content(content_type, remaining)
        logger.info("Deleted %s item %s", content_type, item_id)
        return True

    def _delete_item_images(self, item: dict) -> None:
        if self.image_remover is None:
            return
        for url in item.get("image_urls") or []:
            if not url or not isinstance(url, str):
                continue
            try:
                self.image_remover(url)
            except Exception:
                logger.warning("Error deleting image %s", url, exc_info=True)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def find_item(self, content_type: str, slug_or_id: str) -> Optional[dict]:
        items = self._array_items(content_type)
        for item in items:
            if item.get("slug") == slug_or_id:
                return item
        for item in items:
            if item.get("id") == slug_or_id:
                return item
        return None

    def get_content_with_html(self, content_type: str, item_id: str) -> dict:
        items = self._array_items(content_type)
        item = next((i for i in items if i.get("id") == item_id), None)
        if item is None:
            raise ItemNotFoundError(content_type, item_id)
        if item.get("content_file"):
            return {**item, "content": self.html_store.load(item["content_file"])}
        return item

    # ------------------------------------------------------------------
    # Migration
    # ------------------------------------------------------------------

    def migrate_all_content_to_html(self) -> bool:
        """
        Moves inline ``content`` bodies of every body-carrying type into HTML
        blobs. Returns True when at least one document changed.
        """
        changed = False
        for key, spec in CONTENT_TYPES.items():
            if not spec.has_html_body:
                continue
            items = self.load_content(key)
            migrated = 0
            for item in items:
                if item.get("content_file") or not isinstance(item.get("content"), str):
                    continue
                if not item.get("id"):
                    logger.warning("Skipping %s item without id", key)
                    continue
                self._store_html_body(key, item["id"], item)
                if "content_file" in item:
                    migrated += 1
            if migrated:
                self.save_content(key, items)
                logger.info("Migrated %d %s item(s) to HTML files", migrated, key)
                changed = True
        if not changed:
            logger.info("No migration needed - content already uses HTML files")
        return changed
