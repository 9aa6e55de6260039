"""
Keeps rich HTML bodies apart from the JSON metadata documents.

Each item with a body gets a ``content_file`` field pointing at
``clean-data/content/<type>/<item-id>.html`` in the blob store. Older items may
still point at absolute raw-GitHub URLs; those are fetched over HTTP.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import requests

from cms.storage import BlobStore

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30  # seconds


def _is_remote(content_file: str) -> bool:
    return content_file.startswith("http://") or content_file.startswith("https://")


@dataclass
class HtmlContentStore:
    blob_store: BlobStore
    prefix: str = "clean-data/"

    def path_for(self, content_type: str, item_id: str) -> str:
        return f"{self.prefix}content/{content_type}/{item_id}.html"

    def _normalize(self, content_file: str) -> str:
        path = content_file.lstrip("/")
        # Legacy local references were written as /content-data/content/<type>/<id>.html
        if path.startswith("content-data/"):
            path = self.prefix + path[len("content-data/"):]
        elif path.startswith("content/"):
            path = self.prefix + path
        return path

    def save(self, content_type: str, item_id: str, html: str) -> str:
        """Writes the body and returns the ``content_file`` reference."""
        path = self.path_for(content_type, item_id)
        self.blob_store.put_text(path, html, content_type="text/html")
        logger.info("HTML content saved: %s", path)
        return path

    def load(self, content_file: str | None) -> str:
        if not content_file:
            return ""
        if _is_remote(content_file):
            return self._fetch_remote(content_file)

        html = self.blob_store.get_text(self._normalize(content_file))
        if html is None:
            logger.warning("HTML content file not found: %s", content_file)
            return ""
        return html

    def delete(self, content_file: str | None) -> bool:
        if not content_file:
            return False
        if _is_remote(content_file):
            logger.warning("Not deleting remote HTML content: %s", content_file)
            return False
        deleted = self.blob_store.delete(self._normalize(content_file))
        if not deleted:
            logger.warning("HTML content file not found for deletion: %s", content_file)
        return True

    @staticmethod
    def _fetch_remote(url: str) -> str:
        try:
            response = requests.get(url, timeout=REQUEST_TIMEOUT)
        except requests.RequestException as e:
            logger.error("Failed to fetch HTML content from %s: %s", url, e)
            return ""
        if response.status_code == 404:
            logger.warning("HTML content file not found at URL: %s", url)
            return ""
        if not response.ok:
            logger.error("HTML content fetch failed: %s %s", response.status_code, url)
            return ""
        return response.text
