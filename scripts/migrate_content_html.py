"""
Move inline HTML bodies of news, services and portfolio items into separate
HTML blobs.

Each migrated item gets a ``content_file`` reference to
``clean-data/content/<type>/<item-id>.html`` and loses its inline ``content``.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from cms.config import get_settings
from cms.content import ContentManager
from cms.dependencies import get_blob_store
from cms.html_content import HtmlContentStore

logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Move inline item HTML into separate content files"
    )
    parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(message)s")
    settings = get_settings()
    store = get_blob_store()
    manager = ContentManager(
        blob_store=store,
        html_store=HtmlContentStore(store, prefix=settings.content_prefix),
        prefix=settings.content_prefix,
    )

    changed = manager.migrate_all_content_to_html()
    logger.info("Migration %s", "complete" if changed else "not needed")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
