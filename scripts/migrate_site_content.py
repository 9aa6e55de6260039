"""
Split the legacy nested site-content document into per-type documents.

Reads ``clean-data/site-content.json`` (or ``--source``), optionally nested
under a ``site_content`` key, and writes ``clean-data/<type>.json`` for every
supported content type it contains.
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
from cms.migrations import migrate_site_content

logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Split legacy site-content into per-type documents"
    )
    parser.add_argument(
        "--source",
        default=None,
        help="Blob path of the legacy document (default: <prefix>site-content.json)",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite documents that already exist",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report what would be migrated without saving",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(message)s")
    settings = get_settings()
    store = get_blob_store()
    manager = ContentManager(
        blob_store=store,
        html_store=HtmlContentStore(store, prefix=settings.content_prefix),
        prefix=settings.content_prefix,
    )

    reports = migrate_site_content(
        manager, args.source, overwrite=args.force, dry_run=args.dry_run
    )
    if not reports:
        logger.error("No site-content found to migrate")
        return 1

    for report in reports:
        logger.info(
            "%-10s %-8s %s",
            report.content_type,
            report.status,
            report.reason or f"{report.item_count} item(s)",
        )
    failed = [r for r in reports if r.status == "error"]
    successful = [r for r in reports if r.status == "success"]
    logger.info(
        "Migration completed: %d successful, %d failed", len(successful), len(failed)
    )
    return 1 if failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
