"""
Point stored image URLs at the content repository.

Rewrites every occurrence of the old image base URL in the JSON documents and
HTML bodies under the content prefix.
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
from cms.dependencies import get_blob_store
from cms.migrations import NEW_IMAGE_BASE_URL, OLD_IMAGE_BASE_URL, rewrite_image_urls

logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Rewrite image URLs to the content repository"
    )
    parser.add_argument(
        "--old-base",
        default=OLD_IMAGE_BASE_URL,
        help="Image base URL to replace",
    )
    parser.add_argument(
        "--new-base",
        default=NEW_IMAGE_BASE_URL,
        help="Replacement image base URL",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report how many URLs would change without saving",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(message)s")
    settings = get_settings()
    logger.info("Rewriting %s -> %s", args.old_base, args.new_base)

    reports = rewrite_image_urls(
        get_blob_store(),
        settings.content_prefix,
        args.old_base,
        args.new_base,
        dry_run=args.dry_run,
    )
    total = sum(r.item_count for r in reports)
    logger.info(
        "%s %d image URL(s) across %d file(s)",
        "Would update" if args.dry_run else "Updated",
        total,
        len(reports),
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
