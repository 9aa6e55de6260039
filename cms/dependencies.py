"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

import logging

from fastapi import Depends

from cms.config import Settings, get_settings
from cms.content import ContentManager
from cms.github import ContentRepo, GitHubContentRepo, InMemoryContentRepo
from cms.html_content import HtmlContentStore
from cms.images import ImageUploader
from cms.ratelimit import LoginRateLimiter
from cms.storage import BlobStore, InMemoryBlobStore, LocalBlobStore, S3BlobStore

logger = logging.getLogger(__name__)

_blob_store: BlobStore | None = None
_content_repo: ContentRepo | None = None
_rate_limiter: LoginRateLimiter | None = None


def build_blob_store(settings: Settings) -> BlobStore:
    if settings.use_in_memory_backends:
        return InMemoryBlobStore()
    if settings.blob_bucket:
        logger.info("Using S3-compatible blob storage (bucket %s)", settings.blob_bucket)
        return S3BlobStore(
            bucket=settings.blob_bucket,
            region=settings.blob_region or "",
            endpoint=settings.blob_endpoint or "",
            access_key_id=settings.aws_access_key_id or "",
            secret_access_key=settings.aws_secret_access_key or "",
            public_base_url=settings.blob_public_base_url or "",
        )
    if settings.is_development:
        logger.info("Using local file storage in %s", settings.local_content_dir)
        return LocalBlobStore(settings.local_content_dir)
    logger.warning("No blob storage configured; content will not persist")
    return InMemoryBlobStore()


def build_content_repo(settings: Settings) -> ContentRepo:
    if settings.use_in_memory_backends or not settings.github_token:
        if not settings.use_in_memory_backends:
            logger.warning("GITHUB_TOKEN not set; image uploads will not persist")
        return InMemoryContentRepo(
            owner=settings.content_github_owner,
            repo=settings.content_github_repo,
            branch=settings.content_github_branch,
        )
    return GitHubContentRepo(
        owner=settings.content_github_owner,
        repo=settings.content_github_repo,
        token=settings.github_token,
        branch=settings.content_github_branch,
    )


def get_blob_store() -> BlobStore:
    """
    Return a singleton blob store so in-memory content survives across requests.
    """
    global _blob_store
    if _blob_store:
        return _blob_store
    _blob_store = build_blob_store(get_settings())
    return _blob_store


def get_content_repo() -> ContentRepo:
    global _content_repo
    if _content_repo:
        return _content_repo
    _content_repo = build_content_repo(get_settings())
    return _content_repo


def get_rate_limiter() -> LoginRateLimiter:
    global _rate_limiter
    if _rate_limiter:
        return _rate_limiter
    settings = get_settings()
    _rate_limiter = LoginRateLimiter(
        max_attempts=settings.login_max_attempts,
        lockout_seconds=settings.login_lockout_seconds,
    )
    return _rate_limiter


def get_image_uploader(
    repo: ContentRepo = Depends(get_content_repo),
    settings: Settings = Depends(get_settings),
) -> ImageUploader:
    return ImageUploader(
        repo=repo,
        max_bytes=settings.max_upload_bytes,
        thumbnail_size=settings.thumbnail_size,
    )


def get_content_manager(
    blob_store: BlobStore = Depends(get_blob_store),
    uploader: ImageUploader = Depends(get_image_uploader),
    settings: Settings = Depends(get_settings),
) -> ContentManager:
    return ContentManager(
        blob_store=blob_store,
        html_store=HtmlContentStore(blob_store, prefix=settings.content_prefix),
        prefix=settings.content_prefix,
        image_remover=uploader.delete_image,
    )
