"""
Image uploads: validation, naming, thumbnails and commits to the content repo.
"""

from __future__ import annotations

import io
import logging
import os
import re
import time
from dataclasses import dataclass
from typing import Iterable, Optional
from urllib.parse import urlparse

from PIL import Image, UnidentifiedImageError

from cms.exceptions import ImageValidationError
from cms.github import ContentRepo
from shared.string_utils import random_base36
from shared.types import RepoFile, UploadResult

logger = logging.getLogger(__name__)

IMAGES_FOLDER = "images"
THUMBNAILS_FOLDER = "thumbnails"
FOLDER_PATTERN = re.compile(r"^[a-z0-9_-]+$")

ALLOWED_EXTENSIONS = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "svg": "image/svg+xml",
}

PIL_FORMATS = {
    "jpg": "JPEG",
    "jpeg": "JPEG",
    "png": "PNG",
    "gif": "GIF",
    "webp": "WEBP",
}


@dataclass
class ImageFile:
    """An uploaded file, decoupled from the web framework's upload type."""

    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


def file_extension(filename: str | None) -> str:
    ext = os.path.splitext(filename or "")[1].lstrip(".").lower()
    return ext or "jpg"


def generate_filename(extension: str) -> str:
    return f"{int(time.time() * 1000)}-{random_base36(8)}.{extension}"


def make_thumbnail(data: bytes, extension: str, max_size: int = 400) -> Optional[bytes]:
    """
    Scales a raster image so its longest side is at most ``max_size`` pixels.

    Returns None for formats without a raster thumbnail (SVG) or when the
    bytes cannot be decoded.
    """
    pil_format = PIL_FORMATS.get(extension)
    if pil_format is None:
        return None
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.thumbnail((max_size, max_size))
            if pil_format == "JPEG" and img.mode not in ("RGB", "L"):
                img = img.convert("RGB")
            out = io.BytesIO()
            img.save(out, format=pil_format)
            return out.getvalue()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        logger.warning("Could not create thumbnail: %s", e)
        return None


@dataclass
class ImageUploader:
    repo: ContentRepo
    max_bytes: int = 10 * 1024 * 1024
    thumbnail_size: int = 400

    def validate(self, file: ImageFile) -> str:
        """Checks the upload and returns its normalized extension."""
        if not file.data:
            raise ImageValidationError("File is empty")
        if not (file.content_type or "").startswith("image/"):
            raise ImageValidationError("File must be an image")
        if file.size > self.max_bytes:
            limit_mb = self.max_bytes // (1024 * 1024)
            raise ImageValidationError(f"File size must be less than {limit_mb}MB")
        extension = file_extension(file.filename)
        if extension not in ALLOWED_EXTENSIONS:
            raise ImageValidationError(f"Unsupported image type: .{extension}")
        return extension

    def upload(self, file: ImageFile, folder: str = IMAGES_FOLDER) -> UploadResult:
        if not FOLDER_PATTERN.match(folder) or folder == THUMBNAILS_FOLDER:
            raise ImageValidationError(f"Invalid upload folder: {folder}")
        extension = self.validate(file)
        name = generate_filename(extension)
        path = f"{folder}/{name}"

        self.repo.put_file(path, file.data, f"Upload image: {name}")
        thumbnail_url = None
        thumbnail = make_thumbnail(file.data, extension, self.thumbnail_size)
        if thumbnail is not None:
            thumb_path = f"{THUMBNAILS_FOLDER}/{name}"
            try:
                self.repo.put_file(thumb_path, thumbnail, f"Upload thumbnail: {name}")
                thumbnail_url = self.repo.raw_url(thumb_path)
            except Exception:
                logger.warning("Thumbnail upload failed for %s", name, exc_info=True)

        logger.info("Uploaded image %s (%d bytes)", path, file.size)
        return UploadResult(
            success=True,
            filename=path,
            url=self.repo.raw_url(path),
            thumbnail_url=thumbnail_url,
            size=file.size,
            type=file.content_type,
        )

    def upload_many(
        self, files: Iterable[ImageFile], folder: str = IMAGES_FOLDER
    ) -> list[UploadResult]:
        results = []
        for file in files:
            try:
                results.append(self.upload(file, folder))
            except Exception as e:
                logger.warning("Upload failed for %s: %s", file.filename, e)
                message = getattr(e, "message", None) or str(e)
                results.append(
                    UploadResult(success=False, filename=file.filename, error=message)
                )
        return results

    def delete_image(self, url: str) -> bool:
        """
        Removes ``images/<name>`` and its thumbnail. URLs whose parent folder
        is not ``images`` are ignored.
        """
        parts = urlparse(url).path.rstrip("/").split("/")
        if len(parts) < 2:
            logger.warning("Invalid image URL format: %s", url)
            return False
        folder, filename = parts[-2], parts[-1]
        if not filename or folder != IMAGES_FOLDER:
            logger.warning("Invalid image URL format: %s", url)
            return False

        deleted = self.repo.delete_file(
            f"{IMAGES_FOLDER}/{filename}", f"Delete image: {filename}"
        )
        self.repo.delete_file(
            f"{THUMBNAILS_FOLDER}/{filename}", f"Delete thumbnail: {filename}"
        )
        return deleted

    def list_images(self, folder: str = IMAGES_FOLDER) -> list[RepoFile]:
        return self.repo.list_dir(folder)
