from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Optional


class ContentShape(StrEnum):
    ARRAY = "array"
    OBJECT = "object"


@dataclass(frozen=True)
class ContentTypeSpec:
    """Describes one content document (e.g. ``news``) and its JSON shape."""

    key: str
    shape: ContentShape
    has_html_body: bool = False

    @property
    def is_array(self) -> bool:
        return self.shape == ContentShape.ARRAY

    @property
    def filename(self) -> str:
        return f"{self.key}.json"


@dataclass
class BlobInfo:
    pathname: str
    url: str
    size: int = 0
    uploaded_at: Optional[str] = None

    def as_dict(self) -> dict:
        return {
            "pathname": self.pathname,
            "url": self.url,
            "size": self.size,
            "uploadedAt": self.uploaded_at,
        }


@dataclass
class RepoFile:
    path: str
    sha: str
    content: bytes = b""
    size: int = 0
    download_url: Optional[str] = None


@dataclass
class UploadResult:
    success: bool
    filename: str
    url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    size: int = 0
    type: Optional[str] = None
    error: Optional[str] = None

    def as_dict(self) -> dict:
        if not self.success:
            return {"success": False, "error": self.error, "filename": self.filename}
        return {
            "success": True,
            "url": self.url,
            "thumbnail_url": self.thumbnail_url,
            "filename": self.filename,
            "size": self.size,
            "type": self.type,
        }


@dataclass
class MigrationReport:
    content_type: str
    status: str
    item_count: int = 0
    reason: Optional[str] = None
    changes: list[str] = field(default_factory=list)
