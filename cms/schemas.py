"""
Pydantic schemas for the CMS API.
"""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ContentOperationRequest(BaseModel):
    """
    Body of ``POST /content-clean``.

    Item operations use ``operation``/``contentType``/``itemId``/``item``;
    a body without ``operation`` is a bulk save of ``data`` under ``type``.
    """

    model_config = ConfigDict(extra="ignore")

    operation: Optional[Literal["addItem", "updateItem", "deleteItem"]] = None
    contentType: Optional[str] = None
    itemId: Optional[str] = None
    item: Optional[dict] = None
    type: Optional[str] = None
    data: Any = None


class LoginRequest(BaseModel):
    username: Optional[str] = Field(default=None, max_length=256)
    password: Optional[str] = Field(default=None, max_length=1024)


class LoginResponse(BaseModel):
    success: bool


class SessionResponse(BaseModel):
    authenticated: bool


class BlobEntry(BaseModel):
    url: str
    pathname: str
    size: int = 0
    uploadedAt: Optional[str] = None


class ListBlobsResponse(BaseModel):
    success: bool
    blobs: list[BlobEntry]
    count: int


class RepoFileEntry(BaseModel):
    name: str
    path: str
    url: str
    size: int = 0


class ListFilesResponse(BaseModel):
    success: bool
    files: list[RepoFileEntry]
    count: int


class StorageStatusResponse(BaseModel):
    success: bool
    backend: str
    content_prefix: str
    documents: dict[str, bool]
    message: str
