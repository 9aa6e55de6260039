"""
Blob storage for JSON documents and HTML bodies.

Three implementations share the ``BlobStore`` protocol: an in-memory store
for tests, a local directory for development, and an S3-compatible bucket
for production.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from cms.exceptions import StorageError
from shared.string_utils import utc_now_iso
from shared.types import BlobInfo

logger = logging.getLogger(__name__)


class BlobStore(Protocol):
    """Defines the operations the CMS needs from blob storage."""

    def get_json(self, path: str) -> Optional[Any]:
        ...

    def put_json(self, path: str, payload: Any) -> BlobInfo:
        ...

    def get_text(self, path: str) -> Optional[str]:
        ...

    def put_text(self, path: str, text: str, content_type: str = "text/html") -> BlobInfo:
        ...

    def delete(self, path: str) -> bool:
        ...

    def list(self, prefix: str = "") -> list[BlobInfo]:
        ...


def _encode_json(payload: Any) -> bytes:
    return json.dumps(payload, indent=2, ensure_ascii=False, default=str).encode("utf-8")


@dataclass
class InMemoryBlobStore:
    """Test double for blob storage."""

    base_url: str = "https://example.test/blob"
    stored_objects: dict = field(default_factory=dict)
    uploaded_at: dict = field(default_factory=dict)

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path}"

    def _info(self, path: str) -> BlobInfo:
        return BlobInfo(
            pathname=path,
            url=self._url(path),
            size=len(self.stored_objects[path]),
            uploaded_at=self.uploaded_at.get(path),
        )

    def _put(self, path: str, body: bytes) -> BlobInfo:
        self.stored_objects[path] = body
        self.uploaded_at[path] = utc_now_iso()
        return self._info(path)

    def get_json(self, path: str) -> Optional[Any]:
        body = self.stored_objects.get(path)
        if body is None:
            return None
        return json.loads(body.decode("utf-8"))

    def put_json(self, path: str, payload: Any) -> BlobInfo:
        return self._put(path, _encode_json(payload))

    def get_text(self, path: str) -> Optional[str]:
        body = self.stored_objects.get(path)
        return None if body is None else body.decode("utf-8")

    def put_text(self, path: str, text: str, content_type: str = "text/html") -> BlobInfo:
        return self._put(path, text.encode("utf-8"))

    def delete(self, path: str) -> bool:
        self.uploaded_at.pop(path, None)
        return self.stored_objects.pop(path, None) is not None

    def list(self, prefix: str = "") -> list[BlobInfo]:
        return [
            self._info(path)
            for path in sorted(self.stored_objects)
            if path.startswith(prefix)
        ]


@dataclass
class LocalBlobStore:
    """
    Stores blobs as files under ``root_dir``. Used in development so content
    edits land in the working tree.
    """

    root_dir: str
    base_url: str = "/content-data"

    def _path(self, path: str) -> Path:
        root = Path(self.root_dir).resolve()
        target = (root / path).resolve()
        if root != target and root not in target.parents:
            raise StorageError(f"Path escapes content directory: {path}", 400)
        return target

    def _info(self, target: Path) -> BlobInfo:
        root = Path(self.root_dir).resolve()
        pathname = target.relative_to(root).as_posix()
        stat = target.stat()
        return BlobInfo(
            pathname=pathname,
            url=f"{self.base_url}/{pathname}",
            size=stat.st_size,
            uploaded_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc).isoformat(),
        )

    def _write(self, path: str, body: bytes) -> BlobInfo:
        target = self._path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(body)
        logger.info("Saved %s locally", path)
        return self._info(target)

    def _read(self, path: str) -> Optional[bytes]:
        target = self._path(path)
        try:
            return target.read_bytes()
        except FileNotFoundError:
            return None

    def get_json(self, path: str) -> Optional[Any]:
        body = self._read(path)
        if body is None:
            return None
        return json.loads(body.decode("utf-8"))

    def put_json(self, path: str, payload: Any) -> BlobInfo:
        return self._write(path, _encode_json(payload))

    def get_text(self, path: str) -> Optional[str]:
        body = self._read(path)
        return None if body is None else body.decode("utf-8")

    def put_text(self, path: str, text: str, content_type: str = "text/html") -> BlobInfo:
        return self._write(path, text.encode("utf-8"))

    def delete(self, path: str) -> bool:
        target = self._path(path)
        try:
            target.unlink()
        except FileNotFoundError:
            return False
        return True

    def list(self, prefix: str = "") -> list[BlobInfo]:
        root = Path(self.root_dir).resolve()
        if not root.exists():
            return []
        infos = []
        for dirpath, _, filenames in os.walk(root):
            for filename in filenames:
                target = Path(dirpath) / filename
                if target.relative_to(root).as_posix().startswith(prefix):
                    infos.append(self._info(target))
        return sorted(infos, key=lambda info: info.pathname)


@dataclass
class S3BlobStore:
    """
    S3-compatible blob storage (any provider that speaks the S3 API).
    """

    bucket: str
    region: str
    endpoint: str
    access_key_id: str
    secret_access_key: str
    public_base_url: str = ""

    def __post_init__(self):
        config = Config(signature_version="s3v4")
        self._client = boto3.client(
            "s3",
            endpoint_url=self.endpoint or None,
            region_name=self.region or None,
            aws_access_key_id=self.access_key_id or None,
            aws_secret_access_key=self.secret_access_key or None,
            config=config,
        )

    def _url(self, path: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url.rstrip('/')}/{path}"
        return f"{(self.endpoint or '').rstrip('/')}/{self.bucket}/{path}"

    def _put(self, path: str, body: bytes, content_type: str) -> BlobInfo:
        try:
            self._client.put_object(
                Bucket=self.bucket,
                Key=path,
                Body=body,
                ContentType=content_type,
                CacheControl="no-cache",
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to write {path}: {e}") from e
        return BlobInfo(pathname=path, url=self._url(path), size=len(body), uploaded_at=utc_now_iso())

    def _get(self, path: str) -> Optional[bytes]:
        try:
            response = self._client.get_object(Bucket=self.bucket, Key=path)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in ("NoSuchKey", "404"):
                return None
            raise StorageError(f"Failed to read {path}: {e}") from e
        except BotoCoreError as e:
            raise StorageError(f"Failed to read {path}: {e}") from e
        return response["Body"].read()

    def get_json(self, path: str) -> Optional[Any]:
        body = self._get(path)
        if body is None:
            return None
        return json.loads(body.decode("utf-8"))

    def put_json(self, path: str, payload: Any) -> BlobInfo:
        return self._put(path, _encode_json(payload), "application/json")

    def get_text(self, path: str) -> Optional[str]:
        body = self._get(path)
        return None if body is None else body.decode("utf-8")

    def put_text(self, path: str, text: str, content_type: str = "text/html") -> BlobInfo:
        return self._put(path, text.encode("utf-8"), f"{content_type}; charset=utf-8")

    def delete(self, path: str) -> bool:
        if self._get(path) is None:
            return False
        try:
            self._client.delete_object(Bucket=self.bucket, Key=path)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to delete {path}: {e}") from e
        return True

    def list(self, prefix: str = "") -> list[BlobInfo]:
        infos = []
        paginator = self._client.get_paginator("list_objects_v2")
        try:
            for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
                for obj in page.get("Contents", []):
                    infos.append(
                        BlobInfo(
                            pathname=obj["Key"],
                            url=self._url(obj["Key"]),
                            size=obj.get("Size", 0),
                            uploaded_at=obj["LastModified"].isoformat()
                            if obj.get("LastModified")
                            else None,
                        )
                    )
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to list {prefix or '/'}: {e}") from e
        return infos
