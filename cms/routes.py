"""
HTTP routes for content, uploads and storage inspection.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from cms.config import Settings, get_settings
from cms.content import CONTENT_TYPES, ContentManager, get_content_type
from cms.dependencies import (
    get_blob_store,
    get_content_manager,
    get_image_uploader,
)
from cms.exceptions import CmsError, ImageValidationError
from cms.images import IMAGES_FOLDER, ImageFile, ImageUploader
from cms.schemas import (
    BlobEntry,
    ContentOperationRequest,
    ListBlobsResponse,
    ListFilesResponse,
    RepoFileEntry,
    StorageStatusResponse,
)
from cms.storage import BlobStore

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/content-clean")
def get_all_content(manager: ContentManager = Depends(get_content_manager)):
    return {"success": True, "data": manager.get_all_content()}


@router.post("/content-clean")
def save_content(
    payload: ContentOperationRequest,
    manager: ContentManager = Depends(get_content_manager),
):
    if payload.operation == "addItem":
        logger.info("Adding %s item", payload.contentType)
        result = manager.add_item(payload.contentType or "", payload.item or {})
        return {"success": True, "data": result}

    if payload.operation == "updateItem":
        if not payload.itemId:
            raise CmsError("itemId is required", 400)
        logger.info("Updating %s item %s", payload.contentType, payload.itemId)
        result = manager.update_item(
            payload.contentType or "", payload.itemId, payload.item or {}
        )
        return {"success": True, "data": result}

    if payload.operation == "deleteItem":
        if not payload.itemId:
            raise CmsError("itemId is required", 400)
        logger.info("Deleting %s item %s", payload.contentType, payload.itemId)
        return {"success": manager.delete_item(payload.contentType or "", payload.itemId)}

    # Bulk save of a whole document.
    if not payload.type or payload.data is None:
        raise CmsError("Type and data are required", 400)
    get_content_type(payload.type)
    manager.save_content(payload.type, payload.data)
    return {"success": True, "message": f"{payload.type} saved successfully"}


@router.get("/content-html")
def get_content_html(
    type: Optional[str] = Query(None),
    id: Optional[str] = Query(None),
    manager: ContentManager = Depends(get_content_manager),
):
    if not type or not id:
        raise CmsError("Missing type or id parameter", 400)
    return {"success": True, "data": manager.get_content_with_html(type, id)}


@router.post("/upload")
async def upload_images(
    files: Optional[list[UploadFile]] = File(None),
    folder: str = Form(IMAGES_FOLDER),
    uploader: ImageUploader = Depends(get_image_uploader),
):
    if not files:
        raise CmsError("No files provided", 400)

    images = [
        ImageFile(
            filename=upload.filename or "",
            content_type=upload.content_type or "",
            data=await upload.read(),
        )
        for upload in files
    ]

    if len(images) == 1:
        image = images[0]
        if not image.content_type.startswith("image/"):
            raise ImageValidationError("File must be an image")
        result = uploader.upload(image, folder or IMAGES_FOLDER)
        return {
            **result.as_dict(),
            "message": "Image uploaded successfully",
        }

    results = uploader.upload_many(images, folder or IMAGES_FOLDER)
    successful = sum(1 for r in results if r.success)
    return {
        "success": True,
        "results": [r.as_dict() for r in results],
        "summary": {
            "total": len(results),
            "successful": successful,
            "failed": len(results) - successful,
        },
        "message": f"Uploaded {successful} of {len(results)} images",
    }


@router.get("/upload", response_model=ListFilesResponse)
def list_uploaded_images(
    folder: str = Query(IMAGES_FOLDER),
    uploader: ImageUploader = Depends(get_image_uploader),
):
    files = [
        RepoFileEntry(
            name=f.path.rsplit("/", 1)[-1],
            path=f.path,
            url=f.download_url or uploader.repo.raw_url(f.path),
            size=f.size,
        )
        for f in uploader.list_images(folder)
    ]
    return ListFilesResponse(success=True, files=files, count=len(files))


@router.delete("/upload")
def delete_uploaded_image(
    url: str = Query(..., min_length=1),
    uploader: ImageUploader = Depends(get_image_uploader),
):
    if not uploader.delete_image(url):
        raise CmsError("Image not found", 404)
    return {"success": True, "message": "Image deleted successfully"}


@router.get("/list-blobs", response_model=ListBlobsResponse)
def list_blobs(
    store: BlobStore = Depends(get_blob_store),
    settings: Settings = Depends(get_settings),
):
    blobs = [BlobEntry(**info.as_dict()) for info in store.list(settings.content_prefix)]
    return ListBlobsResponse(success=True, blobs=blobs, count=len(blobs))


@router.get("/storage-status", response_model=StorageStatusResponse)
def storage_status(
    store: BlobStore = Depends(get_blob_store),
    settings: Settings = Depends(get_settings),
):
    """
    Reports which content documents exist. Listing failures surface as
    ``StorageError`` (502) through the exception handlers.
    """
    existing = {info.pathname for info in store.list(settings.content_prefix)}
    documents = {
        key: f"{settings.content_prefix}{spec.filename}" in existing
        for key, spec in CONTENT_TYPES.items()
    }
    present = sum(documents.values())
    return StorageStatusResponse(
        success=True,
        backend=type(store).__name__,
        content_prefix=settings.content_prefix,
        documents=documents,
        message=f"{present} of {len(documents)} content documents present",
    )
