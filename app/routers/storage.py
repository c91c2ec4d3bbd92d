# =============================================================================
# app/routers/storage.py - Object Storage Endpoints
# =============================================================================
# Upload and delete endpoints for portfolio images in R2.
#
# Flow: the admin UI requests a presigned URL, PUTs the file straight to R2,
# then saves the public URL on the record. Deleting reverses this by key or
# by the stored URL.
# =============================================================================

from fastapi import APIRouter

from app.dependencies import StorageDep
from app.exceptions import MissingFieldError, StorageDeleteError
from core.models.storage import (
    DeleteByUrlRequest,
    DeleteObjectRequest,
    DeleteObjectResponse,
    DeleteResult,
    DirectUploadRequest,
    DirectUploadResponse,
    UploadUrl,
    UploadUrlRequest,
)

router = APIRouter()


def _delete_response(result: DeleteResult) -> DeleteObjectResponse:
    if not result.success:
        raise StorageDeleteError(
            result.key,
            result.message,
            details={"store_status": result.status_code, **result.details},
        )
    return DeleteObjectResponse(success=True, message=result.message, objectKey=result.key)


# =============================================================================
# Uploads
# =============================================================================

@router.post("/upload-to-r2", response_model=UploadUrl)
def issue_upload_url(body: UploadUrlRequest, storage: StorageDep):
    """
    Issue a presigned PUT URL for one object key.

    The URL is valid for R2_UPLOAD_URL_EXPIRES seconds (one hour by default).
    No record is created; the caller persists the resulting URL itself.
    """
    return storage.issue_upload_url(body.objectName, body.contentType)


@router.post("/upload-to-r2/direct", response_model=DirectUploadResponse)
def upload_direct(body: DirectUploadRequest, storage: StorageDep):
    """Upload a base64-encoded file through the server."""
    key = storage.upload_bytes(body.objectName, body.fileData, body.contentType)
    return DirectUploadResponse(
        message=f"Uploaded {key}",
        objectKey=key,
        publicUrl=storage.public_url(key),
    )


# =============================================================================
# Deletes
# =============================================================================

@router.post("/delete-from-r2", response_model=DeleteObjectResponse)
def delete_object(body: DeleteObjectRequest, storage: StorageDep):
    """Delete an object by key. Deleting a missing key succeeds."""
    return _delete_response(storage.delete_object(body.objectKey))


@router.post("/delete-from-r2/by-url", response_model=DeleteObjectResponse)
def delete_by_url(body: DeleteByUrlRequest, storage: StorageDep):
    """
    Delete the object behind a stored public URL.

    A URL that cannot be resolved to a key is reported as a failure without
    contacting the store.
    """
    if not body.url or not body.url.strip():
        raise MissingFieldError("url")
    return _delete_response(storage.delete_by_url(body.url))
