# =============================================================================
# core/models/storage.py - Object Storage Schemas
# =============================================================================
# These models define the API contract for the upload/delete lifecycle:
# - UploadUrlRequest / UploadUrlResponse: presigned upload issuance
# - DirectUploadRequest: server-side upload of base64 file data
# - DeleteObjectRequest / DeleteByUrlRequest / DeleteObjectResponse
# - DeleteResult: structured outcome of a delete, consumed by the HTTP layer
#
# Request fields are optional at the schema level so a missing field is
# reported as a 400 MISSING_FIELD by the service, not a schema error.
# =============================================================================

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class UploadUrlRequest(BaseModel):
    """Request for a presigned upload URL."""
    objectName: str | None = Field(
        default=None,
        examples=["picture/cover-42.webp"],
        description="Object key the upload will be written to"
    )
    contentType: str | None = Field(
        default=None,
        examples=["image/webp"],
        description="MIME type the client will upload with"
    )


class UploadUrl(BaseModel):
    """A time-limited write URL for exactly one object key."""
    uploadUrl: str
    contentType: str
    objectKey: str
    expiresIn: int
    publicUrl: str | None = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "uploadUrl": "https://acct.r2.cloudflarestorage.com/portfolio/picture/cover-42.webp?X-Amz-Signature=...",
                "contentType": "image/webp",
                "objectKey": "picture/cover-42.webp",
                "expiresIn": 3600,
                "publicUrl": "https://pub-xxx.r2.dev/picture/cover-42.webp",
            }
        }
    )


class DirectUploadRequest(BaseModel):
    """Upload request carrying the file as base64."""
    fileData: str | None = Field(default=None, description="Base64-encoded file content")
    objectName: str | None = None
    contentType: str | None = None


class DirectUploadResponse(BaseModel):
    success: bool = True
    message: str
    objectKey: str
    publicUrl: str | None = None


class DeleteObjectRequest(BaseModel):
    """Delete an object by key."""
    objectKey: str | None = Field(default=None, examples=["picture/cover-42.webp"])


class DeleteByUrlRequest(BaseModel):
    """Delete an object by the public URL stored in a record."""
    url: str | None = Field(default=None, examples=["https://pub-xxx.r2.dev/picture/cover-42.webp"])


class DeleteObjectResponse(BaseModel):
    success: bool
    message: str
    objectKey: str | None = None


class DeleteResult(BaseModel):
    """
    Outcome of a delete against the object store.

    Failures are values, not exceptions: `status_code` and `details` carry
    the store's diagnostics when the store was contacted.
    """
    success: bool
    key: str | None = None
    message: str = ""
    status_code: int | None = None
    details: dict[str, Any] = Field(default_factory=dict)
