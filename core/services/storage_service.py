# =============================================================================
# core/services/storage_service.py - R2 Object Storage Operations
# =============================================================================
# Handles the storage half of the image lifecycle:
# - issue presigned upload URLs (the browser uploads directly to R2)
# - server-side uploads of small base64 payloads
# - deletes by key or by the public URL persisted in a record
#
# Writing the record after an upload, and removing it after a delete, belong
# to the relational layer; the two steps are not transactional.
# =============================================================================

import base64
import binascii
import logging
from typing import Any, Callable

from botocore.exceptions import BotoCoreError, ClientError

from app.exceptions import (
    ConfigurationError,
    InvalidFieldError,
    MissingFieldError,
    StorageProviderError,
)
from core.models.storage import DEFAULT_CONTENT_TYPE, DeleteResult, UploadUrl
from lib.r2_client import R2Config, create_r2_client
from lib.storage_keys import build_object_url, derive_key, is_storable_key

logger = logging.getLogger(__name__)

# Error codes R2/S3 use for a key that does not exist
MISSING_KEY_CODES = {"NoSuchKey", "NotFound", "404"}


class StorageService:
    """
    Service for R2 object storage operations.

    The S3 client is created on first use, after the configuration check,
    so a process without R2 settings still starts and only storage
    operations fail.

    Example:
        service = StorageService(R2Config.from_settings(settings))
        upload = service.issue_upload_url("picture/cover-42.webp", "image/webp")
        result = service.delete_by_url(upload.publicUrl)
    """

    def __init__(
        self,
        config: R2Config,
        client: Any = None,
        client_factory: Callable[[R2Config], Any] = create_r2_client,
        log: logging.Logger = logger,
    ):
        self.config = config
        self._client = client
        self._client_factory = client_factory
        self.log = log

    # -------------------------------------------------------------------------
    # Client
    # -------------------------------------------------------------------------

    def _require_config(self) -> None:
        missing = self.config.missing_fields()
        if missing:
            raise ConfigurationError(missing, service="Object storage")

    @property
    def client(self) -> Any:
        """The S3 client; raises ConfigurationError if R2 is not configured."""
        self._require_config()
        if self._client is None:
            self._client = self._client_factory(self.config)
        return self._client

    @staticmethod
    def _require_key(object_name: str | None) -> str:
        if not object_name or not object_name.strip():
            raise MissingFieldError("objectName")
        if not is_storable_key(object_name):
            raise InvalidFieldError(
                "objectName",
                object_name,
                suggestion="Use a relative key such as 'picture/cover-42.webp' "
                           "without a leading '/', '?' or '#'",
            )
        return object_name

    def public_url(self, key: str) -> str | None:
        if not self.config.public_base_url:
            return None
        return build_object_url(self.config.public_base_url, key)

    # -------------------------------------------------------------------------
    # Uploads
    # -------------------------------------------------------------------------

    def issue_upload_url(
        self,
        object_name: str | None,
        content_type: str | None = None,
    ) -> UploadUrl:
        """
        Obtain a presigned PUT URL for one object key.

        Args:
            object_name: Object key to write, e.g. "picture/cover-42.webp"
            content_type: MIME type; defaults to application/octet-stream

        Returns:
            UploadUrl with the signed URL and its lifetime

        Raises:
            MissingFieldError: object_name is empty (store is not contacted)
            InvalidFieldError: object_name would not resolve back from its public URL
            ConfigurationError: endpoint, bucket or credentials are missing
            StorageProviderError: presigning failed
        """
        object_name = self._require_key(object_name)

        content_type = content_type or DEFAULT_CONTENT_TYPE
        client = self.client
        expires = self.config.upload_url_expires

        try:
            upload_url = client.generate_presigned_url(
                "put_object",
                Params={
                    "Bucket": self.config.bucket,
                    "Key": object_name,
                    "ContentType": content_type,
                },
                ExpiresIn=expires,
            )
        except (BotoCoreError, ClientError) as e:
            self.log.error(f"Presign failed for {object_name}: {e}")
            raise StorageProviderError("presign", str(e), {"key": object_name})

        self.log.info(f"Issued upload URL for {object_name} ({content_type}, {expires}s)")
        return UploadUrl(
            uploadUrl=upload_url,
            contentType=content_type,
            objectKey=object_name,
            expiresIn=expires,
            publicUrl=self.public_url(object_name),
        )

    def upload_bytes(
        self,
        object_name: str | None,
        file_data: str | None,
        content_type: str | None = None,
    ) -> str:
        """
        Upload base64-encoded content through the server.

        Returns:
            The object key written

        Raises:
            MissingFieldError: object_name or file_data is missing/undecodable
            ConfigurationError: R2 is not configured
            StorageProviderError: the store rejected the upload
        """
        if not file_data:
            raise MissingFieldError("fileData")
        object_name = self._require_key(object_name)

        try:
            body = base64.b64decode(file_data, validate=True)
        except (binascii.Error, ValueError):
            raise MissingFieldError("fileData", message="fileData is not valid base64")

        client = self.client
        try:
            client.put_object(
                Bucket=self.config.bucket,
                Key=object_name,
                Body=body,
                ContentType=content_type or DEFAULT_CONTENT_TYPE,
            )
        except (BotoCoreError, ClientError) as e:
            self.log.error(f"Upload failed for {object_name}: {e}")
            raise StorageProviderError("upload", str(e), {"key": object_name})

        self.log.info(f"Uploaded {len(body)} bytes to {object_name}")
        return object_name

    # -------------------------------------------------------------------------
    # Deletes
    # -------------------------------------------------------------------------

    def delete_object(self, key: str | None) -> DeleteResult:
        """
        Delete one object by key.

        A key the store reports as missing counts as deleted.

        Raises:
            MissingFieldError: key is empty
            ConfigurationError: R2 is not configured
        """
        if not key or not key.strip():
            raise MissingFieldError("objectKey")

        client = self.client

        try:
            response = client.delete_object(Bucket=self.config.bucket, Key=key)
        except ClientError as e:
            error = e.response.get("Error", {})
            status = e.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
            if error.get("Code") in MISSING_KEY_CODES or status == 404:
                self.log.info(f"Object already absent: {key}")
                return DeleteResult(success=True, key=key, message="Object already absent", status_code=status)

            self.log.error(f"Delete failed for {key}: {error}")
            return DeleteResult(
                success=False,
                key=key,
                message=f"Failed to delete object: {error.get('Message') or e}",
                status_code=status,
                details={"error": error},
            )
        except BotoCoreError as e:
            self.log.error(f"Delete failed for {key}: {e}")
            return DeleteResult(
                success=False,
                key=key,
                message=f"Failed to delete object: {e}",
                details={"error": str(e)},
            )

        status = (response or {}).get("ResponseMetadata", {}).get("HTTPStatusCode")
        self.log.info(f"Deleted object from storage: {key}")
        return DeleteResult(success=True, key=key, message="Object deleted", status_code=status)

    def delete_by_url(self, url: str | None) -> DeleteResult:
        """
        Delete the object behind a stored public URL.

        When the URL cannot be resolved to a key the store is not contacted
        and an unsuccessful result is returned.
        """
        key = derive_key(url)
        if key is None:
            self.log.warning(f"Cannot derive object key from URL, skipping delete: {url!r}")
            return DeleteResult(
                success=False,
                message="Could not derive object key from URL",
                details={"url": url},
            )
        return self.delete_object(key)
