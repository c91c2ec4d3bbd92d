# =============================================================================
# lib/r2_client.py - Cloudflare R2 (S3-compatible) Client Factory
# =============================================================================
# Builds a boto3 S3 client pointed at an R2 endpoint.
#
# R2 requires SigV4 signing and the "auto" region. The client is created once
# per process by the application lifespan and injected into StorageService.
#
# Usage:
#   from lib.r2_client import R2Config, create_r2_client
#   config = R2Config.from_settings(settings)
#   client = create_r2_client(config)
# =============================================================================

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import boto3
from botocore.config import Config

logger = logging.getLogger(__name__)

# Environment variable backing each required field, used in error messages
REQUIRED_FIELDS = {
    "endpoint_url": "R2_ENDPOINT_URL",
    "bucket": "R2_BUCKET_NAME",
    "access_key_id": "R2_ACCESS_KEY_ID",
    "secret_access_key": "R2_SECRET_ACCESS_KEY",
}


@dataclass(frozen=True)
class R2Config:
    """Connection settings for the R2 bucket."""

    endpoint_url: str | None = None
    bucket: str | None = None
    access_key_id: str | None = None
    secret_access_key: str | None = None
    public_base_url: str | None = None
    upload_url_expires: int = 3600

    @classmethod
    def from_settings(cls, settings: Any) -> R2Config:
        return cls(
            endpoint_url=settings.R2_ENDPOINT_URL,
            bucket=settings.R2_BUCKET_NAME,
            access_key_id=settings.R2_ACCESS_KEY_ID,
            secret_access_key=settings.R2_SECRET_ACCESS_KEY,
            public_base_url=settings.R2_PUBLIC_BASE_URL,
            upload_url_expires=settings.R2_UPLOAD_URL_EXPIRES,
        )

    def missing_fields(self) -> list[str]:
        """Environment variable names of required settings that are blank."""
        return [
            env_name
            for attr, env_name in REQUIRED_FIELDS.items()
            if not (getattr(self, attr) or "").strip()
        ]

    @property
    def is_complete(self) -> bool:
        return not self.missing_fields()


def create_r2_client(config: R2Config):
    """
    Create a boto3 S3 client for R2.

    Args:
        config: A complete R2Config (check `missing_fields()` first)

    Returns:
        botocore S3 client
    """
    client = boto3.client(
        "s3",
        endpoint_url=config.endpoint_url,
        aws_access_key_id=config.access_key_id,
        aws_secret_access_key=config.secret_access_key,
        region_name="auto",
        config=Config(signature_version="s3v4", retries={"max_attempts": 1, "mode": "standard"}),
    )
    logger.info(f"R2 client initialized for bucket {config.bucket}")
    return client
