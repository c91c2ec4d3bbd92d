# =============================================================================
# lib/storage_keys.py - Object Storage Key Codec
# =============================================================================
# Converts between object-store keys and the public URLs persisted in records.
#
# A stored URL's path, minus one leading "/", is the key the object was
# written under. Keys are never decoded or case-folded, so a key must be
# stored exactly as the upload step produced it.
#
# Usage:
#   from lib.storage_keys import derive_key, build_object_url
#   derive_key("https://pub-xxx.r2.dev/picture/cover-42.webp")
#   # -> "picture/cover-42.webp"
# =============================================================================

import logging
from urllib.parse import urlsplit

logger = logging.getLogger(__name__)


def derive_key(url: str | None) -> str | None:
    """
    Extract the object key from a fully qualified object URL.

    Args:
        url: Absolute URL such as https://pub-xxx.r2.dev/picture/cover-42.webp

    Returns:
        The key ("picture/cover-42.webp"), or None when the URL is empty,
        relative, unparsable or has no path. Never raises.
    """
    if not url or not isinstance(url, str):
        return None

    try:
        parts = urlsplit(url.strip())
        # Accessing .port validates the authority (e.g. "host:abc" raises)
        parts.port
    except ValueError as e:
        logger.debug(f"Cannot parse object URL {url!r}: {e}")
        return None

    if not parts.scheme or not parts.netloc:
        logger.debug(f"Not an absolute URL: {url!r}")
        return None

    key = parts.path
    if key.startswith("/"):
        key = key[1:]

    return key or None


def build_object_url(base_url: str, key: str) -> str:
    """
    Join a public bucket base URL and an object key.

    Keys that are already absolute http(s) URLs are returned unchanged,
    matching how legacy records store full URLs.

    Example:
        build_object_url("https://pub-xxx.r2.dev/", "picture/a.webp")
        # -> "https://pub-xxx.r2.dev/picture/a.webp"
    """
    if key.lower().startswith(("http://", "https://")):
        return key
    return f"{base_url.rstrip('/')}/{key.lstrip('/')}"


# Any absolute base works: only the path survives derive_key
_KEY_CHECK_BASE = "https://bucket.invalid"


def is_storable_key(key: str) -> bool:
    """
    True when the public URL built for `key` derives back to the same key.

    Keys with a leading "/", a query or fragment marker, surrounding
    whitespace, or an absolute URL form would be written under one name
    and later resolved to another, orphaning the object on delete.
    """
    return derive_key(build_object_url(_KEY_CHECK_BASE, key)) == key
