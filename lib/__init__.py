# =============================================================================
# lib/ - Client and Codec Modules
# =============================================================================
# This package contains the thin layers over external providers:
# - supabase_client.py: Typed Supabase wrapper for the gallery reads
# - r2_client.py: R2 settings and boto3 S3 client factory
# - openai_client.py: OpenAI / Azure OpenAI client resolution
# - storage_keys.py: object key <-> public URL codec
#
# These modules are self-contained and can be tested in isolation.
# =============================================================================

from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.r2_client import R2Config, create_r2_client
from lib.openai_client import OpenAIProvider
from lib.storage_keys import build_object_url, derive_key

__all__ = [
    # Supabase
    "SupabaseClient",
    "SupabaseClientError",
    # R2
    "R2Config",
    "create_r2_client",
    # OpenAI
    "OpenAIProvider",
    # Keys
    "build_object_url",
    "derive_key",
]
