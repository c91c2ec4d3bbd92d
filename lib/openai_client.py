# =============================================================================
# lib/openai_client.py - OpenAI / Azure OpenAI Client Provider
# =============================================================================
# Resolves the client and model for an editorial aid:
# - "text" (translation) uses OPENAI_TRANSLATION_MODEL
# - "vision" (image analysis) uses OPENAI_VISION_MODEL
#
# When AZURE_OPENAI_ENDPOINT is set both aids go through Azure, with the
# deployment name standing in for the model.
# =============================================================================

from __future__ import annotations

import logging
from typing import Any, Literal

from openai import AzureOpenAI, OpenAI

from app.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

ClientKind = Literal["text", "vision"]


class OpenAIProvider:
    """
    Lazily creates and caches one OpenAI client per kind.

    Example:
        provider = OpenAIProvider(settings)
        client, model = provider.resolve("text")
    """

    def __init__(self, settings: Any):
        self.settings = settings
        self._clients: dict[str, tuple[Any, str]] = {}

    @property
    def is_azure(self) -> bool:
        return self.settings.uses_azure_openai

    def require_key(self) -> None:
        if not self.settings.has_openai_key:
            raise ConfigurationError(["OPENAI_API_KEY", "AZURE_OPENAI_API_KEY"], service="OpenAI/Azure OpenAI")

    def _model_for(self, kind: ClientKind) -> str:
        if kind == "vision":
            return self.settings.OPENAI_VISION_MODEL
        return self.settings.OPENAI_TRANSLATION_MODEL

    def resolve(self, kind: ClientKind) -> tuple[Any, str]:
        """
        Get the client and model name for `kind`.

        Raises:
            ConfigurationError: If neither OpenAI nor Azure key is set
        """
        self.require_key()
        if kind in self._clients:
            return self._clients[kind]

        if self.is_azure:
            deployment = self.settings.AZURE_OPENAI_DEPLOYMENT or self._model_for(kind)
            client = AzureOpenAI(
                api_key=self.settings.AZURE_OPENAI_API_KEY or self.settings.OPENAI_API_KEY,
                api_version=self.settings.AZURE_OPENAI_API_VERSION,
                azure_endpoint=self.settings.AZURE_OPENAI_ENDPOINT.rstrip("/"),
                azure_deployment=deployment,
            )
            resolved = (client, deployment)
            logger.info(f"Azure OpenAI client initialized for {kind} ({deployment})")
        else:
            client = OpenAI(api_key=self.settings.OPENAI_API_KEY)
            resolved = (client, self._model_for(kind))
            logger.info(f"OpenAI client initialized for {kind} ({resolved[1]})")

        self._clients[kind] = resolved
        return resolved
