# =============================================================================
# core/services/translation_service.py - Translation Aid
# =============================================================================
# Translates editorial text between English and Chinese with an OpenAI chat
# model, and fills in the missing locale of bilingual title/subtitle/
# description fields.
#
# Some deployments only accept the Responses API; when the chat call is
# rejected for that reason the same request is sent through Responses.
# =============================================================================

import logging
import re
from typing import Any

from openai import OpenAIError

from app.exceptions import MissingFieldError, TranslationError
from core.models.editorial import BilingualRequest, BilingualResponse
from core.models.portfolio import LocalizedText
from lib.openai_client import OpenAIProvider

logger = logging.getLogger(__name__)

TRANSLATOR_PROMPT = (
    "You are a professional translator. Preserve meaning, tone, and style. "
    "Return ONLY the translated text, with no quotes or extra commentary."
)

TEXT_FIELDS = ("title", "subtitle", "description")

RESPONSES_ONLY = re.compile(r"unsupported\s*parameter|moved to 'input'|responses api", re.IGNORECASE)
CJK = re.compile(r"[\u4e00-\u9fff]")


def looks_zh(text: str | None) -> bool:
    """True if the text contains CJK ideographs."""
    return bool(CJK.search(text or ""))


def is_responses_only_error(exc: BaseException) -> bool:
    return bool(RESPONSES_ONLY.search(str(exc)))


def extract_output_text(response: Any) -> str:
    """Pull the text out of a Responses API result."""
    text = getattr(response, "output_text", None)
    if text:
        return str(text).strip()

    try:
        content = response.output[0].content[0]
    except (AttributeError, IndexError, TypeError):
        return ""
    value = getattr(content, "text", "")
    if not isinstance(value, str):
        value = getattr(value, "value", "") or ""
    return value.strip()


class TranslationService:
    """
    Service for text translation.

    Example:
        service = TranslationService(OpenAIProvider(settings))
        service.translate("Morning mist over Erhai", "en", "zh")
    """

    def __init__(self, provider: OpenAIProvider, log: logging.Logger = logger):
        self.provider = provider
        self.log = log

    def translate(
        self,
        text: str | None,
        source_lang: str = "en",
        target_lang: str = "zh",
    ) -> str:
        """
        Translate one text.

        Raises:
            MissingFieldError: text is missing
            ConfigurationError: no OpenAI/Azure key is configured
            TranslationError: the provider failed
        """
        if not text or not isinstance(text, str):
            raise MissingFieldError("text", message="Missing text")

        client, model = self.provider.resolve("text")
        from_label = "auto-detected language" if source_lang == "auto" else source_lang
        prompt = f"Translate the following text from {from_label} to {target_lang}:\n{text}"

        try:
            try:
                completion = client.chat.completions.create(
                    model=model,
                    messages=[
                        {"role": "system", "content": TRANSLATOR_PROMPT},
                        {"role": "user", "content": prompt},
                    ],
                    temperature=0.2,
                )
                translated = (completion.choices[0].message.content or "").strip()
            except OpenAIError as e:
                if not is_responses_only_error(e):
                    raise
                self.log.info(f"Model {model} requires the Responses API, switching")
                response = client.responses.create(
                    model=model,
                    input=[{
                        "role": "user",
                        "content": [{"type": "input_text", "text": f"{TRANSLATOR_PROMPT}\n\n{prompt}"}],
                    }],
                )
                translated = extract_output_text(response)
        except OpenAIError as e:
            self.log.error(f"Translation failed: {e}")
            raise TranslationError(str(e))

        self.log.debug(f"Translated {len(text)} chars {source_lang}->{target_lang}")
        return translated

    # -------------------------------------------------------------------------
    # Bilingual Fill
    # -------------------------------------------------------------------------

    def _translate_or_blank(self, text: str, target: str) -> str:
        if not text.strip():
            return ""
        try:
            return self.translate(text, source_lang="auto", target_lang=target)
        except TranslationError as e:
            self.log.warning(f"Leaving {target} field empty, translation failed: {e.details}")
            return ""

    def fill_bilingual(self, request: BilingualRequest) -> BilingualResponse:
        """
        Complete English and Chinese values for title, subtitle and description.

        For each field:
        - neither locale set: the base value goes to the locale it is written
          in, and the other locale is translated from it
        - one locale set: the other is translated from it
        - both set: kept as is
        """
        en = request.en or LocalizedText()
        zh = request.zh or LocalizedText()
        en_out: dict[str, str] = {}
        zh_out: dict[str, str] = {}

        for field in TEXT_FIELDS:
            base = getattr(request, field) or ""
            en_value = getattr(en, field) or ""
            zh_value = getattr(zh, field) or ""

            if not en_value and not zh_value and base:
                if looks_zh(base):
                    zh_value = base
                    en_value = self._translate_or_blank(base, "en")
                else:
                    en_value = base
                    zh_value = self._translate_or_blank(base, "zh")
            elif not en_value and zh_value:
                en_value = self._translate_or_blank(zh_value, "en")
            elif not zh_value and en_value:
                zh_value = self._translate_or_blank(en_value, "zh")

            en_out[field] = en_value
            zh_out[field] = zh_value

        return BilingualResponse(en=LocalizedText(**en_out), zh=LocalizedText(**zh_out))
