# =============================================================================
# core/services/analysis_service.py - AI Image Analysis Aid
# =============================================================================
# Asks a vision model for portfolio copy about an image: titles, subtitles,
# descriptions, tags or a technical critique.
#
# Call order:
# - OpenAI: chat completions with the image URL, then the Responses API if
#   the model only accepts it
# - Azure: Responses API with the image URL, then with inline base64 data
#   when the URL form is rejected
#
# Every failure is raised as ImageAnalysisError so the HTTP layer can keep
# the {success, analysisType, result} response shape.
# =============================================================================

import base64
import logging
import re
from typing import Any

import httpx
from openai import (
    APIStatusError,
    AuthenticationError,
    BadRequestError,
    OpenAIError,
    RateLimitError,
)

from app.exceptions import ConfigurationError, ImageAnalysisError
from core.models.editorial import AnalysisType, AnalyzeImageResponse, CompleteAnalysis
from core.services.translation_service import extract_output_text, is_responses_only_error
from lib.openai_client import OpenAIProvider

logger = logging.getLogger(__name__)

CURATOR_INSTRUCTIONS = (
    "You are a professional photography curator and copywriter. "
    "Keep outputs concise and usable."
)

PROMPTS: dict[AnalysisType, str] = {
    AnalysisType.TITLE: """Generate a concise, evocative, and lyrical title for this photograph.
Guidelines:
1) Capture the core subject and atmosphere with imagery
2) Prefer refined, poetic language; avoid clichés and generic words
3) Keep it short: ~2-7 words (EN) or 4-10 characters (ZH)
4) No punctuation, no quotes, no extra commentary
Return ONLY the title text.""",
    AnalysisType.SUBTITLE: """Generate a poetic, atmospheric subtitle that complements the title.
Guidelines:
1) Add context: setting, time, style, or mood; evoke a scene
2) Refined and lyrical, avoid clichés; natural rhythm
3) Keep length around 12-24 words (EN) or 12-20 characters (ZH)
4) No punctuation-heavy phrasing; no quotes
Return ONLY the subtitle text.""",
    AnalysisType.COMPLETE: """Generate title, subtitle, and description for this photograph.
Return EXACTLY in this format (no extra text):

Title: [8-15 words, concise and elegant]
Subtitle: [10-25 words, complementary info]
Description: [80-120 words, include subject, style, mood, light/color]

Keep tone refined and suitable for a photography portfolio.""",
    AnalysisType.DESCRIPTION: """Analyze the photo and write a concise, elegant description for a photography portfolio (<= 120 words).
Include: main subject and scene, style and mood, color and light qualities, overall feeling.
Return ONLY the description text (no extra text).""",
    AnalysisType.TAGS: """Generate tags for this photograph.
Cover: subject category, style, color, and mood.
Return a single comma-separated line with up to 10 English tags. No extra text.""",
    AnalysisType.TECHNICAL: """Provide a concise technical analysis (<= 150 words):
shooting techniques (depth of field, composition, angle), lighting (type/direction), post-processing style, and suggested camera settings.""",
}

TAG_SEPARATORS = re.compile(r"[,，;；\n]")
COMPLETE_LINE = re.compile(r"^\s*(title|subtitle|description)\s*[:：]\s*(.*)$", re.IGNORECASE)


def parse_tags(text: str) -> list[str]:
    """Split a tag line into unique, lowercased tags, keeping order."""
    tags: list[str] = []
    for part in TAG_SEPARATORS.split(text or ""):
        tag = part.strip().lower()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def parse_complete(text: str) -> CompleteAnalysis:
    """Parse the "Title: / Subtitle: / Description:" block of a complete analysis."""
    fields: dict[str, str] = {}
    current: str | None = None
    for line in (text or "").splitlines():
        match = COMPLETE_LINE.match(line)
        if match:
            current = match.group(1).lower()
            fields[current] = match.group(2).strip()
        elif current and line.strip():
            fields[current] = f"{fields[current]} {line.strip()}".strip()
    return CompleteAnalysis(**{k: v or None for k, v in fields.items()})


def map_provider_error(exc: Exception, analysis_type: str) -> ImageAnalysisError:
    """Translate a provider failure into a structured analysis error."""
    message = str(exc)
    lowered = message.lower()
    status = exc.status_code if isinstance(exc, APIStatusError) else None

    if isinstance(exc, RateLimitError) or status == 429 or "rate limit" in lowered or "quota" in lowered:
        return ImageAnalysisError(
            "API quota exceeded",
            code="QUOTA_EXCEEDED",
            status_code=429,
            details="OpenAI rate limit or quota reached. Try again later or adjust plan.",
            analysis_type=analysis_type,
        )
    if isinstance(exc, AuthenticationError) or status == 401 or "api key" in lowered:
        return ImageAnalysisError(
            "Invalid API key",
            code="INVALID_API_KEY",
            status_code=401,
            details="OpenAI API key is invalid or expired. Check configuration.",
            analysis_type=analysis_type,
        )
    if isinstance(exc, BadRequestError) or status == 400:
        return ImageAnalysisError(
            "Bad request",
            code="BAD_REQUEST",
            status_code=400,
            details="Unsupported image format or invalid parameters.",
            analysis_type=analysis_type,
        )
    return ImageAnalysisError(
        "Analysis failed",
        code="UNKNOWN_ERROR",
        status_code=500,
        details=message or "Unknown error. Please try again later.",
        analysis_type=analysis_type,
    )


class AnalysisService:
    """
    Service for vision-model image analysis.

    Example:
        service = AnalysisService(OpenAIProvider(settings))
        result = service.analyze("https://pub-xxx.r2.dev/picture/a.webp", "tags")
        result.tags  # ["mountain", "mist", ...]
    """

    def __init__(
        self,
        provider: OpenAIProvider,
        http: httpx.Client | None = None,
        timeout: float = 10.0,
        log: logging.Logger = logger,
    ):
        self.provider = provider
        self.http = http
        self.timeout = timeout
        self.log = log

    def build_prompt(self, analysis_type: AnalysisType, custom_prompt: str | None = None) -> str:
        if custom_prompt and custom_prompt.strip():
            return custom_prompt
        return PROMPTS[analysis_type]

    def analyze(
        self,
        image_url: Any,
        analysis_type: Any = AnalysisType.DESCRIPTION.value,
        custom_prompt: Any = None,
    ) -> AnalyzeImageResponse:
        """
        Analyze one image.

        Raises:
            ImageAnalysisError: validation (400), configuration (500) or
                provider failures (429/401/400/500)
        """
        type_name = analysis_type or AnalysisType.DESCRIPTION.value
        if not isinstance(type_name, str):
            type_name = str(type_name)

        if image_url is not None and not isinstance(image_url, str):
            raise ImageAnalysisError(
                "Image URL must be a string",
                code="INVALID_FIELD",
                status_code=400,
                analysis_type=type_name,
            )
        if not image_url or not image_url.strip():
            raise ImageAnalysisError(
                "Image URL is required",
                code="MISSING_FIELD",
                status_code=400,
                analysis_type=type_name,
            )
        if custom_prompt is not None and not isinstance(custom_prompt, str):
            raise ImageAnalysisError(
                "customPrompt must be a string",
                code="INVALID_FIELD",
                status_code=400,
                analysis_type=type_name,
            )

        try:
            kind = AnalysisType(type_name)
        except ValueError:
            raise ImageAnalysisError(
                f"Unsupported analysisType: {type_name}",
                code="INVALID_ANALYSIS_TYPE",
                status_code=400,
                details=f"Use one of: {', '.join(t.value for t in AnalysisType)}",
                analysis_type=type_name,
            )

        try:
            client, model = self.provider.resolve("vision")
        except ConfigurationError as e:
            raise ImageAnalysisError(
                "OpenAI/Azure OpenAI API key is not configured",
                code=e.code,
                status_code=500,
                details=e.suggestion,
                analysis_type=type_name,
            )

        prompt = self.build_prompt(kind, custom_prompt)
        image_url = image_url.strip()

        try:
            if self.provider.is_azure:
                text = self._run_responses_with_fallback(client, model, prompt, image_url)
            else:
                text = self._run_chat(client, model, prompt, image_url)
        except ImageAnalysisError:
            raise
        except (OpenAIError, httpx.HTTPError) as e:
            self.log.error(f"Image analysis failed ({type_name}): {e}")
            raise map_provider_error(e, type_name)

        text = text.strip()
        self.log.info(f"Analyzed image ({type_name}): {len(text)} chars")

        response = AnalyzeImageResponse(analysisType=type_name, result=text)
        if kind is AnalysisType.TAGS:
            response.tags = parse_tags(text)
        elif kind is AnalysisType.COMPLETE:
            response.fields = parse_complete(text)
        return response

    # -------------------------------------------------------------------------
    # Provider Calls
    # -------------------------------------------------------------------------

    def _run_chat(self, client: Any, model: str, prompt: str, image_url: str) -> str:
        try:
            completion = client.chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": CURATOR_INSTRUCTIONS},
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": prompt},
                            {"type": "image_url", "image_url": {"url": image_url}},
                        ],
                    },
                ],
                temperature=0.7,
            )
            return completion.choices[0].message.content or ""
        except OpenAIError as e:
            if not is_responses_only_error(e):
                raise
            self.log.info(f"Model {model} requires the Responses API, switching")
            return self._run_responses_with_fallback(client, model, prompt, image_url)

    def _run_responses_with_fallback(self, client: Any, model: str, prompt: str, image_url: str) -> str:
        try:
            return self._run_responses(client, model, prompt, image_url)
        except OpenAIError as e:
            self.log.warning(f"Image URL rejected, retrying with inline data: {e}")
            return self._run_responses(client, model, prompt, self._inline_image(image_url))

    def _run_responses(self, client: Any, model: str, prompt: str, image_ref: str) -> str:
        response = client.responses.create(
            model=model,
            instructions=CURATOR_INSTRUCTIONS,
            input=[{
                "role": "user",
                "content": [
                    {"type": "input_text", "text": prompt},
                    {"type": "input_image", "image_url": image_ref},
                ],
            }],
        )
        return extract_output_text(response)

    def _inline_image(self, image_url: str) -> str:
        """Download the image and return it as a base64 data URL."""
        if self.http is not None:
            response = self.http.get(image_url, timeout=self.timeout)
        else:
            response = httpx.get(image_url, timeout=self.timeout)
        response.raise_for_status()
        mime = response.headers.get("content-type", "image/jpeg").split(";")[0]
        encoded = base64.b64encode(response.content).decode("ascii")
        return f"data:{mime};base64,{encoded}"
