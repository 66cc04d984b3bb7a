import re
from typing import Optional

from .images import FALLBACK_IMAGE_PATH
from .models import (
    DEFAULT_ACCENT_COLOR,
    DEFAULT_BACKGROUND_COLOR,
    DEFAULT_TEXT_COLOR,
    AutofillOutcome,
    DesignFields,
    GenerationResult,
    TemplateColors,
)

RATE_LIMIT = "RATE_LIMIT"
AI_ERROR = "AI_ERROR"

_RATE_LIMIT_PATTERN = re.compile(r"429|quota|rate limit", re.IGNORECASE)

RAW_PREVIEW_CHARS = 200

FALLBACK_TITLE = "The Future of AI Design"
FALLBACK_QUOTE = "Artificial intelligence is revolutionizing how we create visual content"
FALLBACK_IMAGE_PROMPT = "Futuristic digital art with neural networks"
FALLBACK_HASHTAGS = "#AI #Design #Innovation"


def parse_color_scheme(color_scheme: Optional[str]) -> TemplateColors:
    """Split a comma-separated palette into background/accent/text, defaulting missing slots."""
    colors = [c.strip() for c in (color_scheme or "").split(",")]
    defaults = (DEFAULT_BACKGROUND_COLOR, DEFAULT_ACCENT_COLOR, DEFAULT_TEXT_COLOR)
    picked = [(colors[i] if i < len(colors) and colors[i] else defaults[i]) for i in range(3)]
    return TemplateColors(background_color=picked[0], accent_color=picked[1], text_color=picked[2])


def classify_error(message: str) -> str:
    return RATE_LIMIT if _RATE_LIMIT_PATTERN.search(message or "") else AI_ERROR


def raw_preview(raw_text: str) -> str:
    return raw_text[:RAW_PREVIEW_CHARS] + "..."


def compose_result(
    fields: DesignFields,
    image_url: str,
    autofill: AutofillOutcome,
    raw_text: str = "",
) -> GenerationResult:
    # Autofill failures are cosmetic: the generation still counts as successful
    return GenerationResult(
        success=True,
        title=fields.title,
        quote=fields.quote,
        hashtags=fields.hashtags,
        image_prompt=fields.image_description,
        image_url=image_url or FALLBACK_IMAGE_PATH,
        template=parse_color_scheme(fields.color_scheme),
        canva_url=autofill.url,
        # Simulated designs are reported as real too; autofill.authoritative keeps the distinction
        is_real_canva=True,
        error=autofill.error,
        raw_response=raw_preview(raw_text) if raw_text else None,
    )


def fallback_result(message: str) -> GenerationResult:
    """Complete canned payload returned in place of an error status."""
    code = classify_error(message)
    if code == RATE_LIMIT:
        error = "AI rate limit reached. Using a fallback design."
    else:
        error = "AI generation failed. Using a fallback design."
    return GenerationResult(
        success=False,
        error=error,
        error_code=code,
        title=FALLBACK_TITLE,
        quote=FALLBACK_QUOTE,
        image_prompt=FALLBACK_IMAGE_PROMPT,
        hashtags=FALLBACK_HASHTAGS,
        image_url=FALLBACK_IMAGE_PATH,
        template=TemplateColors(),
    )
