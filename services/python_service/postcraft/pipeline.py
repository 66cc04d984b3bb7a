"""The generation pipeline: prompt -> AI -> extraction -> background -> autofill -> result.

``DesignPipeline.run`` never raises for upstream trouble. It returns
``Success(GenerationResult)`` or ``Failure(PipelineFailure)``; turning a
failure into the always-200 fallback payload is left to the HTTP layer.
"""
import dataclasses
import logging
from typing import Optional

import httpx

from .ai_client import DesignTextClient
from .autofill import AutofillGateway
from .composer import compose_result
from .errors import ValidationError
from .extractor import extract_design_fields
from .images import ImageGenerator, resolve_background
from .models import (
    MIN_ARTICLE_CHARS,
    DesignFields,
    Failure,
    GenerationRequest,
    GenerationResult,
    OverrideData,
    Result,
    Success,
)
from .prompts import build_design_prompt
from .settings import Settings

logger = logging.getLogger(__name__)

ARTICLE_TOO_SHORT = f"Please provide article text (at least {MIN_ARTICLE_CHARS} characters)"


@dataclasses.dataclass(frozen=True)
class PipelineFailure:
    error: Exception

    @property
    def message(self) -> str:
        return str(self.error) or self.error.__class__.__name__


def validate_request(request: GenerationRequest) -> str:
    """Return the article text, raising ValidationError if it is too short."""
    article = request.article_text
    if not isinstance(article, str) or len(article.strip()) < MIN_ARTICLE_CHARS:
        raise ValidationError(ARTICLE_TOO_SHORT)
    return article


def apply_overrides(fields: DesignFields, overrides: Optional[OverrideData]) -> DesignFields:
    if overrides is None:
        return fields
    changes = {
        name: value
        for name, value in (("title", overrides.title), ("quote", overrides.quote), ("hashtags", overrides.hashtags))
        if isinstance(value, str) and value.strip()
    }
    return fields.model_copy(update=changes) if changes else fields


def _override_image(overrides: Optional[OverrideData]) -> str:
    if overrides is None or not overrides.image_url:
        return ""
    return overrides.image_url.strip()


class DesignPipeline:
    def __init__(
        self,
        settings: Settings,
        http: httpx.AsyncClient,
        *,
        ai: Optional[DesignTextClient] = None,
        images: Optional[ImageGenerator] = None,
        autofill: Optional[AutofillGateway] = None,
    ):
        self.settings = settings
        self.http = http
        self.ai = ai or DesignTextClient(settings)
        self.images = images or ImageGenerator(settings)
        self.autofill = autofill or AutofillGateway(settings, http)

    async def run(self, request: GenerationRequest) -> Result[GenerationResult, PipelineFailure]:
        try:
            return Success(await self._run(request))
        except Exception as e:
            logger.error(f"Generation error: {e}")
            return Failure(PipelineFailure(e))

    async def _run(self, request: GenerationRequest) -> GenerationResult:
        article = validate_request(request)
        raw_text = await self.ai.generate(build_design_prompt(article))
        fields = apply_overrides(extract_design_fields(raw_text), request.override_data)

        override_image = _override_image(request.override_data)
        image_url = override_image or await resolve_background(self.http, fields.image_description)

        template_id = self.autofill.template_for(request.template_id)
        if template_id is None:
            outcome = self.autofill.simulated()
        else:
            # Canva needs a public URL for the image slot, not an inline data URL
            if override_image.startswith(("http://", "https://")):
                slot_image = override_image
            else:
                slot_image = await self.images.generate(fields.image_description)
            outcome = await self.autofill.autofill(template_id, fields, slot_image)

        return compose_result(fields, image_url, outcome, raw_text)

    async def aclose(self) -> None:
        """Close the SDK clients; the shared http client belongs to the caller."""
        await self.ai.aclose()
        await self.images.aclose()
