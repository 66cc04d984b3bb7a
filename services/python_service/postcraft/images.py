import base64
import logging
import re
from typing import Optional, Tuple
from urllib.parse import quote

import httpx
from openai import AsyncOpenAI

from .errors import ImageFetchError
from .settings import Settings

logger = logging.getLogger(__name__)

FALLBACK_IMAGE_PATH = "/static/fallback-bg.svg"

STOCK_IMAGE_URL = "https://source.unsplash.com/1200x630/?{keywords}"
PLACEHOLDER_IMAGE_URL = "https://loremflickr.com/1200/630/{keywords}"

DEFAULT_STOCK_KEYWORDS = "abstract technology"
DEFAULT_PLACEHOLDER_KEYWORDS = "abstract,digital"


def stock_keywords(description: str) -> str:
    """First two words of the description, comma-joined and URL-encoded."""
    words = [w for w in (description or "").split(" ") if w]
    if not words:
        words = DEFAULT_STOCK_KEYWORDS.split(" ")
    return quote(",".join(words[:2]), safe="")


def placeholder_keywords(description: str) -> str:
    """Up to three words longer than three letters, punctuation stripped, comma-joined."""
    cleaned = re.sub(r"[^\w\s]", "", description or "")
    words = [w for w in cleaned.split() if len(w) > 3][:3]
    return ",".join(words) or DEFAULT_PLACEHOLDER_KEYWORDS


async def fetch_image(http: httpx.AsyncClient, url: str) -> Tuple[bytes, str]:
    """Fetch one image, returning (bytes, content type).

    Raises ImageFetchError on transport failures, non-2xx statuses and
    payloads that are not ``image/*``.
    """
    try:
        resp = await http.get(url, follow_redirects=True)
    except httpx.HTTPError as e:
        raise ImageFetchError(f"Image fetch failed for {url}: {e}") from e
    if resp.status_code < 200 or resp.status_code >= 300:
        raise ImageFetchError(f"Image fetch for {url} returned HTTP {resp.status_code}")
    content_type = resp.headers.get("Content-Type", "")
    if not content_type.startswith("image/"):
        raise ImageFetchError(f"Image fetch for {url} returned non-image content type {content_type!r}")
    return resp.content, content_type


def to_data_url(data: bytes, content_type: str) -> str:
    b64 = base64.b64encode(data).decode("ascii")
    return f"data:{content_type};base64,{b64}"


async def resolve_background(http: httpx.AsyncClient, image_description: str) -> str:
    """Stock photo for the description as an inline data URL, or the bundled fallback path.

    Makes exactly one fetch attempt and never raises.
    """
    url = STOCK_IMAGE_URL.format(keywords=stock_keywords(image_description))
    try:
        data, content_type = await fetch_image(http, url)
    except ImageFetchError as e:
        logger.warning(f"Failed to proxy background image, using local fallback: {e}")
        return FALLBACK_IMAGE_PATH
    return to_data_url(data, content_type)


class ImageGenerator:
    """Produces a public background URL for template slots.

    With an image-generation key the Images API is asked for a URL; without
    one (or when that call fails) a keyword placeholder-image URL stands in.
    """

    def __init__(self, settings: Settings, client: Optional[AsyncOpenAI] = None):
        self.settings = settings
        self._client = client
        if self._client is None and settings.image_generation_configured:
            self._client = AsyncOpenAI(api_key=settings.image_api_key, timeout=60, max_retries=0)

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.close()

    def placeholder_url(self, prompt: str) -> str:
        return PLACEHOLDER_IMAGE_URL.format(keywords=placeholder_keywords(prompt))

    async def generate(self, prompt: str) -> str:
        logger.info(f"Generating background image for prompt: {prompt}")
        if self._client is None:
            return self.placeholder_url(prompt)
        try:
            resp = await self._client.images.generate(
                model=self.settings.image_model,
                prompt=prompt,
                size="1792x1024",
                response_format="url",
            )
            url = getattr(resp.data[0], "url", None)
            if url:
                return url
            logger.warning("Images API returned no url; using placeholder image")
        except Exception as e:
            logger.warning(f"Image generation failed for model={self.settings.image_model}: {e}")
        return self.placeholder_url(prompt)
