import logging
import re
from typing import Optional

import openai
from openai import AsyncOpenAI

from .errors import ConfigError, UpstreamError
from .polling import Sleep, retry_with_backoff
from .settings import Settings

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3
BASE_DELAY_S = 1.0

_TRANSIENT_PATTERN = re.compile(r"ECONNRESET|fetch failed|connection reset|connection error", re.IGNORECASE)


def is_transient(exc: BaseException) -> bool:
    """Network-level failures are retried; quota, auth and bad-request errors are not."""
    if isinstance(exc, openai.APIStatusError):
        return False
    if isinstance(exc, openai.APIConnectionError):
        return True
    return bool(_TRANSIENT_PATTERN.search(str(exc)))


class DesignTextClient:
    """Sends prompts to the generative-language API and returns the raw text."""

    def __init__(self, settings: Settings, client: Optional[AsyncOpenAI] = None, *, sleep: Optional[Sleep] = None):
        self.settings = settings
        self._sleep = sleep
        self._client = client
        if self._client is None and settings.ai_configured:
            # SDK-level retries are off; retry policy lives in generate()
            self._client = AsyncOpenAI(
                api_key=settings.ai_api_key,
                base_url=settings.ai_base_url,
                timeout=settings.ai_timeout_s,
                max_retries=0,
            )

    @property
    def model(self) -> str:
        return self.settings.ai_model

    async def _complete_once(self, prompt: str) -> str:
        response = await self._client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
        )
        content = response.choices[0].message.content
        return (content or "").strip()

    async def generate(self, prompt: str) -> str:
        if self._client is None:
            raise ConfigError("Google AI API key not configured")
        try:
            return await retry_with_backoff(
                lambda: self._complete_once(prompt),
                should_retry=is_transient,
                max_attempts=MAX_ATTEMPTS,
                base_delay_s=BASE_DELAY_S,
                sleep=self._sleep,
            )
        except Exception as e:
            logger.warning(f"AI request failed: {e}")
            raise UpstreamError(str(e) or e.__class__.__name__) from e

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.close()
