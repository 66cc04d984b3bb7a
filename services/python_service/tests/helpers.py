"""Test doubles shared across the suite."""

import json
from typing import Callable, List, Optional

import httpx

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-image-body"

DESIGN_JSON = {
    "title": "AI Rising",
    "quote": "AI changes everything",
    "imageDescription": "neural network lights",
    "hashtags": "#AI #Future #Tech",
    "colorScheme": "#111111,#222222,#333333",
}

ARTICLE = (
    "Artificial intelligence is transforming how newsrooms, marketers and designers "
    "turn long-form writing into shareable visuals."
)

DESIGN_REPLY = "Here is your design:\n```json\n" + json.dumps(DESIGN_JSON) + "\n```\nEnjoy!"


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self.requests: List[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)

    def paths(self, host: Optional[str] = None) -> List[str]:
        return [r.url.path for r in self.requests if host is None or r.url.host == host]


def image_response(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, headers={"Content-Type": "image/png"}, content=PNG_BYTES)


class FakeAI:
    """Stands in for DesignTextClient."""

    model = "fake-model"

    def __init__(self, text: str = "", error: Optional[Exception] = None):
        self.text = text
        self.error = error
        self.prompts: List[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.text


async def no_sleep(_seconds: float) -> None:
    return None
