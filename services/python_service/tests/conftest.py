"""
Global test configuration: environment isolation and shared settings/HTTP fixtures.
"""

from typing import Callable

import httpx
import pytest

from helpers import RecordingTransport
from postcraft.settings import Settings

SERVICE_ENV_VARS = (
    "GOOGLE_AI_API_KEY",
    "AI_MODEL",
    "AI_BASE_URL",
    "AI_TIMEOUT_S",
    "CANVA_CLIENT_ID",
    "CANVA_CLIENT_SECRET",
    "CANVA_ACCESS_TOKEN",
    "CANVA_TEMPLATE_ID",
    "CANVA_API_BASE",
    "OPENAI_API_KEY",
    "IMAGE_MODEL",
    "HTTP_TIMEOUT_S",
    "CORS_ALLOW_ORIGINS",
)


@pytest.fixture(autouse=True)
def isolate_service_env(monkeypatch):
    """Each test sees only the service environment it sets explicitly."""
    for key in SERVICE_ENV_VARS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def settings() -> Settings:
    return Settings(ai_api_key="test-key")


@pytest.fixture
def canva_settings() -> Settings:
    return Settings(
        ai_api_key="test-key",
        canva_client_id="client-123",
        canva_client_secret="secret-456",
        canva_access_token="token-789",
        canva_template_id="BRAND_TEMPLATE_1",
    )


@pytest.fixture
def make_http():
    """Build an AsyncClient over a request handler; returns (client, transport)."""

    def _make(handler: Callable[[httpx.Request], httpx.Response]):
        transport = RecordingTransport(handler)
        return httpx.AsyncClient(transport=transport), transport

    return _make
