import os
from dataclasses import dataclass, field
from typing import List

# Gemini exposes an OpenAI-compatible surface, so the openai SDK can talk to it directly
GEMINI_OPENAI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"
CANVA_API_BASE = "https://api.canva.com/rest/v1"

DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:8010",
    "http://127.0.0.1:8010",
    "*",
]


def _env(name: str, default: str = "") -> str:
    return (os.getenv(name, default) or "").strip()


def _env_float(name: str, default: float) -> float:
    raw = _env(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    """Process-wide configuration, built once and handed to each component."""

    ai_api_key: str = ""
    ai_model: str = "gemini-flash-latest"
    ai_base_url: str = GEMINI_OPENAI_BASE_URL
    ai_timeout_s: float = 30.0

    canva_client_id: str = ""
    canva_client_secret: str = ""
    canva_access_token: str = ""
    canva_template_id: str = ""
    canva_api_base: str = CANVA_API_BASE

    image_api_key: str = ""
    image_model: str = "dall-e-3"

    http_timeout_s: float = 15.0
    cors_allow_origins: List[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))

    @classmethod
    def from_env(cls) -> "Settings":
        origins_env = _env("CORS_ALLOW_ORIGINS")
        if origins_env:
            origins = [o.strip() for o in origins_env.split(",") if o.strip()]
        else:
            origins = list(DEFAULT_CORS_ORIGINS)
        return cls(
            ai_api_key=_env("GOOGLE_AI_API_KEY"),
            ai_model=_env("AI_MODEL", "gemini-flash-latest"),
            ai_base_url=_env("AI_BASE_URL", GEMINI_OPENAI_BASE_URL),
            ai_timeout_s=_env_float("AI_TIMEOUT_S", 30.0),
            canva_client_id=_env("CANVA_CLIENT_ID"),
            canva_client_secret=_env("CANVA_CLIENT_SECRET"),
            canva_access_token=_env("CANVA_ACCESS_TOKEN"),
            canva_template_id=_env("CANVA_TEMPLATE_ID"),
            canva_api_base=_env("CANVA_API_BASE", CANVA_API_BASE).rstrip("/"),
            image_api_key=_env("OPENAI_API_KEY"),
            image_model=_env("IMAGE_MODEL", "dall-e-3"),
            http_timeout_s=_env_float("HTTP_TIMEOUT_S", 15.0),
            cors_allow_origins=origins,
        )

    @property
    def ai_configured(self) -> bool:
        return bool(self.ai_api_key)

    @property
    def image_generation_configured(self) -> bool:
        return bool(self.image_api_key)
