import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import httpx
import openai
from dotenv import load_dotenv
from fastapi import FastAPI, Query, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, Field

from postcraft import __version__
from postcraft.autofill import CanvaClient
from postcraft.composer import fallback_result
from postcraft.errors import AutofillError, ConfigError, UpstreamError, ValidationError
from postcraft.models import Failure, GenerationRequest
from postcraft.pipeline import ARTICLE_TOO_SHORT, DesignPipeline, validate_request
from postcraft.prompts import SELF_CHECK_PROMPT
from postcraft.settings import Settings

# Load environment variables
load_dotenv()

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).resolve().parent / "static"


class TokenExchangeInput(BaseModel):
    code: str
    redirect_uri: str = Field(alias="redirectUri")

    model_config = {"populate_by_name": True}


def _pipeline(request: Request) -> DesignPipeline:
    return request.app.state.pipeline


def create_app(
    settings: Optional[Settings] = None,
    *,
    http: Optional[httpx.AsyncClient] = None,
    pipeline: Optional[DesignPipeline] = None,
) -> FastAPI:
    """Build the service. Tests pass their own http client / pipeline; otherwise they are made at startup."""
    settings = settings or Settings.from_env()
    if not settings.ai_configured:
        logger.warning("GOOGLE_AI_API_KEY not set; every generation will return the fallback design.")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned: Optional[httpx.AsyncClient] = None
        owned_pipeline: Optional[DesignPipeline] = None
        if getattr(app.state, "http", None) is None:
            owned = httpx.AsyncClient(timeout=settings.http_timeout_s)
            app.state.http = owned
        if getattr(app.state, "pipeline", None) is None:
            owned_pipeline = DesignPipeline(settings, app.state.http)
            app.state.pipeline = owned_pipeline
        try:
            yield
        finally:
            if owned_pipeline is not None:
                await owned_pipeline.aclose()
            if owned is not None:
                await owned.aclose()

    app = FastAPI(title="Postcraft Article Designer", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.http = http or (pipeline.http if pipeline is not None else None)
    app.state.pipeline = pipeline

    # CORS middleware: the browser front end calls this API directly.
    # If wildcard is present, set credentials False and pass ["*"] per Starlette rules
    allow_origins = settings.cors_allow_origins
    use_wildcard = "*" in allow_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if use_wildcard else allow_origins,
        allow_credentials=False if use_wildcard else True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Serves the bundled fallback background (/static/fallback-bg.svg)
    app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")

    @app.exception_handler(RequestValidationError)
    async def body_validation_error(request: Request, exc: RequestValidationError):
        # /generate answers an unreadable body the same way as a missing article
        if request.url.path == "/generate":
            return JSONResponse({"error": ARTICLE_TOO_SHORT}, status_code=400)
        return await request_validation_exception_handler(request, exc)

    @app.post("/generate")
    async def generate(payload: GenerationRequest, request: Request):
        """Turn article text into design data. Soft failures still answer 200."""
        try:
            validate_request(payload)
        except ValidationError as e:
            return JSONResponse({"error": str(e)}, status_code=400)

        outcome = await _pipeline(request).run(payload)
        if isinstance(outcome, Failure):
            return JSONResponse(fallback_result(outcome.error.message).to_wire(), status_code=200)
        return outcome.value.to_wire()

    @app.get("/proxy")
    async def proxy(request: Request, url: Optional[str] = Query(default=None)):
        """Stream a remote image through this origin so the canvas export is not tainted."""
        if not url:
            return PlainTextResponse("Missing URL", status_code=400)
        try:
            resp = await request.app.state.http.get(url, follow_redirects=True)
            resp.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error(f"Proxy error: {e}")
            return PlainTextResponse("Error proxying image", status_code=500)
        return Response(
            content=resp.content,
            media_type=resp.headers.get("Content-Type", "image/jpeg"),
            headers={
                "Access-Control-Allow-Origin": "*",
                "Cache-Control": "public, max-age=31536000, immutable",
            },
        )

    @app.get("/test")
    async def ai_self_check(request: Request):
        """Round-trip a fixed prompt through the AI adapter."""
        ai = _pipeline(request).ai
        try:
            text = await ai.generate(SELF_CHECK_PROMPT)
        except (ConfigError, UpstreamError) as e:
            return JSONResponse(
                {
                    "success": False,
                    "error": str(e),
                    "hint": "Check GOOGLE_AI_API_KEY and try AI_MODEL=gemini-2.0-flash",
                },
                status_code=500,
            )
        return {
            "success": True,
            "message": "Google Generative AI is working!",
            "geminiResponse": text,
            "modelUsed": ai.model,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.post("/oauth/canva/token")
    async def canva_token(payload: TokenExchangeInput, request: Request):
        """Exchange a Canva OAuth authorization code for an access token."""
        client = CanvaClient(request.app.state.settings, request.app.state.http)
        try:
            return await client.exchange_code_for_token(payload.code, payload.redirect_uri)
        except ConfigError as e:
            return JSONResponse({"error": str(e)}, status_code=400)
        except AutofillError as e:
            logger.error(f"Canva token exchange failed: {e}")
            return JSONResponse({"error": str(e)}, status_code=502)

    @app.get("/health")
    async def health():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "postcraft-article-designer",
            "version": __version__,
            "ai_configured": settings.ai_configured,
            "ai_model": settings.ai_model,
            "canva_configured": bool(
                settings.canva_client_id and settings.canva_access_token and settings.canva_template_id
            ),
            "image_generation_configured": settings.image_generation_configured,
            "image_model": settings.image_model,
            "openai_sdk_version": getattr(openai, "__version__", "unknown"),
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8010)
