"""Template autofill against the Canva Connect API.

The gateway only talks to Canva when every credential looks real. In all
other cases, and whenever the job fails, it hands back a canned design URL so
the caller can always show something.
"""
import base64
import json
import logging
from typing import Any, Dict, Optional

import httpx
import pydantic

from .errors import AutofillError, AutofillTimeoutError, ConfigError
from .models import AutofillJob, AutofillOutcome, DesignFields
from .polling import PollExhausted, Sleep, poll_until
from .settings import Settings

logger = logging.getLogger(__name__)

SIMULATED_DESIGN_URL = "https://www.canva.com/design/DAF_simulated/view"

POLL_INTERVAL_S = 1.0
POLL_MAX_ATTEMPTS = 10

PLACEHOLDER_MARKER = "your_"
# Template names the front end renders locally; never sent to Canva
LOCAL_PRESET_TEMPLATES = frozenset({"modern", "minimal", "bold", "classic", "default"})

TERMINAL_STATUSES = ("completed", "failed")


def _looks_real(value: Optional[str]) -> bool:
    value = (value or "").strip()
    return bool(value) and PLACEHOLDER_MARKER not in value.lower()


def resolve_template_id(settings: Settings, requested: Optional[str]) -> str:
    """Pick the template for this request, raising ConfigError if autofill cannot run."""
    if not _looks_real(settings.canva_client_id):
        raise ConfigError("Canva client id is missing or invalid.")
    if not _looks_real(settings.canva_access_token):
        raise ConfigError("Canva Access Token is missing or invalid.")
    requested = (requested or "").strip()
    if requested:
        if requested.lower() in LOCAL_PRESET_TEMPLATES:
            raise ConfigError(f"Template {requested!r} is a local preset, not a Canva brand template.")
        template_id = requested
    else:
        template_id = settings.canva_template_id
    if not _looks_real(template_id):
        raise ConfigError("Canva Brand Template ID is missing or invalid.")
    return template_id.strip()


def build_field_map(fields: DesignFields, image_url: str) -> Dict[str, Dict[str, str]]:
    return {
        "title": {"type": "text", "text": fields.title},
        "quote": {"type": "text", "text": fields.quote},
        "image": {"type": "image", "image_url": image_url},
        "hashtags": {"type": "text", "text": fields.hashtags},
    }


def _error_detail(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text or f"HTTP {resp.status_code}"
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return json.dumps(body)


def _json_body(resp: httpx.Response) -> Any:
    try:
        return resp.json()
    except ValueError as e:
        raise AutofillError(f"Canva API Error: response was not JSON (HTTP {resp.status_code})") from e


def _job_from_payload(payload: Any) -> AutofillJob:
    # Canva wraps the job as {"job": {...}}; accept a bare job object too
    if isinstance(payload, dict) and isinstance(payload.get("job"), dict):
        payload = payload["job"]
    if not isinstance(payload, dict) or not payload.get("id"):
        raise AutofillError(f"Canva API Error: unexpected job payload {payload!r}")
    try:
        return AutofillJob.model_validate(payload)
    except pydantic.ValidationError as e:
        raise AutofillError(f"Canva API Error: malformed job payload {payload!r}") from e


def design_url_from_result(result: Any) -> str:
    """Pull the most useful URL out of a completed job's result."""
    if isinstance(result, str) and result:
        return result
    if not isinstance(result, dict):
        result = {}
    design = result.get("design")
    if not isinstance(design, dict):
        design = {}
    urls = design.get("urls")
    if not isinstance(urls, dict):
        urls = {}
    for candidate in (urls.get("edit_url"), urls.get("view_url"), design.get("url"), result.get("url")):
        if isinstance(candidate, str) and candidate:
            return candidate
    raise AutofillError(f"Canva job completed without a design URL: {json.dumps(result)}")


class CanvaClient:
    """Thin async client for the autofill and OAuth endpoints."""

    def __init__(self, settings: Settings, http: httpx.AsyncClient):
        self.settings = settings
        self.http = http
        self.base_url = settings.canva_api_base.rstrip("/")

    def _headers(self) -> Dict[str, str]:
        token = self.settings.canva_access_token.strip()
        if not _looks_real(token):
            raise ConfigError("Canva Access Token is missing or invalid.")
        return {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }

    async def create_autofill_job(self, template_id: str, data: Dict[str, Any]) -> AutofillJob:
        try:
            resp = await self.http.post(
                f"{self.base_url}/autofills",
                headers=self._headers(),
                json={"brand_template_id": template_id, "data": data},
            )
        except httpx.HTTPError as e:
            raise AutofillError(f"Canva API Error: {e}") from e
        if not resp.is_success:
            raise AutofillError(f"Canva API Error: {_error_detail(resp)}")
        return _job_from_payload(_json_body(resp))

    async def get_autofill_job(self, job_id: str) -> AutofillJob:
        try:
            resp = await self.http.get(f"{self.base_url}/autofills/{job_id}", headers=self._headers())
        except httpx.HTTPError as e:
            raise AutofillError(f"Canva API Error: {e}") from e
        if not resp.is_success:
            raise AutofillError(f"Canva API Error: {_error_detail(resp)}")
        return _job_from_payload(_json_body(resp))

    async def wait_for_result(
        self,
        job_id: str,
        *,
        interval_s: float = POLL_INTERVAL_S,
        max_attempts: int = POLL_MAX_ATTEMPTS,
        sleep: Optional[Sleep] = None,
    ) -> Any:
        try:
            job = await poll_until(
                lambda: self.get_autofill_job(job_id),
                lambda j: j.status in TERMINAL_STATUSES,
                interval_s=interval_s,
                max_attempts=max_attempts,
                sleep=sleep,
            )
        except PollExhausted as e:
            raise AutofillTimeoutError(f"Canva Job timed out after {e.attempts} status checks") from e
        if job.status == "failed":
            raise AutofillError(f"Canva Job Failed: {json.dumps(job.error)}")
        return job.result

    async def exchange_code_for_token(self, code: str, redirect_uri: str) -> Dict[str, Any]:
        """Trade an OAuth authorization code for an access token."""
        if not self.settings.canva_client_id or not self.settings.canva_client_secret:
            raise ConfigError("Canva client id/secret not configured")
        basic = base64.b64encode(
            f"{self.settings.canva_client_id}:{self.settings.canva_client_secret}".encode("utf-8")
        ).decode("ascii")
        try:
            resp = await self.http.post(
                f"{self.base_url}/oauth/token",
                headers={"Authorization": f"Basic {basic}"},
                data={"grant_type": "authorization_code", "code": code, "redirect_uri": redirect_uri},
            )
        except httpx.HTTPError as e:
            raise AutofillError(f"Token Exchange Failed: {e}") from e
        if not resp.is_success:
            raise AutofillError(f"Token Exchange Failed: {_error_detail(resp)}")
        return _json_body(resp)


class AutofillGateway:
    def __init__(
        self,
        settings: Settings,
        http: httpx.AsyncClient,
        *,
        poll_interval_s: float = POLL_INTERVAL_S,
        poll_max_attempts: int = POLL_MAX_ATTEMPTS,
        sleep: Optional[Sleep] = None,
    ):
        self.settings = settings
        self.client = CanvaClient(settings, http)
        self.poll_interval_s = poll_interval_s
        self.poll_max_attempts = poll_max_attempts
        self._sleep = sleep

    def simulated(self, error: Optional[str] = None) -> AutofillOutcome:
        return AutofillOutcome(url=SIMULATED_DESIGN_URL, authoritative=False, error=error)

    def template_for(self, requested: Optional[str]) -> Optional[str]:
        """Template id to autofill, or None when the real path is unavailable."""
        try:
            return resolve_template_id(self.settings, requested)
        except ConfigError as e:
            logger.info(f"Canva autofill not configured, using simulated design: {e}")
            return None

    async def autofill(self, template_id: str, fields: DesignFields, image_url: str) -> AutofillOutcome:
        """Run one job to completion; failures come back as a simulated outcome carrying the error."""
        try:
            job = await self.client.create_autofill_job(template_id, build_field_map(fields, image_url))
            logger.info(f"Canva autofill job {job.id} submitted (status={job.status})")
            if job.status == "completed":
                result = job.result
            else:
                result = await self.client.wait_for_result(
                    job.id,
                    interval_s=self.poll_interval_s,
                    max_attempts=self.poll_max_attempts,
                    sleep=self._sleep,
                )
            return AutofillOutcome(url=design_url_from_result(result), authoritative=True)
        except (AutofillError, ConfigError) as e:
            logger.warning(f"Canva autofill failed, using simulated design: {e}")
            return self.simulated(error=str(e))
        except Exception as e:
            logger.exception(f"Unexpected Canva autofill error, using simulated design: {e}")
            return self.simulated(error=str(e) or e.__class__.__name__)
