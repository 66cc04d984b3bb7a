import dataclasses
from typing import Any, Dict, Generic, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

T = TypeVar("T")
E = TypeVar("E")

MIN_ARTICLE_CHARS = 20

DEFAULT_TITLE = "AI Generated Design"
DEFAULT_QUOTE = "Innovation meets creativity"
DEFAULT_IMAGE_DESCRIPTION = "Abstract digital art"
DEFAULT_HASHTAGS = "#AI #Design #Future"
DEFAULT_COLOR_SCHEME = "#4F46E5,#FBBF24,#FFFFFF"

DEFAULT_BACKGROUND_COLOR = "#4F46E5"
DEFAULT_ACCENT_COLOR = "#FBBF24"
DEFAULT_TEXT_COLOR = "#FFFFFF"


# Wire models use camelCase on the wire and snake_case in Python
class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class OverrideData(WireModel):
    title: Optional[str] = None
    quote: Optional[str] = None
    hashtags: Optional[str] = None
    image_url: Optional[str] = None

    @field_validator("title", "quote", "hashtags", "image_url", mode="before")
    @classmethod
    def _drop_non_text(cls, v):
        return v if isinstance(v, str) else None


class GenerationRequest(WireModel):
    """Body of POST /generate. Mistyped optional fields read as absent; only the article decides a 400."""

    article_text: Any = None
    template_id: Optional[str] = None
    override_data: Optional[OverrideData] = None

    @field_validator("template_id", mode="before")
    @classmethod
    def _template_text(cls, v):
        return v if isinstance(v, str) else None

    @field_validator("override_data", mode="before")
    @classmethod
    def _override_object(cls, v):
        return v if isinstance(v, (dict, OverrideData)) else None


def _text_or_default(value: Any, default: str) -> str:
    if isinstance(value, str) and value != "":
        return value
    return default


class DesignFields(WireModel):
    """The five fields the model is asked for.

    Every field falls back to a static default when absent, empty or not a
    string. Validation is the single normalization point, and re-validating an
    already normalized instance is a no-op.
    """

    title: str = DEFAULT_TITLE
    quote: str = DEFAULT_QUOTE
    image_description: str = DEFAULT_IMAGE_DESCRIPTION
    hashtags: str = DEFAULT_HASHTAGS
    color_scheme: str = DEFAULT_COLOR_SCHEME

    @field_validator("title", mode="before")
    @classmethod
    def _title(cls, v):
        return _text_or_default(v, DEFAULT_TITLE)

    @field_validator("quote", mode="before")
    @classmethod
    def _quote(cls, v):
        return _text_or_default(v, DEFAULT_QUOTE)

    @field_validator("image_description", mode="before")
    @classmethod
    def _image_description(cls, v):
        return _text_or_default(v, DEFAULT_IMAGE_DESCRIPTION)

    @field_validator("hashtags", mode="before")
    @classmethod
    def _hashtags(cls, v):
        return _text_or_default(v, DEFAULT_HASHTAGS)

    @field_validator("color_scheme", mode="before")
    @classmethod
    def _color_scheme(cls, v):
        return _text_or_default(v, DEFAULT_COLOR_SCHEME)

    @classmethod
    def parse_with_defaults(cls, raw: Any) -> "DesignFields":
        """Build from a decoded JSON value; anything that is not an object yields all defaults."""
        if isinstance(raw, DesignFields):
            raw = raw.model_dump(by_alias=True)
        if not isinstance(raw, dict):
            raw = {}
        known = {k: raw.get(k) for k in ("title", "quote", "imageDescription", "hashtags", "colorScheme")}
        return cls.model_validate(known)


class TemplateColors(WireModel):
    background_color: str = DEFAULT_BACKGROUND_COLOR
    accent_color: str = DEFAULT_ACCENT_COLOR
    text_color: str = DEFAULT_TEXT_COLOR


_JOB_STATUS_ALIASES = {"in_progress": "pending", "success": "completed"}


class AutofillJob(BaseModel):
    id: str
    status: str = "pending"  # pending | completed | failed
    result: Optional[Any] = None
    error: Optional[Any] = None

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, v):
        v = str(v or "pending").strip().lower()
        return _JOB_STATUS_ALIASES.get(v, v)


class AutofillOutcome(BaseModel):
    url: str
    # False when the URL is the canned stand-in rather than a real design
    authoritative: bool = False
    error: Optional[str] = None


class GenerationResult(WireModel):
    success: bool
    title: str
    quote: str
    hashtags: str
    image_prompt: str
    image_url: str
    template: TemplateColors = Field(default_factory=TemplateColors)
    canva_url: Optional[str] = None
    is_real_canva: Optional[bool] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    raw_response: Optional[str] = None

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class HistoryEntry(GenerationResult):
    id: str
    timestamp: str


@dataclasses.dataclass(frozen=True)
class Success(Generic[T]):
    """A successful pipeline outcome."""

    value: T


@dataclasses.dataclass(frozen=True)
class Failure(Generic[E]):
    """A pipeline failure, carrying the error that stopped it."""

    error: E


Result = Union[Success[T], Failure[E]]
