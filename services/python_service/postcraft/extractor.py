import json
import logging
from typing import Any, Dict

from .errors import ParseError
from .models import DesignFields

logger = logging.getLogger(__name__)

_decoder = json.JSONDecoder()


def find_json_object(text: str) -> Dict[str, Any]:
    """Decode the JSON object that starts at the first ``{`` in ``text``.

    Decoding stops where that object ends, so trailing prose, a closing code
    fence or a second object are ignored.
    A broken first object is an error; later braces are not tried.
    """
    start = (text or "").find("{")
    if start == -1:
        raise ParseError("Failed to parse AI response as JSON")
    try:
        value, _ = _decoder.raw_decode(text, start)
    except json.JSONDecodeError as e:
        raise ParseError(f"Failed to parse AI response as JSON: {e.msg}") from e
    if not isinstance(value, dict):
        raise ParseError("Failed to parse AI response as JSON")
    return value


def extract_design_fields(raw_text: str) -> DesignFields:
    data = find_json_object(raw_text)
    missing = [k for k in ("title", "quote", "imageDescription", "hashtags", "colorScheme") if not data.get(k)]
    if missing:
        logger.info(f"AI response missing fields {missing}; defaults applied")
    return DesignFields.parse_with_defaults(data)
