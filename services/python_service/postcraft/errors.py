"""Error taxonomy for the generation pipeline.

Only ``ValidationError`` ever reaches the caller as a non-200 status. Image and
autofill errors are absorbed at their own stage; everything else is caught at
the pipeline boundary and turned into a fallback payload.
"""


class PostcraftError(Exception):
    """Base class for pipeline errors"""


class ConfigError(PostcraftError):
    """Raised when a credential is missing or still a placeholder"""


class UpstreamError(PostcraftError):
    """Raised when the AI call fails in a way that is not retried (or retries ran out)"""


class ParseError(PostcraftError):
    """Raised when the model output holds no usable JSON object"""


class ImageFetchError(PostcraftError):
    """Raised when a background image cannot be fetched; always absorbed"""


class AutofillError(PostcraftError):
    """Raised when an autofill job cannot be submitted or ends in failure"""


class AutofillTimeoutError(AutofillError, TimeoutError):
    """Raised when an autofill job is still pending after the last poll"""


class ValidationError(PostcraftError):
    """Raised when the inbound request is unusable"""
