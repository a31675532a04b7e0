"""Exception hierarchy for the ingestion pipeline."""

from typing import Optional


class PipelineError(Exception):
    """Base exception for all pipeline errors"""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(PipelineError):
    """Raised when startup configuration or arguments are invalid"""

    pass


class RequestError(PipelineError):
    """Terminal failure of a single API request"""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[dict] = None,
    ):
        self.status_code = status_code
        super().__init__(message, details)


class RateLimitError(RequestError):
    """Transient quota error; the request client retries it with backoff"""

    pass


class PrimaryRateLimitError(RateLimitError):
    """HTTP 403 caused by the primary (hourly) rate limit"""

    pass


class QuotaExhaustedError(RateLimitError):
    """Secondary or endpoint-specific quota exhaustion"""

    pass


class RetriesExhaustedError(RequestError):
    """Raised once the retry cap for quota errors is exceeded"""

    pass


class ForcedCacheMissError(RequestError):
    """Raised when forced-cache mode finds no entry for a request"""

    pass


class MalformedPayloadError(RequestError):
    """Raised when a response body does not match the expected wire shape"""

    pass
