"""
GitHub REST Request Client.

Every outbound call passes through the response cache. Live calls that fail
with a rate limit or quota error are retried with exponential backoff:

- primary rate limit (HTTP 403, "rate limit" in the message): 30s, 60s, 120s
- secondary/endpoint quota exhaustion: 60s, 120s, 240s

Any other error is raised to the caller immediately.
"""

import asyncio
import string
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Tuple
from urllib.parse import quote

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from config import logger
from exceptions import (
    PrimaryRateLimitError,
    QuotaExhaustedError,
    RateLimitError,
    RequestError,
    RetriesExhaustedError,
)
from storage.response_cache import MISS, ResponseCache

USER_AGENT = "pullscope"
QUOTA_MARKERS = ("secondary rate limit", "quota")


def split_params(endpoint: str, params: Mapping[str, Any]) -> Tuple[str, Dict[str, Any]]:
    """Expand ``{name}`` placeholders of an endpoint template.

    Args:
        endpoint (str): Endpoint template such as ``/repos/{owner}/{repo}/pulls``.
        params (Mapping[str, Any]): Path and query parameters.

    Returns:
        Tuple[str, Dict[str, Any]]: The concrete path and the remaining query parameters.

    Raises:
        ValueError: If a placeholder has no matching parameter.
    """
    names = {field for _, field, _, _ in string.Formatter().parse(endpoint) if field}
    missing = names - set(params)
    if missing:
        raise ValueError(f"Missing path parameters for {endpoint}: {sorted(missing)}")
    path = endpoint.format(**{name: quote(str(params[name]), safe="") for name in names})
    query = {k: v for k, v in params.items() if k not in names}
    return path, query


def classify_error(status_code: int, message: str) -> RequestError:
    """Map an error response onto the pipeline's request error types."""
    lowered = message.lower()
    if status_code in (403, 429) and any(marker in lowered for marker in QUOTA_MARKERS):
        return QuotaExhaustedError(message, status_code)
    if status_code == 403 and "rate limit" in lowered:
        return PrimaryRateLimitError(message, status_code)
    if status_code == 429:
        return QuotaExhaustedError(message, status_code)
    return RequestError(message, status_code)


class GitHubClient:
    """
    Cached, rate-limit aware transport for the GitHub REST API.

    Attributes:
        cache (ResponseCache): Response cache consulted before any live call.
        force_cache (bool): Serve only from the cache.
        max_retries (int): Retry cap for rate limit and quota errors.
    """

    def __init__(
        self,
        token: str,
        cache: ResponseCache,
        *,
        base_url: str = "https://api.github.com",
        force_cache: bool = False,
        timeout: float = 60.0,
        max_retries: int = 3,
        rate_limit_backoff: float = 30,
        quota_backoff: float = 60,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize the client.

        Args:
            token (str): Bearer token.
            cache (ResponseCache): Response cache.
            base_url (str): API base URL.
            force_cache (bool): Disallow network fallback on cache misses.
            timeout (float): Per-request timeout in seconds.
            max_retries (int): Retry cap for rate limit and quota errors.
            rate_limit_backoff (float): First delay for primary rate limits.
            quota_backoff (float): First delay for secondary quotas.
            transport (Optional[httpx.AsyncBaseTransport]): Custom httpx transport.
            sleep (Callable[[float], Awaitable[None]]): Coroutine used to wait
                between retries.
        """
        self.cache = cache
        self.force_cache = force_cache
        self.max_retries = max_retries
        self._sleep = sleep
        self._waits = {
            PrimaryRateLimitError: wait_exponential(multiplier=rate_limit_backoff),
            QuotaExhaustedError: wait_exponential(multiplier=quota_backoff),
        }
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": USER_AGENT,
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._http = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    def _backoff(self, retry_state: RetryCallState) -> float:
        error = retry_state.outcome.exception()
        for error_type, wait in self._waits.items():
            if isinstance(error, error_type):
                return wait(retry_state)
        return 0

    def _log_backoff(self, retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception()
        logger.warning(
            {
                "message": "Rate limited, backing off",
                "error_type": type(error).__name__,
                "error": str(error),
                "attempt": retry_state.attempt_number,
                "wait_seconds": retry_state.next_action.sleep,
            }
        )

    async def request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Mapping[str, Any]] = None,
        ttl_days: float = 7,
    ) -> Any:
        """Perform a cached API request.

        The cache is consulted before every attempt, so a retry can be served by
        an entry a concurrent request wrote in the meantime.

        Args:
            method (str): HTTP method.
            endpoint (str): Endpoint template with ``{name}`` placeholders.
            params (Optional[Mapping[str, Any]]): Path and query parameters.
            ttl_days (float): Maximum age of a usable cache entry.

        Returns:
            Any: Decoded JSON response body.

        Raises:
            ForcedCacheMissError: In forced-cache mode when no entry exists.
            RetriesExhaustedError: When rate limit retries are used up.
            RequestError: For any other API or transport failure.
        """
        params = dict(params or {})
        key = self.cache.key(method, endpoint, params)

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_retries + 1),
            wait=self._backoff,
            retry=retry_if_exception_type(RateLimitError),
            before_sleep=self._log_backoff,
            sleep=self._sleep,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    cached = self.cache.get(key, ttl_days, force=self.force_cache)
                    if cached is not MISS:
                        return cached
                    body = await self._send(method, endpoint, params)
                    self.cache.put(key, body)
                    return body
        except RetryError as e:
            last_error = e.last_attempt.exception()
            raise RetriesExhaustedError(
                f"Retries exhausted: {last_error}",
                getattr(last_error, "status_code", None),
                details={"endpoint": endpoint, "params": params},
            ) from last_error

    async def _send(self, method: str, endpoint: str, params: Dict[str, Any]) -> Any:
        path, query = split_params(endpoint, params)
        try:
            response = await self._http.request(method, path, params=query)
        except httpx.HTTPError as e:
            raise RequestError(f"{method} {path} failed: {e}") from e

        if response.status_code >= 400:
            raise classify_error(response.status_code, self._error_message(response))

        try:
            return response.json()
        except ValueError as e:
            raise RequestError(
                f"{method} {path} returned invalid JSON", response.status_code
            ) from e

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text[:300]
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        return response.text[:300]
