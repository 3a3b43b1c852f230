"""Vendor error classification and retry policy.

Raw vendor exceptions (httpx, openai, agno, asyncio timeouts) are mapped to
the ProviderError taxonomy at the provider boundary. Only retryable errors
(timeouts, rate limits, transient server errors) are retried.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

import httpx
import openai
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from ..errors import (
    ContentPolicyViolationError,
    ProviderConfigurationError,
    ProviderError,
    ProviderTimeoutError,
    RateLimitedError,
    UnknownProviderError,
)

_logger = logging.getLogger("ai_calls")

T = TypeVar("T")

_CONTENT_POLICY_MARKERS = ("content policy", "content_policy", "safety", "nsfw", "moderation")
_RATE_LIMIT_MARKERS = ("rate limit", "rate_limit", "quota", "too many requests")
_CONFIGURATION_MARKERS = ("api key", "api_key", "unauthorized", "invalid key")


def _matches(text: str, markers: tuple[str, ...]) -> bool:
    lowered = text.lower()
    return any(marker in lowered for marker in markers)


def _classify_status(provider: str, status: int, body: str) -> ProviderError:
    message = f"HTTP {status}: {body[:200]}"
    if status == 429:
        return RateLimitedError(provider, message)
    if status in (401, 403):
        return ProviderConfigurationError(provider, message)
    if status in (408, 504):
        return ProviderTimeoutError(provider, message)
    if _matches(body, _CONTENT_POLICY_MARKERS):
        return ContentPolicyViolationError(provider, message)
    if status >= 500:
        return UnknownProviderError(provider, message, retryable=True)
    return UnknownProviderError(provider, message)


def classify_provider_error(provider: str, error: BaseException) -> ProviderError:
    """Map any exception raised by a vendor call to the provider taxonomy.

    Args:
        provider: Provider name for the error message.
        error: The raw exception.

    Returns:
        A ProviderError subclass. ProviderErrors are returned unchanged.
    """
    if isinstance(error, ProviderError):
        return error

    if isinstance(error, (asyncio.TimeoutError, TimeoutError, httpx.TimeoutException)):
        return ProviderTimeoutError(provider, f"request timed out ({type(error).__name__})")

    if isinstance(error, openai.APITimeoutError):
        return ProviderTimeoutError(provider, str(error))
    if isinstance(error, openai.RateLimitError):
        return RateLimitedError(provider, str(error))
    if isinstance(error, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return ProviderConfigurationError(provider, str(error))
    if isinstance(error, openai.BadRequestError):
        code = getattr(error, "code", None) or ""
        if code == "content_policy_violation" or _matches(str(error), _CONTENT_POLICY_MARKERS):
            return ContentPolicyViolationError(provider, str(error))
        return UnknownProviderError(provider, str(error))
    if isinstance(error, openai.APIConnectionError):
        return UnknownProviderError(provider, str(error), retryable=True)

    if isinstance(error, httpx.HTTPStatusError):
        return _classify_status(provider, error.response.status_code, error.response.text)
    if isinstance(error, httpx.TransportError):
        return UnknownProviderError(provider, str(error), retryable=True)

    text = str(error)
    if _matches(text, _RATE_LIMIT_MARKERS):
        return RateLimitedError(provider, text)
    if _matches(text, _CONTENT_POLICY_MARKERS):
        return ContentPolicyViolationError(provider, text)
    if _matches(text, _CONFIGURATION_MARKERS):
        return ProviderConfigurationError(provider, text)
    return UnknownProviderError(provider, text or type(error).__name__)


def is_retryable(error: BaseException) -> bool:
    return isinstance(error, ProviderError) and error.retryable


async def call_with_retry(
    func: Callable[[], Awaitable[T]],
    max_attempts: int,
    delay_seconds: float,
    max_delay_seconds: float = 30.0,
) -> T:
    """Run a provider call, retrying retryable ProviderErrors with backoff.

    Args:
        func: Zero-argument coroutine factory. It must raise ProviderError
            subclasses (classify first).
        max_attempts: Total attempts including the first.
        delay_seconds: Backoff multiplier; 0 disables waiting.
        max_delay_seconds: Upper bound on a single wait.

    Returns:
        The call's result.

    Raises:
        ProviderError: The last error once attempts are exhausted, or the
            first non-retryable error.
    """
    async for attempt in AsyncRetrying(
        stop=stop_after_attempt(max(1, max_attempts)),
        wait=wait_exponential(multiplier=delay_seconds, max=max_delay_seconds),
        retry=retry_if_exception(is_retryable),
        before_sleep=before_sleep_log(_logger, logging.WARNING),
        reraise=True,
    ):
        with attempt:
            return await func()
    raise RuntimeError("unreachable")  # pragma: no cover
