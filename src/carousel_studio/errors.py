"""Error taxonomy for Carousel Studio.

Every exception raised by the service layer derives from CarouselStudioError
so callers can catch the whole family in one place.

AI CONTEXT:
-----------
Propagation policy:
- ValidationError, AuthorizationError, NotFoundError: surfaced to the caller
  immediately, never retried.
- ProviderError with retryable=True (timeouts, rate limits): retried with
  backoff at the provider boundary, then treated as terminal.
- ProviderError with retryable=False (content policy, configuration,
  unknown): terminal for the current generation; the orchestrator records
  the reason in result_data and marks the record failed.
- PersistenceError: surfaced to the caller; the store is authoritative.
"""

from __future__ import annotations

from typing import Any


class CarouselStudioError(Exception):
    """Base class for all Carousel Studio errors."""

    pass


class AuthorizationError(CarouselStudioError):
    """Caller does not own the resource."""

    def __init__(self, resource: str, resource_id: str, owner_id: str):
        self.resource = resource
        self.resource_id = resource_id
        self.owner_id = owner_id
        super().__init__(f"Not authorized to access {resource} {resource_id}")


class NotFoundError(CarouselStudioError):
    """Identifier does not resolve to a stored record."""

    def __init__(self, resource: str, resource_id: str):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource.capitalize()} not found: {resource_id}")


class ValidationError(CarouselStudioError):
    """Missing, malformed or out-of-range input."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.details = details or {}
        super().__init__(message)


class InvalidTransitionError(ValidationError):
    """Status or step change not allowed by the transition table."""

    pass


class PersistenceError(CarouselStudioError):
    """Store unreachable or write failed."""

    pass


class ExportError(CarouselStudioError):
    """Rendering or combining an export failed."""

    pass


# =============================================================================
# PROVIDER ERRORS
# =============================================================================

class ProviderError(CarouselStudioError):
    """Failure reported by (or while talking to) an AI vendor."""

    retryable: bool = False

    def __init__(self, provider: str, message: str, retryable: bool | None = None):
        self.provider = provider
        self.message = message
        if retryable is not None:
            self.retryable = retryable
        super().__init__(f"{provider}: {message}")

    @property
    def error_type(self) -> str:
        """Short machine-readable name stored in result_data."""
        return _ERROR_TYPE_NAMES.get(type(self), "provider_error")


class ProviderTimeoutError(ProviderError):
    """Provider did not answer within the configured upper bound."""

    retryable = True


class RateLimitedError(ProviderError):
    """Provider rejected the call because of quota or rate limits."""

    retryable = True


class ContentPolicyViolationError(ProviderError):
    """Provider refused the prompt on safety grounds."""

    pass


class ProviderConfigurationError(ProviderError):
    """Missing key, bad credentials or unknown provider name."""

    pass


class UnknownProviderError(ProviderError):
    """Provider failure that fits no other category."""

    pass


_ERROR_TYPE_NAMES: dict[type, str] = {
    ProviderError: "provider_error",
    ProviderTimeoutError: "timeout",
    RateLimitedError: "rate_limited",
    ContentPolicyViolationError: "content_policy_violation",
    ProviderConfigurationError: "configuration_error",
    UnknownProviderError: "unknown",
}
