"""Carousel Studio - AI carousel generation and export."""

__version__ = "0.1.0"

from .errors import (
    AuthorizationError,
    CarouselStudioError,
    InvalidTransitionError,
    NotFoundError,
    PersistenceError,
    ProviderError,
    ValidationError,
)
from .settings import Settings, get_settings

__all__ = [
    "__version__",
    "AuthorizationError",
    "CarouselStudioError",
    "InvalidTransitionError",
    "NotFoundError",
    "PersistenceError",
    "ProviderError",
    "Settings",
    "ValidationError",
    "get_settings",
]
