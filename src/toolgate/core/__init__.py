"""Core errors and shared utilities."""

from toolgate.core.errors import (
    ConfigError,
    MissingContextError,
    ModelNotFoundError,
    ProviderAuthError,
    ProviderError,
    ProviderOverloadedError,
    ProviderRateLimitError,
    ProviderTimeoutError,
    ToolError,
    ToolgateError,
    ToolNotFoundError,
    ToolRegistrationError,
)
from toolgate.core.log import configure_logging

__all__ = [
    "ConfigError",
    "MissingContextError",
    "ModelNotFoundError",
    "ProviderAuthError",
    "ProviderError",
    "ProviderOverloadedError",
    "ProviderRateLimitError",
    "ProviderTimeoutError",
    "ToolError",
    "ToolNotFoundError",
    "ToolRegistrationError",
    "ToolgateError",
    "configure_logging",
]
