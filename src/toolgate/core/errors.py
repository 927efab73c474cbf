"""Exception hierarchy for toolgate.

Every module imports from here. The hierarchy is:

    ToolgateError
    ├── ProviderError(provider_id)
    │   ├── ProviderAuthError
    │   ├── ProviderRateLimitError(retry_after)
    │   ├── ProviderTimeoutError
    │   ├── ProviderOverloadedError
    │   └── ModelNotFoundError
    ├── ToolError
    │   ├── ToolNotFoundError(tool_name)
    │   └── ToolRegistrationError
    ├── MissingContextError
    └── ConfigError
"""

from __future__ import annotations


class ToolgateError(Exception):
    """Base exception for all toolgate errors."""


# ─── Provider Errors ──────────────────────────────────────────


class ProviderError(ToolgateError):
    """Base for inference provider errors."""

    def __init__(self, provider_id: str, message: str) -> None:
        self.provider_id = provider_id
        super().__init__(f"[{provider_id}] {message}")


class ProviderAuthError(ProviderError):
    """Invalid or missing API key."""


class ProviderRateLimitError(ProviderError):
    """Rate limit exceeded. Includes retry_after if available."""

    def __init__(self, provider_id: str, retry_after: float | None = None) -> None:
        self.retry_after = retry_after
        msg = "Rate limited"
        if retry_after is not None:
            msg += f" (retry after {retry_after}s)"
        super().__init__(provider_id, msg)


class ProviderTimeoutError(ProviderError):
    """Model call timed out."""


class ProviderOverloadedError(ProviderError):
    """Provider is overloaded (529, 503)."""


class ModelNotFoundError(ProviderError):
    """Requested model not available from this provider."""


# ─── Tool Errors ──────────────────────────────────────────────


class ToolError(ToolgateError):
    """Base for tool registry errors."""


class ToolNotFoundError(ToolError):
    """No tool registered under the requested name."""

    def __init__(self, tool_name: str) -> None:
        self.tool_name = tool_name
        super().__init__(f"Tool not found: {tool_name}")


class ToolRegistrationError(ToolError):
    """Duplicate name, or registration after the registry was sealed."""


# ─── Request Context Errors ───────────────────────────────────


class MissingContextError(ToolgateError):
    """A tool needed the active chat session and none was supplied.

    Fatal for the request: the streaming response is aborted with an
    error event instead of completing.
    """


# ─── Configuration Errors ─────────────────────────────────────


class ConfigError(ToolgateError):
    """Invalid configuration."""
