"""Pydantic models for toolgate configuration."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful assistant that can do various tasks. If the user asks, "
    "then you can also schedule tasks to be executed later. The input may have "
    "a date/time/cron pattern to be input as an object into a scheduler."
)


class ModelConfig(BaseModel):
    """Inference provider settings."""

    model_config = ConfigDict(protected_namespaces=())

    provider: str = "openai"
    model_id: str = "gpt-4o-mini"
    api_key: str | None = None
    api_key_env: str | None = "OPENAI_API_KEY"
    base_url: str | None = None
    temperature: float = 0.7
    max_tokens: int = 4096


class AgentConfig(BaseModel):
    """Chat agent loop settings."""

    max_steps: int = Field(default=10, ge=1)
    system_prompt: str = DEFAULT_SYSTEM_PROMPT


class APIConfig(BaseModel):
    """HTTP server settings."""

    host: str = "127.0.0.1"
    port: int = 8080
    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:5173"])


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    file: str = ""
    structured: bool = False


class ToolgateConfig(BaseModel):
    """Top-level configuration for toolgate."""

    model: ModelConfig = Field(default_factory=ModelConfig)
    agent: AgentConfig = Field(default_factory=AgentConfig)
    api: APIConfig = Field(default_factory=APIConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
