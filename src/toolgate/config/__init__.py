"""Configuration loading and validation."""

from toolgate.config.loader import load_config
from toolgate.config.schema import (
    AgentConfig,
    APIConfig,
    LoggingConfig,
    ModelConfig,
    ToolgateConfig,
)

__all__ = [
    "APIConfig",
    "AgentConfig",
    "LoggingConfig",
    "ModelConfig",
    "ToolgateConfig",
    "load_config",
]
