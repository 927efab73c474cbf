"""Configuration loading.

Layers, lowest priority first:

* defaults declared on :class:`~toolgate.config.schema.ToolgateConfig`
* ``$XDG_CONFIG_HOME/toolgate/config.toml`` (``~/.config`` when unset)
* ``toolgate.toml`` in the working directory
* the file named by ``$TOOLGATE_CONFIG``
* the ``path`` passed to :func:`load_config`
* the ``overrides`` passed to :func:`load_config`

The first two files are optional.  A file named by the environment or
by the caller must exist.
"""

from __future__ import annotations

import functools
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from toolgate.core.errors import ConfigError

from .schema import ToolgateConfig

ENV_CONFIG_VAR = "TOOLGATE_CONFIG"


@dataclass(frozen=True, slots=True)
class _Layer:
    """One TOML file taking part in the merge."""

    path: Path
    origin: str
    required: bool = False

    def read(self) -> dict[str, Any]:
        if not self.path.is_file():
            if self.required:
                msg = f"{self.origin} not found: {self.path}"
                raise ConfigError(msg)
            return {}
        try:
            return tomllib.loads(self.path.read_text(encoding="utf-8"))
        except tomllib.TOMLDecodeError as e:
            msg = f"Invalid TOML in {self.path}: {e}"
            raise ConfigError(msg) from e
        except OSError as e:
            msg = f"Cannot read {self.origin} {self.path}: {e}"
            raise ConfigError(msg) from e


def _layers(path: str | Path | None) -> list[_Layer]:
    config_home = os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config"
    layers = [
        _Layer(Path(config_home) / "toolgate" / "config.toml", "User config"),
        _Layer(Path.cwd() / "toolgate.toml", "Project config"),
    ]
    env_path = os.environ.get(ENV_CONFIG_VAR)
    if env_path:
        layers.append(_Layer(Path(env_path), ENV_CONFIG_VAR, required=True))
    if path is not None:
        layers.append(_Layer(Path(path), "Config file", required=True))
    return layers


def merge_tables(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return *base* updated with *override*, descending into nested tables.

    Neither argument is modified.
    """
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = merge_tables(current, value)
        else:
            merged[key] = value
    return merged


def load_config(
    path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> ToolgateConfig:
    """Build a validated :class:`ToolgateConfig` from every layer.

    The model API key falls back to the environment variable named by
    ``model.api_key_env`` when no key is configured.

    Raises:
        ConfigError: On a missing required file, unreadable or invalid
            TOML, or a value the schema rejects.
    """
    tables = [layer.read() for layer in _layers(path)]
    if overrides:
        tables.append(overrides)
    data = functools.reduce(merge_tables, tables, {})

    try:
        config = ToolgateConfig.model_validate(data)
    except ValidationError as e:
        msg = f"Configuration validation failed: {e}"
        raise ConfigError(msg) from e

    model = config.model
    if model.api_key is None and model.api_key_env:
        model.api_key = os.environ.get(model.api_key_env)
    return config
