"""Main CLI application.

Click commands for toolgate: tools, reconcile, serve.
"""

from __future__ import annotations

import asyncio
import json as json_mod
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import click

from toolgate import __version__
from toolgate.config.loader import load_config
from toolgate.core.errors import ConfigError, ToolgateError
from toolgate.core.log import configure_logging

if TYPE_CHECKING:
    from toolgate.config.schema import ToolgateConfig
    from toolgate.providers.base import ChatModel
    from toolgate.stream import StreamEvent
    from toolgate.tools.registry import ToolRegistry
    from toolgate.transcript.models import Message


# ── Helpers ──────────────────────────────────────────────────────


def _error(msg: str) -> None:
    """Print an error message to stderr and exit."""
    click.echo(f"Error: {msg}", err=True)
    sys.exit(1)


def _load_config(config_path: str | None) -> ToolgateConfig:
    """Load config with user-friendly error handling."""
    try:
        config = load_config(path=config_path)
    except ConfigError as e:
        _error(str(e))
        raise  # unreachable, keeps mypy happy
    configure_logging(config.logging)
    return config


def _setup_tools() -> ToolRegistry:
    """Build the registry of built-in tools."""
    from toolgate.tools.builtin import build_default_registry

    return build_default_registry()


def _setup_model(config: ToolgateConfig) -> ChatModel | None:
    """Instantiate the chat model from config, or None without credentials."""
    model_config = config.model
    if model_config.provider != "openai":
        click.echo(f"Unsupported model provider: {model_config.provider}", err=True)
        return None
    if model_config.api_key is None:
        return None

    from toolgate.providers.openai import OpenAIChatModel

    return OpenAIChatModel(
        model_config.model_id,
        api_key=model_config.api_key,
        base_url=model_config.base_url,
        temperature=model_config.temperature,
        max_tokens=model_config.max_tokens,
    )


# ── CLI group ────────────────────────────────────────────────────


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="toolgate")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True),
    default=None,
    help="Path to config file.",
)
@click.pass_context
def cli(ctx: click.Context, config_path: str | None) -> None:
    """toolgate - Human-in-the-loop tool call reconciliation.

    Run confirmed tool calls, refuse denied ones, stream the results.
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# ── tools ────────────────────────────────────────────────────────


@cli.command()
@click.pass_context
def tools(ctx: click.Context) -> None:
    """List registered tools and which need confirmation."""
    from toolgate.cli.display import ToolgateDisplay

    _load_config(ctx.obj["config_path"])
    registry = _setup_tools()
    ToolgateDisplay().show_tools(registry.list_tools())


# ── reconcile ────────────────────────────────────────────────────


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--approve",
    "approve_ids",
    multiple=True,
    help="Approve the pending tool call with this id before reconciling.",
)
@click.option(
    "--deny",
    "deny_ids",
    multiple=True,
    help="Deny the pending tool call with this id before reconciling.",
)
@click.option(
    "--output",
    type=click.Path(dir_okay=False),
    default=None,
    help="Write the reconciled transcript here instead of stdout.",
)
@click.option("--quiet", is_flag=True, default=False, help="Do not print events.")
@click.pass_context
def reconcile(
    ctx: click.Context,
    path: str,
    approve_ids: tuple[str, ...],
    deny_ids: tuple[str, ...],
    output: str | None,
    quiet: bool,
) -> None:
    """Resolve approved and denied tool calls in a JSON transcript.

    PATH holds either a list of messages or an object with a
    ``messages`` key, in the chat wire format.
    """
    from pydantic import ValidationError

    from toolgate.transcript.models import parse_transcript

    _load_config(ctx.obj["config_path"])

    try:
        raw = json_mod.loads(Path(path).read_text(encoding="utf-8"))
    except json_mod.JSONDecodeError as e:
        _error(f"Invalid JSON in {path}: {e}")
        return
    if isinstance(raw, dict):
        raw = raw.get("messages", [])
    try:
        messages = parse_transcript(raw)
    except ValidationError as e:
        _error(f"Invalid transcript in {path}: {e}")
        return

    try:
        messages, events = asyncio.run(
            _reconcile_async(messages, approve_ids, deny_ids)
        )
    except KeyError as e:
        _error(str(e.args[0]) if e.args else str(e))
        return
    except ToolgateError as e:
        _error(str(e))
        return

    if not quiet:
        from rich.console import Console

        from toolgate.cli.display import ToolgateDisplay

        ToolgateDisplay(Console(stderr=True)).show_events(events)

    from toolgate.transcript.models import dump_transcript

    text = json_mod.dumps(dump_transcript(messages), indent=2)
    if output:
        Path(output).write_text(text + "\n", encoding="utf-8")
        click.echo(f"Wrote {len(messages)} messages to {output}", err=True)
    else:
        click.echo(text)


async def _reconcile_async(
    messages: list[Message],
    approve_ids: tuple[str, ...],
    deny_ids: tuple[str, ...],
) -> tuple[list[Message], list[StreamEvent]]:
    """Apply command-line verdicts, then reconcile the last message."""
    from toolgate.approval import Verdict, record_verdict
    from toolgate.reconcile import process_tool_calls
    from toolgate.session import ChatSession
    from toolgate.stream import EventLog

    for call_id in approve_ids:
        messages = record_verdict(messages, call_id, Verdict.APPROVED)
    for call_id in deny_ids:
        messages = record_verdict(messages, call_id, Verdict.DENIED)

    registry = _setup_tools()
    log = EventLog()
    session = ChatSession(messages=messages)
    result = await process_tool_calls(
        messages,
        writer=log,
        executions=registry.execution_table(),
        session=session,
    )
    return result, log.events


# ── serve ────────────────────────────────────────────────────────


@cli.command()
@click.option("--host", default=None, help="Host to bind to (overrides config).")
@click.option(
    "--port", type=int, default=None, help="Port to bind to (overrides config)."
)
@click.option(
    "--reload", is_flag=True, default=False, help="Enable auto-reload for development."
)
@click.pass_context
def serve(ctx: click.Context, host: str | None, port: int | None, reload: bool) -> None:
    """Start the chat API server."""
    import uvicorn

    from toolgate.api.app import create_app

    config = _load_config(ctx.obj["config_path"])

    effective_host = host or config.api.host
    effective_port = port or config.api.port

    if config.model.api_key is None:
        click.echo(
            f"Warning: {config.model.api_key_env or 'API key'} is not set; "
            "/api/chat will return 500.",
            err=True,
        )
    click.echo(f"Serving on http://{effective_host}:{effective_port}")

    app = create_app(config)
    uvicorn.run(
        app,
        host=effective_host,
        port=effective_port,
        reload=reload,
    )
