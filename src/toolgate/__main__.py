"""Allow ``python -m toolgate``."""

from toolgate.cli.app import cli

cli()
