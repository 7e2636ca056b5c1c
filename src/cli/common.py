"""Helpers shared by the CLI command groups."""

import logging
import sys

import click

from config import ConfigError, ReconcilerConfig, load_config


def load_cli_config(ctx: click.Context, **overrides) -> ReconcilerConfig:
    """Load configuration for a command, exiting with status 2 if it is invalid."""
    options = ctx.obj or {}
    try:
        config = load_config(options.get("config_file"), **overrides)
    except ConfigError as e:
        click.echo(f"❌ {e}", err=True)
        sys.exit(2)

    if not options.get("verbose"):
        logging.getLogger().setLevel(config.log_level)
    return config
