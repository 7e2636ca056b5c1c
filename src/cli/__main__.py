#!/usr/bin/env python3
"""Main CLI entry point for stack reconciliation."""

import logging

import click

from .cloudformation import main as cf_commands
from .pipeline import main as pipeline_commands


@click.group()
@click.version_option(package_name="cfn-stack-reconciler")
@click.option(
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False),
    envvar="CFN_RECONCILE_CONFIG",
    help="YAML configuration file",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx, config_file, verbose) -> None:
    """Reconcile CloudFormation stacks and query deployment pipelines."""
    ctx.ensure_object(dict)
    ctx.obj["config_file"] = config_file
    ctx.obj["verbose"] = verbose

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


cli.add_command(cf_commands, name="stack")
cli.add_command(pipeline_commands, name="pipeline")


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
