#!/usr/bin/env python3
"""
CloudFormation stack commands.
"""

import sys
from typing import Dict, Optional, Tuple

import click
from botocore.exceptions import BotoCoreError

from cloudformation import StackError, StackManager, UpsertAction

from .common import load_cli_config

ACTION_MESSAGES = {
    UpsertAction.CREATED: "✅ Stack {stack} created",
    UpsertAction.UPDATED: "✅ Update submitted for stack {stack}",
    UpsertAction.UNCHANGED: "ℹ️  No changes for stack {stack}",
    UpsertAction.DRY_RUN: "📄 Dry run: template for {stack} written to {path}",
}


def parse_parameters(
    ctx: Optional[click.Context], param: Optional[click.Parameter], values: Tuple[str, ...]
) -> Dict[str, str]:
    """Parse repeated KEY=VALUE options into a dict."""
    parameters: Dict[str, str] = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected KEY=VALUE, got '{item}'")
        parameters[key] = value
    return parameters


def _build_manager(ctx: click.Context, **overrides) -> StackManager:
    return StackManager(config=load_cli_config(ctx, **overrides))


@click.group()
def main() -> None:
    """CloudFormation stack management commands."""
    pass


@main.command()
@click.option("--stack-name", "-s", required=True, help="CloudFormation stack name")
@click.option(
    "--template-file",
    "-t",
    required=True,
    type=click.File("rb"),
    help="Template file ('-' for stdin)",
)
@click.option(
    "--parameter",
    "-p",
    "parameters",
    multiple=True,
    callback=parse_parameters,
    help="Template parameter as KEY=VALUE (repeatable)",
)
@click.option("--region", help="AWS region")
@click.option("--profile", help="AWS profile to use")
@click.option("--dry-run", is_flag=True, help="Write the template instead of deploying")
@click.pass_context
def upsert(ctx, stack_name, template_file, parameters, region, profile, dry_run) -> None:
    """Create or update a CloudFormation stack."""
    manager = _build_manager(
        ctx, aws_region=region, aws_profile=profile, dry_run=dry_run or None
    )

    try:
        action = manager.upsert_stack(stack_name, template_file, parameters)
    except (StackError, BotoCoreError) as e:
        click.echo(f"❌ Failed to upsert stack {stack_name}: {e}", err=True)
        sys.exit(1)

    path = manager.config.get_dry_run_path(stack_name)
    click.echo(ACTION_MESSAGES[action].format(stack=stack_name, path=path))


@main.command()
@click.option("--stack-name", "-s", required=True, help="CloudFormation stack name")
@click.option("--region", help="AWS region")
@click.option("--profile", help="AWS profile to use")
@click.pass_context
def status(ctx, stack_name, region, profile) -> None:
    """Wait for a stack to settle and show its final status."""
    manager = _build_manager(ctx, aws_region=region, aws_profile=profile)

    try:
        final_status = manager.await_final_status(stack_name)
    except (StackError, BotoCoreError) as e:
        click.echo(f"❌ {e}", err=True)
        sys.exit(1)

    if final_status is None:
        click.echo(f"Stack {stack_name} does not exist")
    else:
        click.echo(f"Stack: {stack_name}")
        click.echo(f"Status: {final_status.value}")
