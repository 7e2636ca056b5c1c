#!/usr/bin/env python3
"""
CodePipeline query commands.
"""

import json
import sys

import click
from botocore.exceptions import BotoCoreError, ClientError

from codepipeline import PipelineManager, RevisionNotFoundError

from .common import load_cli_config


def _build_manager(ctx: click.Context, **overrides) -> PipelineManager:
    return PipelineManager(config=load_cli_config(ctx, **overrides))


@click.group()
def main() -> None:
    """CodePipeline query commands."""
    pass


@main.command()
@click.option("--pipeline-name", "-n", required=True, help="CodePipeline name")
@click.option("--region", help="AWS region")
@click.option("--profile", help="AWS profile to use")
@click.pass_context
def revision(ctx, pipeline_name, region, profile) -> None:
    """Show the source revision a pipeline is deploying."""
    manager = _build_manager(ctx, aws_region=region, aws_profile=profile)

    try:
        click.echo(manager.get_revision(pipeline_name))
    except (RevisionNotFoundError, ClientError, BotoCoreError) as e:
        click.echo(f"❌ {e}", err=True)
        sys.exit(1)


@main.command()
@click.option("--pipeline-name", "-n", required=True, help="CodePipeline name")
@click.option("--region", help="AWS region")
@click.option("--profile", help="AWS profile to use")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.pass_context
def stages(ctx, pipeline_name, region, profile, output_json) -> None:
    """List the stage and action states of a pipeline."""
    manager = _build_manager(ctx, aws_region=region, aws_profile=profile)

    try:
        stage_states = manager.list_state(pipeline_name)
    except (ClientError, BotoCoreError) as e:
        click.echo(f"❌ {e}", err=True)
        sys.exit(1)

    if output_json:
        click.echo(json.dumps(stage_states, indent=2, default=str))
        return

    for stage in stage_states:
        latest = stage.get("latestExecution") or {}
        click.echo(f"{stage.get('stageName')}: {latest.get('status', 'unknown')}")
        for action in stage.get("actionStates", []):
            action_status = (action.get("latestExecution") or {}).get("status", "unknown")
            revision_id = (action.get("currentRevision") or {}).get("revisionId")
            line = f"  - {action.get('actionName')}: {action_status}"
            if revision_id:
                line += f" ({revision_id})"
            click.echo(line)
