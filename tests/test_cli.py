"""
Tests for the command line interface.
"""

from unittest.mock import Mock, patch

import click
import pytest
from botocore.exceptions import NoCredentialsError
from click.testing import CliRunner

from cli.__main__ import cli
from cli.cloudformation import parse_parameters
from cloudformation import StackStatus, StackSubmissionError, UpsertAction
from codepipeline import RevisionNotFoundError


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("AWS_REGION", "AWS_DEFAULT_REGION", "AWS_PROFILE", "CFN_RECONCILE_CONFIG"):
        monkeypatch.delenv(name, raising=False)


class TestParseParameters:
    """Test KEY=VALUE parsing."""

    def test_parses_pairs(self):
        """Test pairs become a dict, values may contain '='."""
        result = parse_parameters(None, None, ("Env=dev", "Query=a=b", "Empty="))
        assert result == {"Env": "dev", "Query": "a=b", "Empty": ""}

    def test_rejects_missing_separator(self):
        """Test items without '=' are rejected."""
        with pytest.raises(click.BadParameter):
            parse_parameters(None, None, ("Env",))


class TestStackCommands:
    """Test stack command group."""

    def test_upsert(self, runner, tmp_path):
        """Test upsert passes template and parameters to the manager."""
        template = tmp_path / "template.yaml"
        template.write_text("Resources: {}\n")

        with patch("cli.cloudformation.StackManager") as manager_cls:
            manager = manager_cls.return_value
            manager.upsert_stack.return_value = UpsertAction.UNCHANGED

            result = runner.invoke(
                cli,
                ["stack", "upsert", "-s", "demo-stack", "-t", str(template), "-p", "Env=dev"],
            )

        assert result.exit_code == 0, result.output
        assert "No changes for stack demo-stack" in result.output
        args = manager.upsert_stack.call_args[0]
        assert args[0] == "demo-stack"
        assert args[2] == {"Env": "dev"}

    def test_upsert_region_override(self, runner, tmp_path):
        """Test --region reaches the configuration."""
        template = tmp_path / "template.yaml"
        template.write_text("Resources: {}\n")

        with patch("cli.cloudformation.StackManager") as manager_cls:
            manager_cls.return_value.upsert_stack.return_value = UpsertAction.CREATED
            result = runner.invoke(
                cli,
                ["stack", "upsert", "-s", "demo-stack", "-t", str(template), "--region", "eu-west-1"],
            )

        assert result.exit_code == 0, result.output
        config = manager_cls.call_args[1]["config"]
        assert config.aws_region == "eu-west-1"
        assert config.dry_run is False

    def test_upsert_failure_exits_nonzero(self, runner, tmp_path):
        """Test a submission failure is shown and exits 1."""
        template = tmp_path / "template.yaml"
        template.write_text("Resources: {}\n")

        with patch("cli.cloudformation.StackManager") as manager_cls:
            manager_cls.return_value.upsert_stack.side_effect = StackSubmissionError(
                "demo-stack", "ValidationError", "Parameter X is required"
            )
            result = runner.invoke(
                cli, ["stack", "upsert", "-s", "demo-stack", "-t", str(template)]
            )

        assert result.exit_code == 1
        assert "Parameter X is required" in result.output

    def test_upsert_without_credentials_exits_nonzero(self, runner, tmp_path):
        """Test missing credentials are reported instead of a traceback."""
        template = tmp_path / "template.yaml"
        template.write_text("Resources: {}\n")
        client = Mock()
        client.describe_stacks.side_effect = NoCredentialsError()
        client.create_stack.side_effect = NoCredentialsError()

        with patch("cloudformation.stack_manager.boto3.Session") as session_cls:
            session_cls.return_value.client.return_value = client
            result = runner.invoke(
                cli, ["stack", "upsert", "-s", "demo-stack", "-t", str(template)]
            )

        assert result.exit_code == 1
        assert not isinstance(result.exception, NoCredentialsError)
        assert "Unable to locate credentials" in result.output

    def test_upsert_bad_parameter(self, runner, tmp_path):
        """Test malformed parameters are a usage error."""
        template = tmp_path / "template.yaml"
        template.write_text("Resources: {}\n")

        result = runner.invoke(
            cli, ["stack", "upsert", "-s", "demo-stack", "-t", str(template), "-p", "Env"]
        )

        assert result.exit_code == 2

    def test_invalid_config_file(self, runner, tmp_path):
        """Test an invalid config file exits 2."""
        config_file = tmp_path / "bad.yaml"
        config_file.write_text("waiter_delay: soon\n")

        result = runner.invoke(
            cli, ["--config", str(config_file), "stack", "status", "-s", "demo-stack"]
        )

        assert result.exit_code == 2
        assert "Invalid configuration" in result.output

    def test_status(self, runner):
        """Test status prints the final status."""
        with patch("cli.cloudformation.StackManager") as manager_cls:
            manager_cls.return_value.await_final_status.return_value = StackStatus.UPDATE_COMPLETE
            result = runner.invoke(cli, ["stack", "status", "-s", "demo-stack"])

        assert result.exit_code == 0
        assert "Status: UPDATE_COMPLETE" in result.output

    def test_status_absent(self, runner):
        """Test status of a missing stack."""
        with patch("cli.cloudformation.StackManager") as manager_cls:
            manager_cls.return_value.await_final_status.return_value = None
            result = runner.invoke(cli, ["stack", "status", "-s", "demo-stack"])

        assert result.exit_code == 0
        assert "does not exist" in result.output


class TestPipelineCommands:
    """Test pipeline command group."""

    def test_revision(self, runner):
        """Test revision prints the source revision."""
        with patch("cli.pipeline.PipelineManager") as manager_cls:
            manager_cls.return_value.get_revision.return_value = "abc123"
            result = runner.invoke(cli, ["pipeline", "revision", "-n", "deploy"])

        assert result.exit_code == 0
        assert result.output.strip() == "abc123"

    def test_revision_not_found(self, runner):
        """Test a missing revision exits 1."""
        with patch("cli.pipeline.PipelineManager") as manager_cls:
            manager_cls.return_value.get_revision.side_effect = RevisionNotFoundError("deploy")
            result = runner.invoke(cli, ["pipeline", "revision", "-n", "deploy"])

        assert result.exit_code == 1
        assert "Can not locate revision from CodePipeline: deploy" in result.output

    def test_revision_without_credentials(self, runner):
        """Test transport errors exit 1 with a message."""
        with patch("cli.pipeline.PipelineManager") as manager_cls:
            manager_cls.return_value.get_revision.side_effect = NoCredentialsError()
            result = runner.invoke(cli, ["pipeline", "revision", "-n", "deploy"])

        assert result.exit_code == 1
        assert "Unable to locate credentials" in result.output

    def test_stages(self, runner):
        """Test stages lists actions with their revisions."""
        with patch("cli.pipeline.PipelineManager") as manager_cls:
            manager_cls.return_value.list_state.return_value = [
                {
                    "stageName": "Source",
                    "latestExecution": {"status": "Succeeded"},
                    "actionStates": [
                        {
                            "actionName": "Source",
                            "latestExecution": {"status": "Succeeded"},
                            "currentRevision": {"revisionId": "abc123"},
                        }
                    ],
                }
            ]
            result = runner.invoke(cli, ["pipeline", "stages", "-n", "deploy"])

        assert result.exit_code == 0
        assert "Source: Succeeded" in result.output
        assert "  - Source: Succeeded (abc123)" in result.output
