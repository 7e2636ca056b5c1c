"""
Stack upserts against moto's CloudFormation backend.
"""

import pytest
from moto import mock_aws
from troposphere import Parameter, Ref, Tags, Template
from troposphere.s3 import Bucket

from cloudformation import (
    RecordingObserver,
    StackEventType,
    StackManager,
    StackStatus,
    UpsertAction,
)
from config import ReconcilerConfig


def build_template() -> str:
    """Template with one parameterised bucket."""
    template = Template()
    env = template.add_parameter(Parameter("Env", Type="String"))
    template.add_resource(
        Bucket(
            "ArtifactBucket",
            BucketName="demo-stack-artifacts",
            Tags=Tags(env=Ref(env)),
        )
    )
    return template.to_json()


@pytest.fixture
def aws_credentials(monkeypatch):
    """Fake credentials so boto3 never reaches for real ones."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")


@mock_aws
def test_upsert_creates_then_updates(aws_credentials) -> None:
    """Test a new stack is created, a changed parameter updates and a repeat is a no-op."""
    manager = StackManager(
        config=ReconcilerConfig(aws_region="us-east-1"), observer=RecordingObserver()
    )
    template = build_template()

    assert manager.await_final_status("demo-stack") is None

    action = manager.upsert_stack("demo-stack", template, {"Env": "dev"})
    assert action is UpsertAction.CREATED
    assert manager.await_final_status("demo-stack") is StackStatus.CREATE_COMPLETE

    stack = manager.cloudformation.describe_stacks(StackName="demo-stack")["Stacks"][0]
    parameters = {p["ParameterKey"]: p["ParameterValue"] for p in stack["Parameters"]}
    assert parameters == {"Env": "dev"}

    action = manager.upsert_stack("demo-stack", template, {"Env": "prod"})
    assert action is UpsertAction.UPDATED

    action = manager.upsert_stack("demo-stack", template, {"Env": "prod"})
    assert action is UpsertAction.UNCHANGED
    assert StackEventType.NO_CHANGES in manager.observer.types()
