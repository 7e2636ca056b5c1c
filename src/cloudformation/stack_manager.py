"""
CloudFormation stack management operations.
"""

from enum import Enum
from typing import IO, Any, Dict, List, Mapping, Optional, Union

import boto3
from botocore.exceptions import BotoCoreError, ClientError, WaiterError

from config import ReconcilerConfig

from .events import LoggingObserver, StackEvent, StackEventObserver, StackEventType
from .exceptions import (
    BackendErrorKind,
    StackSubmissionError,
    UnknownStackStatusError,
    WaitObservationFailed,
    classify_client_error,
)
from .status import StackStatus

IAM_CAPABILITIES = ["CAPABILITY_IAM"]

TemplateSource = Union[str, bytes, IO[str], IO[bytes]]


class UpsertAction(Enum):
    """What upsert_stack did. Every value means success."""

    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    DRY_RUN = "dry_run"


def build_stack_parameters(parameters: Optional[Mapping[str, Any]]) -> List[Dict[str, str]]:
    """Convert a parameter mapping to CloudFormation format, sorted by key."""
    if not parameters:
        return []
    return [
        {"ParameterKey": key, "ParameterValue": str(value)}
        for key, value in sorted(parameters.items())
    ]


def read_template_body(template_body: TemplateSource) -> str:
    """Drain a template source into a string."""
    if hasattr(template_body, "read"):
        template_body = template_body.read()
    if isinstance(template_body, bytes):
        return template_body.decode("utf-8")
    return template_body


class StackManager:
    """Drive a CloudFormation stack to a desired template and parameter set."""

    def __init__(
        self,
        region: Optional[str] = None,
        profile: Optional[str] = None,
        config: Optional[ReconcilerConfig] = None,
        observer: Optional[StackEventObserver] = None,
        client: Any = None,
    ):
        """
        Initialize stack manager.

        Args:
            region: AWS region (overrides config)
            profile: AWS profile to use (overrides config)
            config: Reconciler configuration
            observer: Receives stack events (logs them by default)
            client: Pre-built CloudFormation client, skips session creation
        """
        self.config = config or ReconcilerConfig()
        self.region = region or self.config.aws_region
        self.profile = profile or self.config.aws_profile
        self.observer = observer or LoggingObserver()

        if client is None:
            session_args = {"region_name": self.region}
            if self.profile:
                session_args["profile_name"] = self.profile
            session = boto3.Session(**session_args)

            client_args = {}
            if self.config.endpoint_url:
                client_args["endpoint_url"] = self.config.endpoint_url
            client = session.client("cloudformation", **client_args)

        self.cloudformation = client

    def _emit(self, event_type: StackEventType, stack_name: str, **details: Any) -> None:
        self.observer.notify(StackEvent(event_type, stack_name, details))

    def _describe_status(self, stack_name: str) -> Optional[str]:
        """Raw status string of the stack, or None if it can't be found."""
        try:
            response = self.cloudformation.describe_stacks(StackName=stack_name)
        except (ClientError, BotoCoreError) as e:
            self._emit(StackEventType.DESCRIBE_FAILED, stack_name, error=e)
            return None

        stacks = (response or {}).get("Stacks") or []
        if len(stacks) != 1:
            return None
        return stacks[0].get("StackStatus")

    def _parse_status(self, stack_name: str, raw: str) -> StackStatus:
        status = StackStatus.parse(raw)
        if status is None:
            raise UnknownStackStatusError(stack_name, raw)
        return status

    def _wait(self, waiter_name: str, stack_name: str) -> Optional[WaiterError]:
        """Block on a boto3 waiter; return its error instead of raising."""
        kwargs: Dict[str, Any] = {"StackName": stack_name}
        waiter_config = self.config.waiter_config()
        if waiter_config:
            kwargs["WaiterConfig"] = waiter_config

        try:
            self.cloudformation.get_waiter(waiter_name).wait(**kwargs)
        except WaiterError as e:
            self._emit(StackEventType.WAIT_FAILED, stack_name, waiter=waiter_name, error=e)
            return e
        return None

    def get_stack_status(self, stack_name: str) -> Optional[StackStatus]:
        """Get current stack status without waiting. None if absent."""
        raw = self._describe_status(stack_name)
        if raw is None:
            return None
        return self._parse_status(stack_name, raw)

    def await_final_status(self, stack_name: str) -> Optional[StackStatus]:
        """
        Wait for the stack to arrive in a terminal status.

        Args:
            stack_name: Name of the CloudFormation stack

        Returns:
            Terminal status, or None if the stack doesn't exist

        Raises:
            WaitObservationFailed: The waiter failed and the stack is still
                transitional
            UnknownStackStatusError: CloudFormation reported an unmapped status
        """
        status = self.get_stack_status(stack_name)
        if status is None:
            self._emit(StackEventType.STACK_ABSENT, stack_name)
            return None

        if status.is_transitional:
            waiter_name = status.operation.waiter_name
            self._emit(
                StackEventType.WAITING, stack_name, status=status.value, waiter=waiter_name
            )
            wait_error = self._wait(waiter_name, stack_name)

            status = self.get_stack_status(stack_name)
            if status is None:
                self._emit(StackEventType.STACK_ABSENT, stack_name)
                return None
            if status.is_transitional:
                raise WaitObservationFailed(
                    stack_name,
                    waiter_name,
                    str(wait_error) if wait_error else "stack still in progress",
                    status=status.value,
                )

        self._emit(StackEventType.STATUS_RESOLVED, stack_name, status=status.value)
        return status

    def upsert_stack(
        self,
        stack_name: str,
        template_body: TemplateSource,
        parameters: Optional[Mapping[str, Any]] = None,
    ) -> UpsertAction:
        """
        Create the stack if it doesn't exist, otherwise update it.

        An update CloudFormation rejects with "No updates are to be performed."
        is a success (UpsertAction.UNCHANGED). Creates wait only until the
        stack exists; updates return as soon as they are submitted.

        Args:
            stack_name: Name of the CloudFormation stack
            template_body: Template as a string, bytes or readable stream
            parameters: Template parameter values

        Returns:
            The action that was taken

        Raises:
            StackSubmissionError: CloudFormation rejected the create or update
            WaitObservationFailed: The created stack never became visible
        """
        stack_status = self.await_final_status(stack_name)

        body = read_template_body(template_body)
        cfn_parameters = build_stack_parameters(parameters)

        if self.config.dry_run:
            return self._dry_run(stack_name, stack_status, body, cfn_parameters)

        if stack_status is None:
            return self._create_stack(stack_name, body, cfn_parameters)
        return self._update_stack(stack_name, stack_status, body, cfn_parameters)

    def _create_stack(
        self, stack_name: str, body: str, parameters: List[Dict[str, str]]
    ) -> UpsertAction:
        self._emit(StackEventType.CREATING, stack_name, parameters=parameters)
        try:
            self.cloudformation.create_stack(
                StackName=stack_name,
                TemplateBody=body,
                Parameters=parameters,
                Capabilities=IAM_CAPABILITIES,
            )
        except (ClientError, BotoCoreError) as e:
            raise self._submission_failed(stack_name, e) from e

        self._emit(StackEventType.WAITING_FOR_EXISTS, stack_name)
        wait_error = self._wait("stack_exists", stack_name)
        if wait_error is not None:
            raise WaitObservationFailed(stack_name, "stack_exists", str(wait_error))

        self._emit(StackEventType.CREATED, stack_name)
        return UpsertAction.CREATED

    def _update_stack(
        self,
        stack_name: str,
        prior_status: StackStatus,
        body: str,
        parameters: List[Dict[str, str]],
    ) -> UpsertAction:
        self._emit(
            StackEventType.UPDATING,
            stack_name,
            prior_status=prior_status.value,
            parameters=parameters,
        )
        try:
            self.cloudformation.update_stack(
                StackName=stack_name,
                TemplateBody=body,
                Parameters=parameters,
                Capabilities=IAM_CAPABILITIES,
            )
        except ClientError as e:
            if classify_client_error(e) is BackendErrorKind.NO_UPDATES:
                self._emit(StackEventType.NO_CHANGES, stack_name)
                return UpsertAction.UNCHANGED
            raise self._submission_failed(stack_name, e) from e
        except BotoCoreError as e:
            raise self._submission_failed(stack_name, e) from e

        self._emit(StackEventType.UPDATED, stack_name)
        return UpsertAction.UPDATED

    def _submission_failed(
        self, stack_name: str, error: Union[ClientError, BotoCoreError]
    ) -> StackSubmissionError:
        if isinstance(error, ClientError):
            failure = StackSubmissionError.from_client_error(stack_name, error)
        else:
            failure = StackSubmissionError.from_botocore_error(stack_name, error)
        self._emit(
            StackEventType.SUBMISSION_FAILED,
            stack_name,
            code=failure.code,
            message=failure.message,
        )
        return failure

    def _dry_run(
        self,
        stack_name: str,
        stack_status: Optional[StackStatus],
        body: str,
        parameters: List[Dict[str, str]],
    ) -> UpsertAction:
        """Write the template to disk instead of submitting it."""
        path = self.config.get_dry_run_path(stack_name)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(body)

        self._emit(
            StackEventType.DRY_RUN,
            stack_name,
            action="create" if stack_status is None else "update",
            template=str(path),
            parameters=parameters,
        )
        return UpsertAction.DRY_RUN


def new_stack_manager(
    region: Optional[str] = None,
    profile: Optional[str] = None,
    config: Optional[ReconcilerConfig] = None,
    observer: Optional[StackEventObserver] = None,
) -> StackManager:
    """Create a StackManager backed by a fresh boto3 session."""
    return StackManager(region=region, profile=profile, config=config, observer=observer)
