"""
Errors raised by stack management, plus classification of
backend ``ClientError`` responses.
"""

from enum import Enum
from typing import Optional

from botocore.exceptions import BotoCoreError, ClientError

NO_UPDATES_CODE = "ValidationError"
NO_UPDATES_MESSAGE = "No updates are to be performed."


class BackendErrorKind(Enum):
    """Structured kind of a CloudFormation client error.

    Only NO_UPDATES changes control flow in the upsert path. The other kinds
    label ``StackSubmissionError.kind`` so callers can tell a missing
    capability from throttling or a lost connection without parsing messages.
    """

    NO_UPDATES = "no_updates"
    NOT_FOUND = "not_found"
    ALREADY_EXISTS = "already_exists"
    ACCESS_DENIED = "access_denied"
    VALIDATION = "validation"
    THROTTLED = "throttled"
    TRANSPORT = "transport"
    OTHER = "other"


_CODE_KINDS = {
    "AlreadyExistsException": BackendErrorKind.ALREADY_EXISTS,
    "AccessDenied": BackendErrorKind.ACCESS_DENIED,
    "AccessDeniedException": BackendErrorKind.ACCESS_DENIED,
    "InsufficientCapabilitiesException": BackendErrorKind.ACCESS_DENIED,
    "Throttling": BackendErrorKind.THROTTLED,
    "ThrottlingException": BackendErrorKind.THROTTLED,
}


def error_code(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Code", "")


def error_message(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Message", "")


def classify_client_error(error: ClientError) -> BackendErrorKind:
    """Map a ClientError to a BackendErrorKind.

    Only an exact ``ValidationError`` / "No updates are to be performed."
    pair is a no-op; other validation errors stay failures.
    """
    code = error_code(error)
    message = error_message(error)

    if code == NO_UPDATES_CODE:
        if message == NO_UPDATES_MESSAGE:
            return BackendErrorKind.NO_UPDATES
        if "does not exist" in message:
            return BackendErrorKind.NOT_FOUND
        return BackendErrorKind.VALIDATION

    return _CODE_KINDS.get(code, BackendErrorKind.OTHER)


class StackError(Exception):
    """Base exception for stack reconciliation errors."""

    pass


class StackSubmissionError(StackError):
    """A create or update request was rejected by CloudFormation."""

    def __init__(
        self,
        stack_name: str,
        code: str,
        message: str,
        kind: BackendErrorKind = BackendErrorKind.OTHER,
    ) -> None:
        self.stack_name = stack_name
        self.code = code
        self.message = message
        self.kind = kind
        super().__init__(f"{code}: {message}" if code else message)

    @classmethod
    def from_client_error(
        cls, stack_name: str, error: ClientError
    ) -> "StackSubmissionError":
        return cls(
            stack_name=stack_name,
            code=error_code(error),
            message=error_message(error),
            kind=classify_client_error(error),
        )

    @classmethod
    def from_botocore_error(
        cls, stack_name: str, error: BotoCoreError
    ) -> "StackSubmissionError":
        """The request never got a response, e.g. no credentials or no route."""
        return cls(
            stack_name=stack_name,
            code="",
            message=str(error),
            kind=BackendErrorKind.TRANSPORT,
        )


class WaitObservationFailed(StackError):  # noqa: N818
    """A waiter failed and the stack never reached an actionable state."""

    def __init__(
        self,
        stack_name: str,
        waiter_name: str,
        reason: str,
        status: Optional[str] = None,
    ) -> None:
        self.stack_name = stack_name
        self.waiter_name = waiter_name
        self.reason = reason
        self.status = status
        detail = f"Waiter {waiter_name} failed for stack {stack_name}: {reason}"
        if status:
            detail += f" (current status: {status})"
        super().__init__(detail)


class UnknownStackStatusError(StackError):
    """CloudFormation reported a status missing from the status table."""

    def __init__(self, stack_name: str, status: str) -> None:
        self.stack_name = stack_name
        self.status = status
        super().__init__(f"Stack {stack_name} has unrecognised status: {status}")

