"""
CloudFormation stack reconciliation utilities.
"""

from .events import (
    LoggingObserver,
    RecordingObserver,
    StackEvent,
    StackEventObserver,
    StackEventType,
)
from .exceptions import (
    BackendErrorKind,
    StackError,
    StackSubmissionError,
    UnknownStackStatusError,
    WaitObservationFailed,
    classify_client_error,
)
from .stack_manager import StackManager, UpsertAction, new_stack_manager
from .status import StackOperation, StackStatus, StatusPhase

__all__ = [
    "StackManager",
    "UpsertAction",
    "new_stack_manager",
    "StackStatus",
    "StatusPhase",
    "StackOperation",
    "StackEvent",
    "StackEventType",
    "StackEventObserver",
    "LoggingObserver",
    "RecordingObserver",
    "BackendErrorKind",
    "classify_client_error",
    "StackError",
    "StackSubmissionError",
    "WaitObservationFailed",
    "UnknownStackStatusError",
]
