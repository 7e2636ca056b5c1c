"""
Stack lifecycle events and the observers that receive them.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List

logger = logging.getLogger(__name__)


class StackEventType(Enum):
    """Kinds of events emitted while resolving and upserting a stack."""

    DESCRIBE_FAILED = "describe_failed"
    STACK_ABSENT = "stack_absent"
    WAITING = "waiting"
    WAIT_FAILED = "wait_failed"
    STATUS_RESOLVED = "status_resolved"
    CREATING = "creating"
    CREATED = "created"
    WAITING_FOR_EXISTS = "waiting_for_exists"
    UPDATING = "updating"
    UPDATED = "updated"
    NO_CHANGES = "no_changes"
    SUBMISSION_FAILED = "submission_failed"
    DRY_RUN = "dry_run"


@dataclass(frozen=True)
class StackEvent:
    """A single observation about a stack."""

    type: StackEventType
    stack_name: str
    details: Dict[str, Any] = field(default_factory=dict)


class StackEventObserver:
    """Receives stack events. Subclass and override ``notify``."""

    def notify(self, event: StackEvent) -> None:
        pass


_LEVELS = {
    StackEventType.DESCRIBE_FAILED: logging.WARNING,
    StackEventType.WAIT_FAILED: logging.WARNING,
    StackEventType.SUBMISSION_FAILED: logging.ERROR,
    StackEventType.NO_CHANGES: logging.INFO,
    StackEventType.CREATED: logging.INFO,
    StackEventType.UPDATED: logging.INFO,
    StackEventType.DRY_RUN: logging.INFO,
}

_MESSAGES = {
    StackEventType.DESCRIBE_FAILED: "Could not describe stack '{stack}', treating as absent: {details}",
    StackEventType.STACK_ABSENT: "Stack doesn't exist ... stack={stack}",
    StackEventType.WAITING: "Waiting for stack:{stack} to settle ... {details}",
    StackEventType.WAIT_FAILED: "Waiter failed for stack:{stack} ... {details}",
    StackEventType.STATUS_RESOLVED: "Returning final status for stack:{stack} ... {details}",
    StackEventType.CREATING: "Creating stack named '{stack}' ... {details}",
    StackEventType.CREATED: "Stack '{stack}' created",
    StackEventType.WAITING_FOR_EXISTS: "Waiting for stack '{stack}' to exist...",
    StackEventType.UPDATING: "Updating stack named '{stack}' ... {details}",
    StackEventType.UPDATED: "Update submitted for stack '{stack}'",
    StackEventType.NO_CHANGES: "No changes for stack '{stack}'",
    StackEventType.SUBMISSION_FAILED: "Submission failed for stack '{stack}': {details}",
    StackEventType.DRY_RUN: "Dry run for stack '{stack}' ... {details}",
}


class LoggingObserver(StackEventObserver):
    """Writes stack events to a standard library logger."""

    def __init__(self, log: logging.Logger = logger):
        self.log = log

    def notify(self, event: StackEvent) -> None:
        level = _LEVELS.get(event.type, logging.DEBUG)
        if not self.log.isEnabledFor(level):
            return
        details = ", ".join(f"{k}={v}" for k, v in event.details.items())
        message = _MESSAGES[event.type].format(stack=event.stack_name, details=details)
        self.log.log(level, message)


class RecordingObserver(StackEventObserver):
    """Keeps every event in memory, in order."""

    def __init__(self) -> None:
        self.events: List[StackEvent] = []

    def notify(self, event: StackEvent) -> None:
        self.events.append(event)

    def types(self) -> List[StackEventType]:
        return [event.type for event in self.events]

    def of_type(self, event_type: StackEventType) -> List[StackEvent]:
        return [event for event in self.events if event.type is event_type]
