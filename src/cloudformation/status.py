"""
CloudFormation stack status classification.

Every status string CloudFormation can report is listed in ``StackStatus`` and
mapped in ``STATUS_TABLE`` to its phase and, for transitional statuses, to the
operation whose waiter resolves it. Adding a status is a single table edit;
the module refuses to import if the enum and the table drift apart.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional


class StatusPhase(Enum):
    """Whether a backend operation is still running on the stack."""

    TRANSITIONAL = "transitional"
    TERMINAL = "terminal"


class StackOperation(Enum):
    """Operation family of a transitional status, keyed to its boto3 waiter."""

    CREATE = "stack_create_complete"
    UPDATE = "stack_update_complete"
    DELETE = "stack_delete_complete"
    IMPORT = "stack_import_complete"

    @property
    def waiter_name(self) -> str:
        return self.value


class StackStatus(Enum):
    """Raw CloudFormation stack statuses."""

    CREATE_IN_PROGRESS = "CREATE_IN_PROGRESS"
    CREATE_FAILED = "CREATE_FAILED"
    CREATE_COMPLETE = "CREATE_COMPLETE"
    ROLLBACK_IN_PROGRESS = "ROLLBACK_IN_PROGRESS"
    ROLLBACK_FAILED = "ROLLBACK_FAILED"
    ROLLBACK_COMPLETE = "ROLLBACK_COMPLETE"
    DELETE_IN_PROGRESS = "DELETE_IN_PROGRESS"
    DELETE_FAILED = "DELETE_FAILED"
    DELETE_COMPLETE = "DELETE_COMPLETE"
    UPDATE_IN_PROGRESS = "UPDATE_IN_PROGRESS"
    UPDATE_COMPLETE_CLEANUP_IN_PROGRESS = "UPDATE_COMPLETE_CLEANUP_IN_PROGRESS"
    UPDATE_COMPLETE = "UPDATE_COMPLETE"
    UPDATE_FAILED = "UPDATE_FAILED"
    UPDATE_ROLLBACK_IN_PROGRESS = "UPDATE_ROLLBACK_IN_PROGRESS"
    UPDATE_ROLLBACK_FAILED = "UPDATE_ROLLBACK_FAILED"
    UPDATE_ROLLBACK_COMPLETE_CLEANUP_IN_PROGRESS = (
        "UPDATE_ROLLBACK_COMPLETE_CLEANUP_IN_PROGRESS"
    )
    UPDATE_ROLLBACK_COMPLETE = "UPDATE_ROLLBACK_COMPLETE"
    REVIEW_IN_PROGRESS = "REVIEW_IN_PROGRESS"
    IMPORT_IN_PROGRESS = "IMPORT_IN_PROGRESS"
    IMPORT_COMPLETE = "IMPORT_COMPLETE"
    IMPORT_ROLLBACK_IN_PROGRESS = "IMPORT_ROLLBACK_IN_PROGRESS"
    IMPORT_ROLLBACK_FAILED = "IMPORT_ROLLBACK_FAILED"
    IMPORT_ROLLBACK_COMPLETE = "IMPORT_ROLLBACK_COMPLETE"

    @property
    def phase(self) -> StatusPhase:
        return STATUS_TABLE[self].phase

    @property
    def operation(self) -> Optional[StackOperation]:
        return STATUS_TABLE[self].operation

    @property
    def is_transitional(self) -> bool:
        return self.phase is StatusPhase.TRANSITIONAL

    @property
    def is_terminal(self) -> bool:
        return self.phase is StatusPhase.TERMINAL

    @classmethod
    def parse(cls, raw: str) -> Optional["StackStatus"]:
        """Look up a raw status string, returning None if it is unknown."""
        try:
            return cls(raw)
        except ValueError:
            return None


@dataclass(frozen=True)
class StatusClass:
    """Classification of one status: its phase and waiter family."""

    phase: StatusPhase
    operation: Optional[StackOperation] = None


_TERMINAL = StatusClass(StatusPhase.TERMINAL)


def _waits_on(operation: StackOperation) -> StatusClass:
    return StatusClass(StatusPhase.TRANSITIONAL, operation)


STATUS_TABLE: Dict[StackStatus, StatusClass] = {
    # create family, rollback of a failed create included
    StackStatus.REVIEW_IN_PROGRESS: _waits_on(StackOperation.CREATE),
    StackStatus.CREATE_IN_PROGRESS: _waits_on(StackOperation.CREATE),
    StackStatus.ROLLBACK_IN_PROGRESS: _waits_on(StackOperation.CREATE),
    StackStatus.CREATE_FAILED: _TERMINAL,
    StackStatus.CREATE_COMPLETE: _TERMINAL,
    StackStatus.ROLLBACK_FAILED: _TERMINAL,
    StackStatus.ROLLBACK_COMPLETE: _TERMINAL,
    # delete
    StackStatus.DELETE_IN_PROGRESS: _waits_on(StackOperation.DELETE),
    StackStatus.DELETE_FAILED: _TERMINAL,
    StackStatus.DELETE_COMPLETE: _TERMINAL,
    # update family, both cleanup sub-phases included
    StackStatus.UPDATE_IN_PROGRESS: _waits_on(StackOperation.UPDATE),
    StackStatus.UPDATE_COMPLETE_CLEANUP_IN_PROGRESS: _waits_on(StackOperation.UPDATE),
    StackStatus.UPDATE_ROLLBACK_IN_PROGRESS: _waits_on(StackOperation.UPDATE),
    StackStatus.UPDATE_ROLLBACK_COMPLETE_CLEANUP_IN_PROGRESS: _waits_on(
        StackOperation.UPDATE
    ),
    StackStatus.UPDATE_COMPLETE: _TERMINAL,
    StackStatus.UPDATE_FAILED: _TERMINAL,
    StackStatus.UPDATE_ROLLBACK_FAILED: _TERMINAL,
    StackStatus.UPDATE_ROLLBACK_COMPLETE: _TERMINAL,
    # resource import
    StackStatus.IMPORT_IN_PROGRESS: _waits_on(StackOperation.IMPORT),
    StackStatus.IMPORT_ROLLBACK_IN_PROGRESS: _waits_on(StackOperation.IMPORT),
    StackStatus.IMPORT_COMPLETE: _TERMINAL,
    StackStatus.IMPORT_ROLLBACK_FAILED: _TERMINAL,
    StackStatus.IMPORT_ROLLBACK_COMPLETE: _TERMINAL,
}

_unmapped = set(StackStatus) - set(STATUS_TABLE)
if _unmapped:
    raise RuntimeError(
        "Stack statuses missing from STATUS_TABLE: "
        + ", ".join(sorted(s.value for s in _unmapped))
    )


def transitional_statuses() -> list[StackStatus]:
    """All statuses that require waiting before the stack can be mutated."""
    return [s for s in StackStatus if s.is_transitional]


def terminal_statuses() -> list[StackStatus]:
    """All statuses with no backend operation in flight."""
    return [s for s in StackStatus if s.is_terminal]
