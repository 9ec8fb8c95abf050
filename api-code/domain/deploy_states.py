from __future__ import annotations

from enum import Enum


class DeploymentStage(str, Enum):
    IDLE = "idle"
    PARSED = "parsed"
    VALIDATED = "validated"
    REJECTED = "rejected"
    PR_RESOLVED = "pr_resolved"
    DISPATCHING = "dispatching"
    DISPATCH_FAILED = "dispatch_failed"
    RUN_LOCATING = "run_locating"
    RUN_NOT_FOUND = "run_not_found"
    RUN_LOCATED = "run_located"
    COMMENT_UPDATED = "comment_updated"

    @property
    def is_terminal(self) -> bool:
        return self in {
            DeploymentStage.REJECTED,
            DeploymentStage.DISPATCH_FAILED,
            DeploymentStage.RUN_NOT_FOUND,
            DeploymentStage.COMMENT_UPDATED,
        }


ALLOWED_TRANSITIONS: dict[DeploymentStage, frozenset[DeploymentStage]] = {
    DeploymentStage.IDLE: frozenset({DeploymentStage.PARSED}),
    DeploymentStage.PARSED: frozenset({DeploymentStage.VALIDATED, DeploymentStage.REJECTED}),
    DeploymentStage.VALIDATED: frozenset({DeploymentStage.PR_RESOLVED}),
    DeploymentStage.PR_RESOLVED: frozenset({DeploymentStage.DISPATCHING}),
    DeploymentStage.DISPATCHING: frozenset(
        {DeploymentStage.DISPATCH_FAILED, DeploymentStage.RUN_LOCATING}
    ),
    DeploymentStage.RUN_LOCATING: frozenset(
        {DeploymentStage.RUN_NOT_FOUND, DeploymentStage.RUN_LOCATED}
    ),
    DeploymentStage.RUN_LOCATED: frozenset({DeploymentStage.COMMENT_UPDATED}),
}


def is_valid_transition(current: DeploymentStage, new: DeploymentStage) -> bool:
    if current.is_terminal:
        return False
    return new in ALLOWED_TRANSITIONS.get(current, frozenset())


class DeploymentState(str, Enum):
    """Deployment status states reported by GitHub."""

    QUEUED = "queued"
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    SUCCESS = "success"
    FAILURE = "failure"
    ERROR = "error"
    INACTIVE = "inactive"
