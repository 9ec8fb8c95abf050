from .deploy import (
    AuthorEntry,
    CommentEvent,
    DeployCommand,
    DeploymentRequest,
    DeploymentStatusEvent,
    DispatchOutcome,
    DispatchStatus,
    PullRequestHead,
    WorkflowRun,
    utc_now,
)

__all__ = [
    "AuthorEntry",
    "CommentEvent",
    "DeployCommand",
    "DeploymentRequest",
    "DeploymentStatusEvent",
    "DispatchOutcome",
    "DispatchStatus",
    "PullRequestHead",
    "WorkflowRun",
    "utc_now",
]
