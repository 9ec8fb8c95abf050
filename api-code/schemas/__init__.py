from .webhook import (
    DeploymentStatusPayload,
    IssueCommentPayload,
    PullRequestPayload,
    WebhookAck,
)

__all__ = [
    "DeploymentStatusPayload",
    "IssueCommentPayload",
    "PullRequestPayload",
    "WebhookAck",
]
