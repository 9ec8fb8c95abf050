from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from models import CommentEvent, DeploymentStatusEvent


class Account(BaseModel):
    login: str
    type: Optional[str] = None


class Repository(BaseModel):
    name: str
    owner: Account


class Installation(BaseModel):
    id: int


class WebhookPayload(BaseModel):
    action: Optional[str] = None
    repository: Repository
    installation: Optional[Installation] = None

    @property
    def installation_id(self) -> Optional[int]:
        return self.installation.id if self.installation else None


class Issue(BaseModel):
    number: int
    pull_request: Optional[Dict[str, Any]] = Field(
        default=None, description="Present only when the issue is a pull request."
    )


class Comment(BaseModel):
    id: Optional[int] = None
    body: str = ""
    user: Account


class IssueCommentPayload(WebhookPayload):
    issue: Issue
    comment: Comment

    def to_event(self) -> CommentEvent:
        return CommentEvent(
            owner=self.repository.owner.login,
            repo=self.repository.name,
            issue_number=self.issue.number,
            is_pull_request=self.issue.pull_request is not None,
            body=self.comment.body,
            author=self.comment.user.login,
        )


class Deployment(BaseModel):
    id: int
    ref: str
    sha: str
    environment: str
    creator: Optional[Account] = None


class DeploymentStatusBody(BaseModel):
    state: str
    environment_url: Optional[str] = None


class DeploymentStatusPayload(WebhookPayload):
    deployment: Deployment
    deployment_status: DeploymentStatusBody

    def to_event(self) -> DeploymentStatusEvent:
        return DeploymentStatusEvent(
            owner=self.repository.owner.login,
            repo=self.repository.name,
            deployment_id=self.deployment.id,
            ref=self.deployment.ref,
            sha=self.deployment.sha,
            environment=self.deployment.environment,
            state=self.deployment_status.state,
            environment_url=self.deployment_status.environment_url or None,
            creator_login=self.deployment.creator.login if self.deployment.creator else None,
        )


class PullRequestRef(BaseModel):
    number: int


class PullRequestPayload(WebhookPayload):
    pull_request: PullRequestRef


class WebhookAck(BaseModel):
    event: str = Field(..., description="Value of the X-GitHub-Event header.")
    action: Optional[str] = Field(default=None, description="Payload action, when present.")
    status: str = Field(..., description="queued, ignored or duplicate.")
    delivery: Optional[str] = Field(default=None, description="X-GitHub-Delivery id.")
