from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from domain.deploy_states import DeploymentStage, DeploymentState, is_valid_transition


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MongoModel(BaseModel):
    """Base Pydantic model with sensible defaults for MongoDB documents."""

    model_config = {
        "populate_by_name": True,
        "use_enum_values": True,
    }


class DeployCommand(BaseModel):
    environment: str = Field(..., description="Lower-cased target environment.")
    is_valid: bool = Field(default=True)


class DeploymentRequest(BaseModel):
    """One deploy comment being handled; lives for a single invocation."""

    owner: str
    repo: str
    pr_number: int
    comment_author: str
    environment: str
    branch_ref: Optional[str] = None
    commit_sha: Optional[str] = None
    trigger_comment_id: Optional[int] = None
    workflow_run_id: Optional[int] = None
    run_url: Optional[str] = None
    stage: DeploymentStage = Field(default=DeploymentStage.IDLE)

    def advance(self, new_stage: DeploymentStage) -> "DeploymentRequest":
        if not is_valid_transition(self.stage, new_stage):
            raise RuntimeError(
                f"invalid deployment stage transition from {self.stage.value} to {new_stage.value}"
            )
        self.stage = new_stage
        return self


class PullRequestHead(BaseModel):
    number: int
    ref: str
    sha: str


class WorkflowRun(BaseModel):
    id: int
    head_branch: Optional[str] = None
    status: Optional[str] = None
    name: Optional[str] = None
    display_title: Optional[str] = None
    html_url: Optional[str] = None
    triggering_actor: Optional[Dict[str, Any]] = None

    @property
    def triggered_by_bot(self) -> bool:
        actor = self.triggering_actor or {}
        if actor.get("type") == "Bot":
            return True
        return str(actor.get("login") or "").endswith("[bot]")

    def mentions(self, token: str) -> bool:
        return any(token in (text or "") for text in (self.display_title, self.name))


class DispatchStatus(str, Enum):
    LOCATED = "located"
    RUN_NOT_FOUND = "run_not_found"
    DISPATCH_FAILED = "dispatch_failed"


class DispatchOutcome(BaseModel):
    status: DispatchStatus
    run_id: Optional[int] = None
    run_url: Optional[str] = None
    reason: Optional[str] = None
    attempts: int = 0
    request_id: Optional[str] = None

    @classmethod
    def located(
        cls, run_id: int, run_url: str, *, attempts: int, request_id: Optional[str] = None
    ) -> "DispatchOutcome":
        return cls(
            status=DispatchStatus.LOCATED,
            run_id=run_id,
            run_url=run_url,
            attempts=attempts,
            request_id=request_id,
        )

    @classmethod
    def not_found(cls, *, attempts: int, request_id: Optional[str] = None) -> "DispatchOutcome":
        return cls(status=DispatchStatus.RUN_NOT_FOUND, attempts=attempts, request_id=request_id)

    @classmethod
    def failed(cls, reason: str) -> "DispatchOutcome":
        return cls(status=DispatchStatus.DISPATCH_FAILED, reason=reason)


class CommentEvent(BaseModel):
    owner: str
    repo: str
    issue_number: int
    is_pull_request: bool
    body: str
    author: str


class DeploymentStatusEvent(BaseModel):
    owner: str
    repo: str
    deployment_id: int
    ref: str
    sha: str
    environment: str
    state: str
    environment_url: Optional[str] = None
    creator_login: Optional[str] = None

    @property
    def is_in_progress(self) -> bool:
        return self.state == DeploymentState.IN_PROGRESS.value

    @property
    def succeeded(self) -> bool:
        return self.state == DeploymentState.SUCCESS.value


class AuthorEntry(MongoModel):
    branch: str = Field(..., alias="_id", description="Branch name (primary key).")
    author: str = Field(..., description="Login of the most recent deploy requester.")
    updated_at: datetime = Field(default_factory=utc_now)

    def to_mongo(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)

    @classmethod
    def from_mongo(cls, document: dict[str, Any]) -> "AuthorEntry":
        if not document:
            raise ValueError("Mongo document is empty; cannot build AuthorEntry.")
        return cls.model_validate(document)
