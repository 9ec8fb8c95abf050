from __future__ import annotations

import sys
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

PROJECT_ROOT = Path(__file__).resolve().parent.parent
API_CODE_PATH = PROJECT_ROOT / "api-code"
if str(API_CODE_PATH) not in sys.path:
    sys.path.insert(0, str(API_CODE_PATH))

from models import PullRequestHead, WorkflowRun  # noqa: E402
from services.github_client import GitHubApiError  # noqa: E402
from settings import Settings  # noqa: E402


def make_settings(**overrides: Any) -> Settings:
    values: Dict[str, Any] = {
        "GITHUB_TOKEN": "test-token",
        "DEPLOY_WORKFLOW_ID": "deploy.yml",
        "RUN_POLL_INTERVAL_SECONDS": 5,
        "RUN_POLL_MAX_ATTEMPTS": 5,
        "AUTHOR_REGISTRY_BACKEND": "memory",
    }
    values.update(overrides)
    return Settings.model_validate(values)


def bot_run(run_id: int, branch: str = "feature-x", status: str = "queued", **extra: Any) -> WorkflowRun:
    return WorkflowRun(
        id=run_id,
        head_branch=branch,
        status=status,
        triggering_actor={"login": "deploy-bot[bot]", "type": "Bot"},
        **extra,
    )


def human_run(run_id: int, branch: str = "feature-x", status: str = "queued") -> WorkflowRun:
    return WorkflowRun(
        id=run_id,
        head_branch=branch,
        status=status,
        triggering_actor={"login": "alice", "type": "User"},
    )


class FakeClock:
    """Stands in for asyncio.sleep and records every requested delay."""

    def __init__(self) -> None:
        self.sleeps: List[float] = []

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)


class FakeGitHubClient:
    """Records every remote call and answers from canned data."""

    def __init__(
        self,
        *,
        environments: Optional[List[str]] = None,
        head: Optional[PullRequestHead] = None,
        runs: Optional[List[List[WorkflowRun]]] = None,
        statuses: Optional[List[Dict[str, Any]]] = None,
        pulls: Optional[List[Dict[str, Any]]] = None,
        dispatch_error: Optional[Exception] = None,
    ) -> None:
        self.environments = environments if environments is not None else ["dev", "Staging", "prod"]
        self.head = head or PullRequestHead(number=7, ref="feature-x", sha="abc123")
        self.runs = runs if runs is not None else []
        self.statuses = statuses if statuses is not None else []
        self.pulls = pulls if pulls is not None else [{"number": 7}]
        self.dispatch_error = dispatch_error
        self.calls: List[tuple[str, tuple, Dict[str, Any]]] = []
        self.comments: Dict[int, str] = {}
        self._next_comment_id = 1000
        self.auth = SimpleNamespace(mode="token")

    def for_installation(self, installation_id: Optional[int]) -> "FakeGitHubClient":
        return self

    def _record(self, name: str, *args: Any, **kwargs: Any) -> None:
        self.calls.append((name, args, kwargs))

    def calls_named(self, name: str) -> List[tuple[str, tuple, Dict[str, Any]]]:
        return [call for call in self.calls if call[0] == name]

    @property
    def call_names(self) -> List[str]:
        return [call[0] for call in self.calls]

    async def create_comment(self, owner: str, repo: str, issue_number: int, body: str) -> Dict[str, Any]:
        self._record("create_comment", owner, repo, issue_number, body)
        self._next_comment_id += 1
        self.comments[self._next_comment_id] = body
        return {"id": self._next_comment_id, "body": body}

    async def update_comment(self, owner: str, repo: str, comment_id: int, body: str) -> Dict[str, Any]:
        self._record("update_comment", owner, repo, comment_id, body)
        self.comments[comment_id] = body
        return {"id": comment_id, "body": body}

    async def list_environments(self, owner: str, repo: str) -> List[str]:
        self._record("list_environments", owner, repo)
        return list(self.environments)

    async def get_pull_request(self, owner: str, repo: str, number: int) -> PullRequestHead:
        self._record("get_pull_request", owner, repo, number)
        return self.head

    async def create_workflow_dispatch(
        self, owner: str, repo: str, workflow_id: str, ref: str, inputs: Dict[str, str]
    ) -> None:
        self._record("create_workflow_dispatch", owner, repo, workflow_id, ref, inputs)
        if self.dispatch_error is not None:
            raise self.dispatch_error

    async def list_workflow_runs(
        self, owner: str, repo: str, *, event: str, branch: str, per_page: int = 5
    ) -> List[WorkflowRun]:
        self._record("list_workflow_runs", owner, repo, event=event, branch=branch, per_page=per_page)
        attempt = len(self.calls_named("list_workflow_runs")) - 1
        if not self.runs:
            return []
        return list(self.runs[min(attempt, len(self.runs) - 1)])

    async def list_deployment_statuses(
        self, owner: str, repo: str, deployment_id: int, per_page: int = 5
    ) -> List[Dict[str, Any]]:
        self._record("list_deployment_statuses", owner, repo, deployment_id, per_page=per_page)
        return list(self.statuses)

    async def list_pull_requests_for_commit(self, owner: str, repo: str, sha: str) -> List[Dict[str, Any]]:
        self._record("list_pull_requests_for_commit", owner, repo, sha)
        return list(self.pulls)


def dispatch_error(detail: str = "Workflow does not have 'workflow_dispatch' trigger") -> GitHubApiError:
    return GitHubApiError("POST", "/repos/acme/web/actions/workflows/deploy.yml/dispatches", 422, detail)
