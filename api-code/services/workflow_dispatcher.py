from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Dict, Optional
from uuid import uuid4

from pydantic import BaseModel, Field

from models import DispatchOutcome, WorkflowRun
from services.github_client import GitHubApiError, GitHubClient


logger = logging.getLogger("deploy-bot.dispatcher")

Sleep = Callable[[float], Awaitable[None]]


class RunPollPolicy(BaseModel):
    interval_seconds: float = Field(default=5.0, ge=0)
    max_attempts: int = Field(default=5, ge=1)


class WorkflowDispatcher:
    """Starts the deploy workflow and finds the run it created.

    The dispatch endpoint returns no run id, so the run is located by polling
    recent ``workflow_dispatch`` runs on the branch and taking the first one
    that is still active and was started by a bot identity. When a correlation
    input is configured, the run must also echo the generated request id in its
    title.
    """

    def __init__(
        self,
        github: GitHubClient,
        *,
        workflow_id: str = "deploy.yml",
        policy: Optional[RunPollPolicy] = None,
        correlation_input: str = "",
        web_url: str = "https://github.com",
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.github = github
        self.workflow_id = workflow_id
        self.policy = policy or RunPollPolicy()
        self.correlation_input = correlation_input.strip()
        self.web_url = web_url.rstrip("/")
        self._sleep = sleep

    async def dispatch(
        self,
        owner: str,
        repo: str,
        branch_ref: str,
        pr_number: int,
        comment_author: str,
        environment: str,
    ) -> DispatchOutcome:
        inputs: Dict[str, str] = {
            "pr_number": str(pr_number),
            "comment_author": comment_author,
            "environment": environment,
        }
        request_id: Optional[str] = None
        if self.correlation_input:
            request_id = uuid4().hex
            inputs[self.correlation_input] = request_id

        try:
            await self.github.create_workflow_dispatch(owner, repo, self.workflow_id, branch_ref, inputs)
        except GitHubApiError as exc:
            logger.error("Workflow dispatch failed for %s/%s ref=%s: %s", owner, repo, branch_ref, exc)
            return DispatchOutcome.failed(str(exc))
        logger.info(
            "Workflow %s dispatched for %s/%s ref=%s environment=%s",
            self.workflow_id,
            owner,
            repo,
            branch_ref,
            environment,
        )

        return await self.locate_run(owner, repo, branch_ref, request_id=request_id)

    async def locate_run(
        self,
        owner: str,
        repo: str,
        branch_ref: str,
        *,
        request_id: Optional[str] = None,
    ) -> DispatchOutcome:
        for attempt in range(1, self.policy.max_attempts + 1):
            runs = await self.github.list_workflow_runs(
                owner,
                repo,
                event="workflow_dispatch",
                branch=branch_ref,
                per_page=5,
            )
            run = self._select_run(runs, branch_ref, request_id)
            if run is not None:
                logger.info("Located workflow run %s on attempt %d", run.id, attempt)
                run_url = f"{self.web_url}/{owner}/{repo}/actions/runs/{run.id}"
                return DispatchOutcome.located(run.id, run_url, attempts=attempt, request_id=request_id)

            logger.warning(
                "No workflow run found yet for ref=%s (%d attempts left)",
                branch_ref,
                self.policy.max_attempts - attempt,
            )
            await self._sleep(self.policy.interval_seconds)

        logger.error(
            "Could not find workflow run for %s/%s ref=%s after %d attempts",
            owner,
            repo,
            branch_ref,
            self.policy.max_attempts,
        )
        return DispatchOutcome.not_found(attempts=self.policy.max_attempts, request_id=request_id)

    @staticmethod
    def _select_run(
        runs: list[WorkflowRun], branch_ref: str, request_id: Optional[str]
    ) -> Optional[WorkflowRun]:
        for run in runs:
            if run.head_branch != branch_ref or run.status == "completed":
                continue
            if not run.triggered_by_bot:
                continue
            if request_id and not run.mentions(request_id):
                continue
            return run
        return None
