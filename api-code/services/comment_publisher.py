from __future__ import annotations

import logging
from typing import Any, Dict, Sequence

from domain import DeploymentState
from services.github_client import GitHubClient


logger = logging.getLogger("deploy-bot.comments")

GREETING = "🚀 Thanks for opening this pull request! We are reviewing it. Stay tuned! 👀"


def format_trigger(author: str, environment: str, branch: str, link: str) -> str:
    return (
        "## 🚀 **Deployment Triggered**\n"
        f"{author} started a branch deployment to **{environment}** (branch: `{branch}`).\n\n"
        f"You can watch the deployment progress [here]({link}) 🔗\n\n---"
    )


def format_dispatch_failure(author: str, environment: str, branch: str) -> str:
    return (
        "## ❌ **Deployment Failed to Start**\n"
        f"{author} attempted to deploy branch `{branch}` to **{environment}**, "
        "but workflow could not start ⚠️"
    )


def format_run_not_found(author: str, environment: str, branch: str, link: str) -> str:
    return (
        "## ⚠️ **Deployment Run Not Found**\n"
        f"The workflow for {author}'s deployment of branch `{branch}` to **{environment}** "
        f"was started, but its run could not be located. Check the [Actions tab]({link}) 🔗"
    )


def format_protected_rejection(environment: str) -> str:
    return f"❌ Deployment to **{environment}** is not allowed."


def format_unknown_environment(environment: str, available: Sequence[str]) -> str:
    return (
        f"❌ Environment **{environment}** does not exist.\n\n"
        f"Available environments: {', '.join(available)}"
    )


def format_result(state: str, author: str, environment: str, branch: str) -> str:
    if state == DeploymentState.SUCCESS.value:
        title = "✅ **Deployment Results**"
        body = f"{author} successfully deployed branch `{branch}` to **{environment}** 🚀"
    else:
        title = "❌ **Deployment Results**"
        body = f"{author} failed to deploy branch `{branch}` to **{environment}** ❌"
    return f"## {title}\n{body}"


class CommentPublisher:
    """Formats bot messages and posts them, one GitHub call per message."""

    def __init__(self, github: GitHubClient, web_url: str = "https://github.com") -> None:
        self.github = github
        self.web_url = web_url.rstrip("/")

    def actions_url(self, owner: str, repo: str) -> str:
        return f"{self.web_url}/{owner}/{repo}/actions"

    def run_url(self, owner: str, repo: str, run_id: int) -> str:
        return f"{self.actions_url(owner, repo)}/runs/{run_id}"

    async def _post(self, owner: str, repo: str, issue_number: int, body: str) -> Dict[str, Any]:
        comment = await self.github.create_comment(owner, repo, issue_number, body)
        logger.info("Posted comment on %s/%s#%s", owner, repo, issue_number)
        return comment or {}

    async def publish_trigger(
        self, owner: str, repo: str, pr_number: int, *, author: str, environment: str, branch: str
    ) -> int:
        """Post the tracking comment with a placeholder link; returns its id."""
        body = format_trigger(author, environment, branch, self.actions_url(owner, repo))
        comment = await self._post(owner, repo, pr_number, body)
        return comment["id"]

    async def update_trigger(
        self,
        owner: str,
        repo: str,
        comment_id: int,
        *,
        author: str,
        environment: str,
        branch: str,
        run_id: int,
    ) -> None:
        body = format_trigger(author, environment, branch, self.run_url(owner, repo, run_id))
        await self.github.update_comment(owner, repo, comment_id, body)
        logger.info("Updated comment %s with run %s", comment_id, run_id)

    async def publish_dispatch_failure(
        self, owner: str, repo: str, pr_number: int, *, author: str, environment: str, branch: str
    ) -> None:
        await self._post(owner, repo, pr_number, format_dispatch_failure(author, environment, branch))

    async def publish_run_not_found(
        self, owner: str, repo: str, pr_number: int, *, author: str, environment: str, branch: str
    ) -> None:
        link = self.actions_url(owner, repo)
        await self._post(owner, repo, pr_number, format_run_not_found(author, environment, branch, link))

    async def publish_protected_rejection(self, owner: str, repo: str, pr_number: int, environment: str) -> None:
        await self._post(owner, repo, pr_number, format_protected_rejection(environment))

    async def publish_unknown_environment(
        self, owner: str, repo: str, pr_number: int, environment: str, available: Sequence[str]
    ) -> None:
        await self._post(owner, repo, pr_number, format_unknown_environment(environment, available))

    async def publish_result(
        self,
        owner: str,
        repo: str,
        pr_number: int,
        *,
        state: str,
        author: str,
        environment: str,
        branch: str,
    ) -> None:
        await self._post(owner, repo, pr_number, format_result(state, author, environment, branch))

    async def publish_greeting(self, owner: str, repo: str, pr_number: int) -> None:
        await self._post(owner, repo, pr_number, GREETING)
