from __future__ import annotations

import logging
from typing import Iterable

from domain import EnvironmentCheck, EnvironmentVerdict, classify_environment, is_protected
from services.comment_publisher import CommentPublisher
from services.github_client import GitHubClient


logger = logging.getLogger("deploy-bot.environments")


class EnvironmentValidator:
    """Rejects protected or unconfigured deploy targets and explains why on the PR."""

    def __init__(
        self,
        github: GitHubClient,
        publisher: CommentPublisher,
        protected: Iterable[str] = ("prod",),
    ) -> None:
        self.github = github
        self.publisher = publisher
        self.protected = tuple(protected)

    async def validate(self, owner: str, repo: str, pr_number: int, environment: str) -> EnvironmentCheck:
        # Protected targets are refused without asking GitHub what exists.
        if is_protected(environment, self.protected):
            check = classify_environment(environment, [], self.protected)
        else:
            available = await self.github.list_environments(owner, repo)
            check = classify_environment(environment, available, self.protected)

        if check.verdict == EnvironmentVerdict.REJECTED_PROD:
            logger.warning(
                "Refused deploy to protected environment=%s on %s/%s#%s",
                environment,
                owner,
                repo,
                pr_number,
            )
            await self.publisher.publish_protected_rejection(owner, repo, pr_number, environment)
        elif check.verdict == EnvironmentVerdict.REJECTED_UNKNOWN:
            logger.warning(
                "Refused deploy to unknown environment=%s on %s/%s#%s (available=%s)",
                environment,
                owner,
                repo,
                pr_number,
                check.available,
            )
            await self.publisher.publish_unknown_environment(owner, repo, pr_number, environment, check.available)
        return check
