from __future__ import annotations

import logging
from enum import Enum

from models import DeploymentStatusEvent
from repositories import AuthorRegistry, InMemoryAuthorRegistry
from services.comment_publisher import CommentPublisher
from services.github_client import GitHubClient


logger = logging.getLogger("deploy-bot.correlator")


class CorrelationOutcome(str, Enum):
    IGNORED = "ignored"
    STALE = "stale"
    NO_ASSOCIATED_PR = "no_associated_pr"
    REPORTED = "reported"


class StatusCorrelator:
    """Reports deployment results back on the pull request that asked for them."""

    def __init__(
        self,
        github: GitHubClient,
        registry: AuthorRegistry | InMemoryAuthorRegistry,
        publisher: CommentPublisher,
    ) -> None:
        self.github = github
        self.registry = registry
        self.publisher = publisher

    async def handle_status(self, event: DeploymentStatusEvent) -> CorrelationOutcome:
        logger.info(
            "Deployment status received: %s for %s (deployment=%s)",
            event.state,
            event.environment,
            event.deployment_id,
        )
        if event.is_in_progress:
            return CorrelationOutcome.IGNORED

        statuses = await self.github.list_deployment_statuses(
            event.owner, event.repo, event.deployment_id, per_page=5
        )
        latest_state = statuses[0].get("state") if statuses else None
        if latest_state != event.state:
            logger.warning(
                "Skipping outdated deployment status %s for deployment=%s (latest=%s)",
                event.state,
                event.deployment_id,
                latest_state,
            )
            return CorrelationOutcome.STALE

        pulls = await self.github.list_pull_requests_for_commit(event.owner, event.repo, event.sha)
        if not pulls:
            logger.error("No associated PR found for commit %s", event.sha)
            return CorrelationOutcome.NO_ASSOCIATED_PR
        pr_number = pulls[0]["number"]

        author = await self.registry.get_author(event.ref) or event.creator_login or "unknown"
        await self.publisher.publish_result(
            event.owner,
            event.repo,
            pr_number,
            state=event.state,
            author=author,
            environment=event.environment,
            branch=event.ref,
        )
        logger.info("Deployment result %s posted to PR #%s", event.state, pr_number)
        return CorrelationOutcome.REPORTED
