from __future__ import annotations

import logging
from typing import Optional

from domain import DeploymentStage
from domain.commands import parse_deploy_command
from models import CommentEvent, DeploymentRequest, DispatchStatus
from repositories import AuthorRegistry, InMemoryAuthorRegistry
from services.comment_publisher import CommentPublisher
from services.environment_validator import EnvironmentValidator
from services.github_client import GitHubClient
from services.workflow_dispatcher import WorkflowDispatcher


logger = logging.getLogger("deploy-bot.tracker")


class DeploymentTracker:
    """Drives one deploy comment from parsing to the backfilled run link."""

    def __init__(
        self,
        github: GitHubClient,
        registry: AuthorRegistry | InMemoryAuthorRegistry,
        publisher: CommentPublisher,
        validator: EnvironmentValidator,
        dispatcher: WorkflowDispatcher,
        *,
        default_environment: str = "dev",
        notify_run_not_found: bool = False,
    ) -> None:
        self.github = github
        self.registry = registry
        self.publisher = publisher
        self.validator = validator
        self.dispatcher = dispatcher
        self.default_environment = default_environment
        self.notify_run_not_found = notify_run_not_found

    async def handle_comment(self, event: CommentEvent) -> Optional[DeploymentRequest]:
        """Run the deploy pipeline for a comment.

        Returns ``None`` when the comment is not a deploy command on a pull
        request. Otherwise returns the request in the terminal stage it reached.
        """
        if not event.is_pull_request:
            return None
        command = parse_deploy_command(event.body, self.default_environment)
        if command is None:
            return None

        request = DeploymentRequest(
            owner=event.owner,
            repo=event.repo,
            pr_number=event.issue_number,
            comment_author=event.author,
            environment=command.environment,
        ).advance(DeploymentStage.PARSED)
        logger.info(
            "Deploy to %s requested by %s on %s/%s#%s",
            request.environment,
            request.comment_author,
            request.owner,
            request.repo,
            request.pr_number,
        )

        check = await self.validator.validate(
            request.owner, request.repo, request.pr_number, request.environment
        )
        if not check.allowed:
            return request.advance(DeploymentStage.REJECTED)
        request.advance(DeploymentStage.VALIDATED)

        pull_request = await self.github.get_pull_request(request.owner, request.repo, request.pr_number)
        request.branch_ref = pull_request.ref
        request.commit_sha = pull_request.sha
        request.advance(DeploymentStage.PR_RESOLVED)

        await self.registry.record_author(request.branch_ref, request.comment_author)

        request.trigger_comment_id = await self.publisher.publish_trigger(
            request.owner,
            request.repo,
            request.pr_number,
            author=request.comment_author,
            environment=request.environment,
            branch=request.branch_ref,
        )
        request.advance(DeploymentStage.DISPATCHING)

        outcome = await self.dispatcher.dispatch(
            request.owner,
            request.repo,
            request.branch_ref,
            request.pr_number,
            request.comment_author,
            request.environment,
        )
        if outcome.status == DispatchStatus.DISPATCH_FAILED:
            await self.publisher.publish_dispatch_failure(
                request.owner,
                request.repo,
                request.pr_number,
                author=request.comment_author,
                environment=request.environment,
                branch=request.branch_ref,
            )
            return request.advance(DeploymentStage.DISPATCH_FAILED)

        request.advance(DeploymentStage.RUN_LOCATING)
        if outcome.status == DispatchStatus.RUN_NOT_FOUND:
            logger.error(
                "Tracking comment %s left with placeholder link; run for ref=%s not found",
                request.trigger_comment_id,
                request.branch_ref,
            )
            if self.notify_run_not_found:
                await self.publisher.publish_run_not_found(
                    request.owner,
                    request.repo,
                    request.pr_number,
                    author=request.comment_author,
                    environment=request.environment,
                    branch=request.branch_ref,
                )
            return request.advance(DeploymentStage.RUN_NOT_FOUND)

        request.workflow_run_id = outcome.run_id
        request.run_url = outcome.run_url
        request.advance(DeploymentStage.RUN_LOCATED)

        await self.publisher.update_trigger(
            request.owner,
            request.repo,
            request.trigger_comment_id,
            author=request.comment_author,
            environment=request.environment,
            branch=request.branch_ref,
            run_id=request.workflow_run_id,
        )
        return request.advance(DeploymentStage.COMMENT_UPDATED)
