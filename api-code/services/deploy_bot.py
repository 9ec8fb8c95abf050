from __future__ import annotations

import asyncio
import logging
from typing import Optional

from models import CommentEvent, DeploymentRequest, DeploymentStatusEvent
from repositories import AuthorRegistry, InMemoryAuthorRegistry
from services.comment_publisher import CommentPublisher
from services.deploy_tracker import DeploymentTracker
from services.environment_validator import EnvironmentValidator
from services.github_client import GitHubClient
from services.status_correlator import CorrelationOutcome, StatusCorrelator
from services.workflow_dispatcher import RunPollPolicy, Sleep, WorkflowDispatcher
from settings import Settings


logger = logging.getLogger("deploy-bot")


class DeployBot:
    """Wires the tracker and correlator for each incoming webhook.

    GitHub clients are scoped to the app installation that sent the event, so
    the pipeline objects are built per event around a shared author registry.
    """

    def __init__(
        self,
        settings: Settings,
        registry: AuthorRegistry | InMemoryAuthorRegistry,
        github: Optional[GitHubClient] = None,
        *,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.settings = settings
        self.registry = registry
        self.github = github or GitHubClient(settings)
        self._sleep = sleep
        logger.info(
            "DeployBot initialized (workflow=%s, auth=%s, registry=%s, poll=%sx%ss)",
            settings.deploy_workflow_id,
            self.github.auth.mode,
            getattr(registry, "backend", type(registry).__name__),
            settings.run_poll_max_attempts,
            settings.run_poll_interval_seconds,
        )

    def _client(self, installation_id: Optional[int]) -> GitHubClient:
        if installation_id is None:
            return self.github
        return self.github.for_installation(installation_id)

    def _publisher(self, github: GitHubClient) -> CommentPublisher:
        return CommentPublisher(github, web_url=self.settings.github_web_url)

    def build_tracker(self, installation_id: Optional[int] = None) -> DeploymentTracker:
        github = self._client(installation_id)
        publisher = self._publisher(github)
        validator = EnvironmentValidator(github, publisher, self.settings.protected_environments)
        dispatcher = WorkflowDispatcher(
            github,
            workflow_id=self.settings.deploy_workflow_id,
            policy=RunPollPolicy(
                interval_seconds=self.settings.run_poll_interval_seconds,
                max_attempts=self.settings.run_poll_max_attempts,
            ),
            correlation_input=self.settings.deploy_correlation_input,
            web_url=self.settings.github_web_url,
            sleep=self._sleep,
        )
        return DeploymentTracker(
            github,
            self.registry,
            publisher,
            validator,
            dispatcher,
            default_environment=self.settings.deploy_default_environment,
            notify_run_not_found=self.settings.notify_run_not_found,
        )

    def build_correlator(self, installation_id: Optional[int] = None) -> StatusCorrelator:
        github = self._client(installation_id)
        return StatusCorrelator(github, self.registry, self._publisher(github))

    async def handle_comment(
        self, event: CommentEvent, installation_id: Optional[int] = None
    ) -> Optional[DeploymentRequest]:
        return await self.build_tracker(installation_id).handle_comment(event)

    async def handle_deployment_status(
        self, event: DeploymentStatusEvent, installation_id: Optional[int] = None
    ) -> CorrelationOutcome:
        return await self.build_correlator(installation_id).handle_status(event)

    async def greet_pull_request(
        self, owner: str, repo: str, pr_number: int, installation_id: Optional[int] = None
    ) -> None:
        github = self._client(installation_id)
        await self._publisher(github).publish_greeting(owner, repo, pr_number)
