from .comment_publisher import CommentPublisher
from .deploy_bot import DeployBot
from .deploy_tracker import DeploymentTracker
from .environment_validator import EnvironmentValidator
from .github_client import GitHubApiError, GitHubAuth, GitHubClient
from .status_correlator import CorrelationOutcome, StatusCorrelator
from .workflow_dispatcher import RunPollPolicy, WorkflowDispatcher

__all__ = [
    "CommentPublisher",
    "CorrelationOutcome",
    "DeployBot",
    "DeploymentTracker",
    "EnvironmentValidator",
    "GitHubApiError",
    "GitHubAuth",
    "GitHubClient",
    "RunPollPolicy",
    "StatusCorrelator",
    "WorkflowDispatcher",
]
