from __future__ import annotations

from typing import Optional

from models.deploy import DeployCommand

DEPLOY_KEYWORD = "deploy"
DEPLOY_TO_PREFIX = "deploy to"


def parse_deploy_command(body: str, default_environment: str = "dev") -> Optional[DeployCommand]:
    """Extract the target environment from a pull request comment.

    ``deploy`` alone targets ``default_environment``. Anything after the
    ``deploy to`` prefix, trimmed, is the target, so ``deploy today`` names
    ``day``. Anything else is not a command and yields ``None``.
    """
    text = (body or "").strip().lower()
    if not text.startswith(DEPLOY_KEYWORD):
        return None

    environment = default_environment.lower()
    if text.startswith(DEPLOY_TO_PREFIX):
        environment = text[len(DEPLOY_TO_PREFIX):].strip() or environment
    return DeployCommand(environment=environment, is_valid=True)
