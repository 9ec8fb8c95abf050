from __future__ import annotations

import os
from functools import lru_cache
from typing import Optional

from pydantic import BaseModel, Field


class Settings(BaseModel):
    """Runtime configuration resolved from environment variables."""

    github_token: Optional[str] = Field(
        default=None,
        alias="GITHUB_TOKEN",
        description="Personal access token used when no GitHub App is configured.",
    )
    github_app_id: Optional[str] = Field(
        default=None, alias="GITHUB_APP_ID", description="GitHub App numeric ID."
    )
    github_app_private_key: Optional[str] = Field(
        default=None,
        alias="GITHUB_APP_PRIVATE_KEY",
        description="PEM encoded GitHub App private key.",
    )
    github_app_private_key_path: Optional[str] = Field(
        default=None,
        alias="GITHUB_APP_PRIVATE_KEY_PATH",
        description="Path to the PEM file when the key is not passed inline.",
    )
    github_api_url: str = Field(
        default="https://api.github.com",
        alias="GITHUB_API_URL",
        description="Base URL of the GitHub REST API.",
    )
    github_web_url: str = Field(
        default="https://github.com",
        alias="GITHUB_WEB_URL",
        description="Base URL used to build links posted in comments.",
    )
    github_request_timeout_seconds: float = Field(
        default=15.0,
        alias="GITHUB_REQUEST_TIMEOUT_SECONDS",
        description="Socket timeout applied to each GitHub API request.",
    )
    deploy_workflow_id: str = Field(
        default="deploy.yml",
        alias="DEPLOY_WORKFLOW_ID",
        description="Workflow file name (or numeric id) triggered by deploy comments.",
    )
    deploy_default_environment: str = Field(
        default="dev",
        alias="DEPLOY_DEFAULT_ENVIRONMENT",
        description="Environment used when a comment says only 'deploy'.",
    )
    deploy_protected_environments: str = Field(
        default="prod",
        alias="DEPLOY_PROTECTED_ENVIRONMENTS",
        description="Comma-separated environments that can never be deployed from a comment.",
    )
    run_poll_interval_seconds: float = Field(
        default=5.0,
        alias="RUN_POLL_INTERVAL_SECONDS",
        description="Delay between workflow run lookups after a dispatch.",
    )
    run_poll_max_attempts: int = Field(
        default=5,
        alias="RUN_POLL_MAX_ATTEMPTS",
        description="Number of workflow run lookups before giving up.",
    )
    deploy_correlation_input: str = Field(
        default="",
        alias="DEPLOY_CORRELATION_INPUT",
        description=(
            "Optional workflow input carrying a generated request id. The workflow "
            "must echo it in its run-name. Blank disables token matching."
        ),
    )
    notify_run_not_found: bool = Field(
        default=False,
        alias="NOTIFY_RUN_NOT_FOUND",
        description="Post a comment when the dispatched run cannot be located.",
    )
    author_registry_backend: str = Field(
        default="memory",
        alias="AUTHOR_REGISTRY_BACKEND",
        description="Where branch -> author attributions live: memory or mongo.",
    )
    mongodb_uri: str = Field(
        default="mongodb://127.0.0.1:27017",
        alias="MONGODB_URI",
        description="MongoDB connection string",
    )
    mongodb_db_name: str = Field(
        default="deploy_bot",
        alias="MONGODB_DB_NAME",
        description="MongoDB database name",
    )
    webhook_dedup_ttl_seconds: int = Field(
        default=600,
        alias="WEBHOOK_DEDUP_TTL_SECONDS",
        description="How long a delivery id is remembered to drop redelivered webhooks.",
    )

    model_config = {"populate_by_name": True}

    @classmethod
    def from_env(cls) -> "Settings":
        return cls.model_validate(os.environ)

    @property
    def protected_environments(self) -> tuple[str, ...]:
        return tuple(
            name.strip().lower()
            for name in self.deploy_protected_environments.split(",")
            if name.strip()
        )

    @property
    def uses_github_app(self) -> bool:
        return bool(
            self.github_app_id
            and (self.github_app_private_key or self.github_app_private_key_path)
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance built from environment variables."""
    return Settings.from_env()
