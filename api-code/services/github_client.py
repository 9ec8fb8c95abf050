from __future__ import annotations

import asyncio
import json
import logging
import threading
import time
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib import error as urllib_error, parse as urllib_parse, request as urllib_request

import jwt

from models import PullRequestHead, WorkflowRun
from settings import Settings


logger = logging.getLogger("deploy-bot.github")

USER_AGENT = "deploy-bot"
# Installation tokens live for an hour; refresh five minutes early.
INSTALLATION_TOKEN_TTL_SECONDS = 55 * 60


class GitHubApiError(RuntimeError):
    """Raised when a GitHub REST call fails or cannot be completed."""

    def __init__(self, method: str, path: str, status: Optional[int], detail: str) -> None:
        self.method = method
        self.path = path
        self.status = status
        self.detail = detail
        label = f"HTTP {status}" if status is not None else "request failed"
        super().__init__(f"GitHub {method} {path} {label}: {detail}")


class GitHubAuth:
    """Resolves the bearer token for API calls.

    With a GitHub App configured, installation tokens are minted from an RS256
    app JWT and cached per installation. Otherwise the personal token is used.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self._private_key: Optional[str] = None
        self._tokens: Dict[int, tuple[str, float]] = {}
        self._lock = threading.Lock()

    @property
    def mode(self) -> str:
        if self.settings.uses_github_app:
            return "app"
        return "token" if self.settings.github_token else "anonymous"

    def token_for(self, installation_id: Optional[int]) -> Optional[str]:
        if not self.settings.uses_github_app or installation_id is None:
            return self.settings.github_token

        now = time.time()
        with self._lock:
            cached = self._tokens.get(installation_id)
            if cached and cached[1] > now:
                return cached[0]

        token = self._create_installation_token(installation_id)
        with self._lock:
            self._tokens[installation_id] = (token, now + INSTALLATION_TOKEN_TTL_SECONDS)
        logger.info("Minted installation token installation=%s", installation_id)
        return token

    def _load_private_key(self) -> str:
        if self._private_key is None:
            inline = (self.settings.github_app_private_key or "").strip()
            if inline:
                self._private_key = inline.replace("\\n", "\n")
            else:
                self._private_key = Path(self.settings.github_app_private_key_path or "").read_text()
        return self._private_key

    def app_jwt(self) -> str:
        now = int(time.time())
        payload = {
            "iat": now - 60,
            "exp": now + 9 * 60,
            "iss": str(self.settings.github_app_id),
        }
        return jwt.encode(payload, self._load_private_key(), algorithm="RS256")

    def _create_installation_token(self, installation_id: int) -> str:
        path = f"/app/installations/{installation_id}/access_tokens"
        payload = _send(
            self.settings,
            "POST",
            path,
            authorization=f"Bearer {self.app_jwt()}",
        )
        token = (payload or {}).get("token")
        if not token:
            raise GitHubApiError("POST", path, None, "response carried no token")
        return token


def _send(
    settings: Settings,
    method: str,
    path: str,
    *,
    authorization: Optional[str] = None,
    query: Optional[Dict[str, Any]] = None,
    body: Optional[Dict[str, Any]] = None,
) -> Any:
    url = settings.github_api_url.rstrip("/") + path
    if query:
        url = f"{url}?{urllib_parse.urlencode(query)}"
    headers = {
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": "2022-11-28",
        "User-Agent": USER_AGENT,
    }
    if authorization:
        headers["Authorization"] = authorization
    data = None
    if body is not None:
        data = json.dumps(body).encode("utf-8")
        headers["Content-Type"] = "application/json"

    request = urllib_request.Request(url, data=data, headers=headers, method=method)
    try:
        with urllib_request.urlopen(request, timeout=settings.github_request_timeout_seconds) as response:
            raw = response.read()
    except urllib_error.HTTPError as exc:
        error_body = ""
        try:
            error_body = exc.read().decode("utf-8", errors="ignore")
        except Exception:  # pragma: no cover - defensive
            error_body = ""
        raise GitHubApiError(method, path, exc.code, error_body or str(exc.reason)) from exc
    except urllib_error.URLError as exc:
        raise GitHubApiError(method, path, None, str(exc.reason)) from exc

    if not raw:
        return None
    try:
        return json.loads(raw.decode("utf-8"))
    except ValueError as exc:
        raise GitHubApiError(method, path, None, "response is not valid JSON") from exc


class GitHubClient:
    """The slice of the GitHub REST API the deploy bot needs.

    Calls are blocking ``urllib`` round-trips pushed onto a worker thread so
    the event loop keeps serving other webhooks.
    """

    def __init__(
        self,
        settings: Settings,
        auth: Optional[GitHubAuth] = None,
        installation_id: Optional[int] = None,
    ) -> None:
        self.settings = settings
        self.auth = auth or GitHubAuth(settings)
        self.installation_id = installation_id

    def for_installation(self, installation_id: Optional[int]) -> "GitHubClient":
        return GitHubClient(self.settings, self.auth, installation_id)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        query: Optional[Dict[str, Any]] = None,
        body: Optional[Dict[str, Any]] = None,
    ) -> Any:
        return await asyncio.to_thread(self._request_sync, method, path, query, body)

    def _request_sync(
        self,
        method: str,
        path: str,
        query: Optional[Dict[str, Any]],
        body: Optional[Dict[str, Any]],
    ) -> Any:
        token = self.auth.token_for(self.installation_id)
        authorization = f"Bearer {token}" if token else None
        return _send(self.settings, method, path, authorization=authorization, query=query, body=body)

    @staticmethod
    def _repo_path(owner: str, repo: str) -> str:
        return f"/repos/{urllib_parse.quote(owner)}/{urllib_parse.quote(repo)}"

    async def create_comment(self, owner: str, repo: str, issue_number: int, body: str) -> Dict[str, Any]:
        path = f"{self._repo_path(owner, repo)}/issues/{issue_number}/comments"
        return await self._request("POST", path, body={"body": body})

    async def update_comment(self, owner: str, repo: str, comment_id: int, body: str) -> Dict[str, Any]:
        path = f"{self._repo_path(owner, repo)}/issues/comments/{comment_id}"
        return await self._request("PATCH", path, body={"body": body})

    async def list_environments(self, owner: str, repo: str) -> List[str]:
        payload = await self._request(
            "GET", f"{self._repo_path(owner, repo)}/environments", query={"per_page": 100}
        )
        environments = (payload or {}).get("environments") or []
        return [env["name"] for env in environments if env.get("name")]

    async def get_pull_request(self, owner: str, repo: str, number: int) -> PullRequestHead:
        path = f"{self._repo_path(owner, repo)}/pulls/{number}"
        payload = await self._request("GET", path)
        head = (payload or {}).get("head") or {}
        if not head.get("ref") or not head.get("sha"):
            raise GitHubApiError("GET", path, None, "pull request response has no head ref")
        return PullRequestHead(number=number, ref=head["ref"], sha=head["sha"])

    async def create_workflow_dispatch(
        self,
        owner: str,
        repo: str,
        workflow_id: str,
        ref: str,
        inputs: Dict[str, str],
    ) -> None:
        path = (
            f"{self._repo_path(owner, repo)}/actions/workflows/"
            f"{urllib_parse.quote(str(workflow_id))}/dispatches"
        )
        await self._request("POST", path, body={"ref": ref, "inputs": inputs})

    async def list_workflow_runs(
        self,
        owner: str,
        repo: str,
        *,
        event: str,
        branch: str,
        per_page: int = 5,
    ) -> List[WorkflowRun]:
        payload = await self._request(
            "GET",
            f"{self._repo_path(owner, repo)}/actions/runs",
            query={"event": event, "branch": branch, "per_page": per_page},
        )
        runs = (payload or {}).get("workflow_runs") or []
        return [WorkflowRun.model_validate(run) for run in runs]

    async def list_deployment_statuses(
        self, owner: str, repo: str, deployment_id: int, per_page: int = 5
    ) -> List[Dict[str, Any]]:
        payload = await self._request(
            "GET",
            f"{self._repo_path(owner, repo)}/deployments/{deployment_id}/statuses",
            query={"per_page": per_page},
        )
        return list(payload or [])

    async def list_pull_requests_for_commit(self, owner: str, repo: str, sha: str) -> List[Dict[str, Any]]:
        payload = await self._request("GET", f"{self._repo_path(owner, repo)}/commits/{sha}/pulls")
        return list(payload or [])
