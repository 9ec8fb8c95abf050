from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter

from services import DeployBot


def build_health_router(bot: DeployBot) -> APIRouter:
    router = APIRouter()

    @router.get("/healthz")
    async def healthcheck() -> Dict[str, Any]:
        registry = bot.registry
        registry_ok = await registry.ping()

        issues = []
        if not registry_ok:
            issues.append("Author registry is unreachable.")
        if bot.github.auth.mode == "anonymous":
            issues.append("No GitHub credentials configured.")

        return {
            "status": "healthy" if not issues else "degraded",
            "registry": getattr(registry, "backend", type(registry).__name__),
            "registry_reachable": registry_ok,
            "github_auth": bot.github.auth.mode,
            "workflow": bot.settings.deploy_workflow_id,
            "issues": issues,
        }

    return router
