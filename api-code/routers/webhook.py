from __future__ import annotations

import logging
import threading
import time
from typing import Any, Awaitable, Callable, Dict, Optional, Type, TypeVar

from fastapi import APIRouter, BackgroundTasks, Body, Header, HTTPException, status
from pydantic import BaseModel, ValidationError

from schemas import DeploymentStatusPayload, IssueCommentPayload, PullRequestPayload, WebhookAck
from services import DeployBot


logger = logging.getLogger("deploy-bot.webhook")

PayloadT = TypeVar("PayloadT", bound=BaseModel)


class DeliveryLog:
    """Remembers recent X-GitHub-Delivery ids so redeliveries are handled once."""

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._seen: Dict[str, float] = {}
        self._lock = threading.Lock()

    def first_sighting(self, delivery_id: Optional[str]) -> bool:
        if not delivery_id or self.ttl_seconds <= 0:
            return True
        now = self._clock()
        with self._lock:
            expired = [key for key, seen_at in self._seen.items() if now - seen_at > self.ttl_seconds]
            for key in expired:
                del self._seen[key]
            if delivery_id in self._seen:
                return False
            self._seen[delivery_id] = now
        return True

    def forget(self, delivery_id: Optional[str]) -> None:
        """Drop a delivery id so a redelivery of the same event is processed again."""
        if not delivery_id:
            return
        with self._lock:
            self._seen.pop(delivery_id, None)


async def _run_handler(
    label: str,
    deliveries: DeliveryLog,
    delivery_id: Optional[str],
    handler: Callable[..., Awaitable[Any]],
    *args: Any,
) -> None:
    try:
        result = await handler(*args)
    except Exception as exc:  # pylint: disable=broad-except
        logger.exception("Webhook handler %s failed: %s", label, exc)
        deliveries.forget(delivery_id)
        return
    logger.info("Webhook handler %s finished: %s", label, _describe(result))


def _describe(result: Any) -> str:
    stage = getattr(result, "stage", None)
    if stage is not None:
        return f"stage={getattr(stage, 'value', stage)}"
    return str(getattr(result, "value", result))


def _parse(model: Type[PayloadT], payload: Dict[str, Any]) -> PayloadT:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


def build_webhook_router(bot: DeployBot, delivery_log: Optional[DeliveryLog] = None) -> APIRouter:
    router = APIRouter(prefix="/api/v1/github", tags=["webhook"])
    deliveries = delivery_log or DeliveryLog(bot.settings.webhook_dedup_ttl_seconds)

    @router.post(
        "/webhook",
        response_model=WebhookAck,
        status_code=status.HTTP_202_ACCEPTED,
        summary="Receive GitHub webhook deliveries for deploy comments and deployment statuses.",
    )
    async def receive_webhook(
        background_tasks: BackgroundTasks,
        payload: Dict[str, Any] = Body(...),
        x_github_event: str = Header(..., alias="X-GitHub-Event"),
        x_github_delivery: Optional[str] = Header(default=None, alias="X-GitHub-Delivery"),
    ) -> WebhookAck:
        action = payload.get("action")
        ack = WebhookAck(event=x_github_event, action=action, status="queued", delivery=x_github_delivery)
        route = f"{x_github_event}.{action}" if action else x_github_event

        if route == "issue_comment.created":
            parsed = _parse(IssueCommentPayload, payload)
            handler, args = bot.handle_comment, (parsed.to_event(), parsed.installation_id)
        elif route == "deployment_status.created":
            parsed = _parse(DeploymentStatusPayload, payload)
            handler, args = bot.handle_deployment_status, (parsed.to_event(), parsed.installation_id)
        elif route == "pull_request.opened":
            parsed = _parse(PullRequestPayload, payload)
            handler, args = bot.greet_pull_request, (
                parsed.repository.owner.login,
                parsed.repository.name,
                parsed.pull_request.number,
                parsed.installation_id,
            )
        else:
            logger.debug("Ignoring webhook %s", route)
            ack.status = "ignored"
            return ack

        if not deliveries.first_sighting(x_github_delivery):
            logger.info("Dropping redelivered webhook %s (%s)", x_github_delivery, route)
            ack.status = "duplicate"
            return ack

        logger.info("Received %s delivery=%s", route, x_github_delivery)
        background_tasks.add_task(_run_handler, route, deliveries, x_github_delivery, handler, *args)
        return ack

    return router
