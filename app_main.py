from __future__ import annotations

import logging
import sys
from pathlib import Path

from fastapi import FastAPI


PROJECT_ROOT = Path(__file__).resolve().parent
API_CODE_PATH = PROJECT_ROOT / "api-code"
if str(API_CODE_PATH) not in sys.path:
    sys.path.insert(0, str(API_CODE_PATH))

from env_loader import load_local_env  # noqa: E402
from repositories import AuthorRegistry, InMemoryAuthorRegistry  # noqa: E402
from routers import build_health_router, build_webhook_router  # noqa: E402
from services import DeployBot  # noqa: E402
from settings import get_settings  # noqa: E402


load_local_env()
settings = get_settings()

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("deploy-bot")

app = FastAPI(
    title="Deploy Bot",
    version="0.1.0",
    description="Pull request comment driven deployments on GitHub Actions.",
)

author_registry: AuthorRegistry | InMemoryAuthorRegistry
if settings.author_registry_backend.strip().lower() == "mongo":
    author_registry = AuthorRegistry()
else:
    author_registry = InMemoryAuthorRegistry()

deploy_bot = DeployBot(settings, author_registry)

app.include_router(build_webhook_router(deploy_bot))
app.include_router(build_health_router(deploy_bot))


@app.on_event("startup")
async def on_startup() -> None:
    global author_registry  # pylint: disable=global-statement
    try:
        await author_registry.ensure_indexes()
        logger.info("Author registry initialized (%s).", author_registry.backend)
    except Exception as exc:  # pylint: disable=broad-except
        logger.warning(
            "MongoDB unavailable (%s); falling back to in-memory author registry.", exc
        )
        author_registry = InMemoryAuthorRegistry()
        deploy_bot.registry = author_registry


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app_main:app", host="0.0.0.0", port=9001, reload=True)
