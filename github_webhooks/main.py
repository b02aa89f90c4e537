import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from .bots import BotRegistry, build_registry
from .config import Settings, load_settings
from .database import Base, build_engine, build_session_factory
from .routers import build_webhooks_router, subscriptions_router

logger = logging.getLogger(__name__)


def _redact_secret(value: str, visible_chars: int = 4) -> str:
    if len(value) <= visible_chars:
        return "*" * len(value)
    return value[:visible_chars] + "*" * (len(value) - visible_chars)


def _log_configuration(settings: Settings, bots: BotRegistry) -> None:
    logger.info("GitHub webhooks configuration:")
    logger.info(f"  Webhook path: {settings.webhook_path}")
    logger.info(f"  Database URL: {_redact_secret(settings.database_url, 12)}")
    for item in settings.repositories:
        logger.info(
            f"  Repository {item.repo}: secret={_redact_secret(item.secret)} "
            f"watch={settings.watch_enabled(item)} unknown_event={settings.unknown_event_enabled(item)}"
        )
    logger.info(f"  Allow unknown repository: {settings.allow_unknown_repository}")
    logger.info(f"  Enable image: {settings.enable_image}")
    logger.info(f"  Bot connections: {len(bots)}")
    logger.info(f"  Command API keys: {len(settings.api_keys)}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create tables
    Base.metadata.create_all(bind=app.state.engine)
    _log_configuration(app.state.settings, app.state.bots)
    yield
    app.state.engine.dispose()


def create_app(settings: Optional[Settings] = None, bots: Optional[BotRegistry] = None) -> FastAPI:
    """Build the application.

    Args:
        settings: Defaults to settings read from the environment.
        bots: Live bot connections. Defaults to HTTP connections built
              from settings.bots.
    """
    settings = settings or load_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    app = FastAPI(title="GitHub Webhooks", lifespan=lifespan)
    app.state.settings = settings
    app.state.bots = bots if bots is not None else build_registry(settings.bots)
    app.state.engine = build_engine(settings.database_url)
    app.state.session_factory = build_session_factory(app.state.engine)

    app.include_router(build_webhooks_router(settings.webhook_path))
    app.include_router(subscriptions_router)

    # Health check endpoint (unauthenticated)
    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("github_webhooks.main:app", host="0.0.0.0", port=8000)
