"""
GitHub webhook receiver.

The route path is configurable, so the router is built by build_router()
once settings are known.
"""

import json
import logging
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Header, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from .. import store
from ..bots import BotRegistry
from ..config import Settings
from ..database import get_db
from ..dependencies import get_bots, get_settings
from ..dispatcher import dispatch, filter_by_event
from ..formatter import FormatOptions, Message, format_event, is_known_event
from ..schemas import SubscriptionRead
from ..security import verify_signature

logger = logging.getLogger(__name__)


def _ok(status: str, message: str, **extra) -> JSONResponse:
    return JSONResponse(content={"status": status, "message": message, **extra}, status_code=200)


def deliver_notification(bots: BotRegistry, subscriptions: List[SubscriptionRead], message: Message, event: str, repo: str):
    """Background delivery of one formatted event to its subscribers"""
    delivered = dispatch(bots, subscriptions, message)
    logger.info(f"Delivered {event} event for {repo} to {delivered} target(s) ({len(subscriptions)} subscription(s))")


async def receive_github_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    bots: BotRegistry = Depends(get_bots),
    x_github_event: Optional[str] = Header(None),
    x_hub_signature_256: Optional[str] = Header(None),
    x_github_delivery: Optional[str] = Header(None),
):
    """
    Verify a GitHub webhook, match it against subscriptions and queue
    the notification for delivery.

    Only malformed requests (400) and authentication failures (403) are
    errors; everything past verification answers 200 so GitHub does not
    retry because of formatting or delivery problems.
    """
    # Signature is computed over the body exactly as received
    body = await request.body()
    try:
        payload = json.loads(body)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid JSON payload")
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Invalid JSON payload")

    event = (x_github_event or "").strip()
    if not event:
        raise HTTPException(status_code=400, detail="Missing X-GitHub-Event header")

    repository = payload.get("repository")
    repo_name = repository.get("full_name") if isinstance(repository, dict) else None
    if not isinstance(repo_name, str) or not repo_name.strip():
        raise HTTPException(status_code=400, detail="Bad Request: repository info missing")

    repo_config = settings.find_repository(repo_name)
    if repo_config is None:
        if not settings.allow_unknown_repository:
            logger.warning(f"Rejected {event} event for unconfigured repository {repo_name}")
            raise HTTPException(status_code=403, detail=f"Repository {repo_name} is not configured")
        logger.info(f"Accepting unverified {event} event for unconfigured repository {repo_name}")
    elif not verify_signature(body, x_hub_signature_256, repo_config.secret):
        logger.warning(f"Signature mismatch for {event} event on {repo_name} (delivery {x_github_delivery})")
        raise HTTPException(status_code=403, detail="Forbidden: signature mismatch")

    logger.info(f"Received {event} event for {repo_name} (delivery {x_github_delivery})")

    if event == "ping":
        return _ok("ok", "Webhook endpoint is active")

    forward_unknown = not is_known_event(event) and settings.unknown_event_enabled(repo_config)
    # Blocking query, kept off the event loop
    rows = await run_in_threadpool(store.get_for_repo, db, repo_name)
    subscriptions = [SubscriptionRead.model_validate(sub) for sub in rows]
    subscriptions = filter_by_event(subscriptions, event, forward_unknown)
    if not subscriptions:
        return _ok("ignored", "No subscription for this repository or event not subscribed")

    watch_enabled = settings.watch_enabled(repo_config)
    if event == "watch" and not watch_enabled:
        return _ok("ignored", "Watch events are disabled for this repository")

    options = FormatOptions(
        enable_watch=watch_enabled,
        enable_unknown_event=settings.unknown_event_enabled(repo_config),
        enable_image=settings.enable_image,
    )
    message = format_event(event, payload, options)
    if message is None:
        return _ok("ignored", "No message for this event")

    background_tasks.add_task(
        deliver_notification,
        bots=bots,
        subscriptions=subscriptions,
        message=message,
        event=event,
        repo=repo_name,
    )
    return _ok("received", "Webhook received", recipients=len(subscriptions))


def build_router(path: str) -> APIRouter:
    router = APIRouter(tags=["webhooks"])
    router.add_api_route(path, receive_github_webhook, methods=["POST"])
    return router
