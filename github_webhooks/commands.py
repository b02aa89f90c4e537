"""
Subscription commands invoked from chat.

Every command returns the plain-text reply for the invoking session;
user mistakes (unknown repository, bad index, missing privilege) are
replies, not exceptions.
"""

import logging
import re
from typing import List, Optional

from sqlalchemy.orm import Session

from . import store
from .config import Settings
from .formatter import EVENT_DESCRIPTIONS
from .models import Subscription
from .schemas import CommandContext

logger = logging.getLogger(__name__)

_INDEX = re.compile(r"[0-9]+")

NO_TARGET = "Cannot determine the subscription target."


def _numbered(subscriptions: List[Subscription]) -> str:
    return "\n".join(f"{i}: {sub.repo} (events: {sub.events})" for i, sub in enumerate(subscriptions))


def _normalize_events(events: Optional[str]) -> str:
    names = [e.strip() for e in (events or "").split(",") if e.strip()]
    if not names or "all" in names:
        return "all"
    return ",".join(dict.fromkeys(names))


def subscribe(db: Session, settings: Settings, ctx: CommandContext, repo: Optional[str] = None, events: Optional[str] = None) -> str:
    """Subscribe the invoking target to a configured repository.

    Without a repo the configured repositories are listed with their
    index; a numeric repo selects from that list.
    """
    if not repo or not repo.strip():
        if not settings.repositories:
            return "No repositories are available for subscription."
        listing = "\n".join(f"{i}: {item.repo}" for i, item in enumerate(settings.repositories))
        return f"Choose a repository to subscribe to:\n{listing}"

    repo = repo.strip()
    if _INDEX.fullmatch(repo):
        index = int(repo)
        if index >= len(settings.repositories):
            return "Invalid repository index."
        repo = settings.repositories[index].repo

    if settings.find_repository(repo) is None:
        return f"Repository {repo} is not in the configured list."

    target = ctx.target
    if not target:
        return "Cannot determine the subscription target; use this command in a group, private chat or channel."

    events = _normalize_events(events)
    created = store.upsert(db, platform=ctx.platform, type=ctx.target_type, target=target, repo=repo, events=events)
    logger.info(f"{'Created' if created else 'Updated'} subscription {ctx.platform}:{target} -> {repo} [{events}]")
    if created:
        return f"Subscribed to {repo}, events: {events}"
    return f"Updated subscription to {repo}, events: {events}"


def unsubscribe(db: Session, ctx: CommandContext, repo: Optional[str] = None, target: Optional[str] = None) -> str:
    """Remove a subscription of the invoking target, or of another target for admins.

    Without a repo the only subscription is removed, or the subscriptions
    are listed when there are several. A numeric repo removes the entry at
    that index of the list.
    """
    if target:
        if not ctx.is_admin:
            return "Only administrators can remove subscriptions of other targets."
    else:
        target = ctx.target
    if not target:
        return NO_TARGET
    platform = ctx.platform

    if not repo or not repo.strip():
        subscriptions = store.get_for_target(db, platform, target)
        if len(subscriptions) == 1:
            store.remove(db, platform, target, subscriptions[0].repo, type=subscriptions[0].type)
            return f"Unsubscribed from {subscriptions[0].repo}."
        if subscriptions:
            return (
                f"Current subscriptions:\n{_numbered(subscriptions)}\n"
                "Unsubscribe with the repository name or index."
            )
        return "There are no subscriptions."

    repo = repo.strip()
    target_type = None
    if _INDEX.fullmatch(repo):
        subscriptions = store.get_for_target(db, platform, target)
        if not subscriptions:
            return "There are no subscriptions."
        index = int(repo)
        if index >= len(subscriptions):
            return "Invalid subscription index."
        repo = subscriptions[index].repo
        target_type = subscriptions[index].type

    if store.remove(db, platform, target, repo, type=target_type):
        logger.info(f"Removed subscription {platform}:{target} -> {repo}")
        return f"Unsubscribed from {repo}."

    subscriptions = store.get_for_target(db, platform, target)
    if subscriptions:
        return f"No subscription to {repo} found.\nCurrent subscriptions:\n{_numbered(subscriptions)}"
    return f"No subscription to {repo} found, and there are no subscriptions."


def list_subscriptions(db: Session, ctx: CommandContext, admin: bool = False) -> str:
    if admin:
        if not ctx.is_admin:
            return "Only administrators can list all subscriptions."
        subscriptions = store.get_all(db)
        if not subscriptions:
            return "No subscriptions yet."
        content = "\n".join(
            f"Target: {sub.target} | Repo: {sub.repo} | Events: {sub.events} | Platform: {sub.platform}"
            for sub in subscriptions
        )
        return f"All subscriptions:\n{content}"

    target = ctx.target
    if not target:
        return NO_TARGET
    subscriptions = store.get_for_target(db, ctx.platform, target)
    if not subscriptions:
        return "No subscriptions."
    content = "\n".join(f"- {sub.repo} (events: {sub.events})" for sub in subscriptions)
    return f"Current subscriptions:\n{content}"


def event_types() -> str:
    content = "\n".join(
        f"{emoji} {name.ljust(14)}{description}"
        for name, (emoji, description) in EVENT_DESCRIPTIONS.items()
    )
    return "\n".join([
        "📋 Supported event types",
        "══════════════════════",
        content,
        "══════════════════════",
        "Event names are the X-GitHub-Event values; combine them with commas, e.g. push,star",
    ])
