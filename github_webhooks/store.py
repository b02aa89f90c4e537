"""Subscription persistence. Callers own the session."""

import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .models import Subscription

logger = logging.getLogger(__name__)


def get_for_repo(db: Session, repo: str) -> List[Subscription]:
    return db.query(Subscription).filter(Subscription.repo == repo).all()


def get_for_target(db: Session, platform: str, target: str) -> List[Subscription]:
    """Subscriptions of one target, in a stable order so list indices can be reused."""
    return (
        db.query(Subscription)
        .filter(Subscription.platform == platform, Subscription.target == target)
        .order_by(Subscription.repo, Subscription.type)
        .all()
    )


def get_all(db: Session) -> List[Subscription]:
    return (
        db.query(Subscription)
        .order_by(Subscription.platform, Subscription.target, Subscription.repo)
        .all()
    )


def upsert(db: Session, platform: str, type: str, target: str, repo: str, events: str) -> bool:
    """Create the subscription, or overwrite its events if it exists.

    Returns:
        True if a row was inserted, False if an existing row was updated.
    """
    key = dict(platform=platform, type=type, target=target, repo=repo)
    existing = db.query(Subscription).filter_by(**key).first()
    if existing is not None:
        existing.events = events
        db.commit()
        return False

    db.add(Subscription(events=events, **key))
    try:
        db.commit()
        return True
    except IntegrityError:
        # a concurrent subscribe inserted the same key first
        db.rollback()
        logger.info(f"Subscription {platform}:{target} {repo} already exists, updating events")
        db.query(Subscription).filter_by(**key).update({"events": events})
        db.commit()
        return False


def remove(db: Session, platform: str, target: str, repo: Optional[str] = None, type: Optional[str] = None) -> int:
    """Delete subscriptions of a target, optionally narrowed to one repo.

    Without type, every target type sharing the id is matched, so a group
    and a user with the same id lose their rows together.
    """
    query = db.query(Subscription).filter(Subscription.platform == platform, Subscription.target == target)
    if repo is not None:
        query = query.filter(Subscription.repo == repo)
    if type is not None:
        query = query.filter(Subscription.type == type)
    deleted = query.delete(synchronize_session=False)
    db.commit()
    return deleted
