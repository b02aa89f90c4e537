import logging
from typing import Iterable, List, Optional, Set

from .bots import BotConnection
from .formatter import Message
from .schemas import SubscriptionRead

logger = logging.getLogger(__name__)


def parse_events(events: Optional[str]) -> Set[str]:
    return {e.strip() for e in (events or "").split(",") if e.strip()}


def wants_event(events: Optional[str], event: str, forward_unknown: bool = False) -> bool:
    """Whether a subscription's events field lets event through.

    "all" or an empty field accepts everything. forward_unknown is only
    passed for event types without a formatter, when the repository
    forwards unknown events; such events then reach every subscriber.
    """
    if not events or not events.strip() or events.strip() == "all":
        return True
    if event in parse_events(events):
        return True
    return forward_unknown


def filter_by_event(subscriptions: List[SubscriptionRead], event: str, forward_unknown: bool = False) -> List[SubscriptionRead]:
    return [sub for sub in subscriptions if wants_event(sub.events, event, forward_unknown)]


def dispatch(bots: Iterable[BotConnection], subscriptions: List[SubscriptionRead], message: Message) -> int:
    """
    Send message to every subscription's target on each live bot of the
    same platform (compared case-insensitively).

    Subscriptions without a matching bot are skipped. A failed send is
    logged and does not stop delivery to the remaining pairs.

    Returns:
        Number of successful sends.
    """
    delivered = 0
    for bot in bots:
        for sub in subscriptions:
            try:
                if sub.platform.lower() != bot.platform.lower():
                    continue
                bot.send_message(sub.target, message, target_type=sub.type)
                delivered += 1
            except Exception:
                logger.exception(f"Failed to deliver {sub.repo} notification to {sub.platform}:{sub.target} via {bot.self_id}")
    return delivered
