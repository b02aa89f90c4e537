"""Outbound bot connections that notifications are delivered through."""

import logging
from typing import Dict, Iterator, List, Optional, Protocol

import requests

from .config import BotConnectionConfig
from .formatter import Message

logger = logging.getLogger(__name__)


class BotConnection(Protocol):
    platform: str
    self_id: str

    def send_message(self, target: str, message: Message, target_type: Optional[str] = None) -> None:
        ...


class HttpBotConnection:
    """Relays messages to a chat platform through an HTTP endpoint.

    The relay receives a JSON document naming the target and carrying the
    message text and image URLs, and is responsible for the actual
    platform API call.
    """

    def __init__(self, platform: str, self_id: str, url: str, token: Optional[str] = None, timeout: float = 10.0):
        self.platform = platform
        self.self_id = self_id
        self.url = url
        self.token = token
        self.timeout = timeout

    @classmethod
    def from_config(cls, config: BotConnectionConfig) -> "HttpBotConnection":
        return cls(
            platform=config.platform,
            self_id=config.self_id,
            url=config.url,
            token=config.token,
            timeout=config.timeout,
        )

    def send_message(self, target: str, message: Message, target_type: Optional[str] = None) -> None:
        headers = {"User-Agent": "github-webhooks/1.0"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        response = requests.post(
            self.url,
            json={
                "platform": self.platform,
                "self_id": self.self_id,
                "target": target,
                "type": target_type,
                "text": message.text,
                "images": list(message.images),
            },
            headers=headers,
            timeout=self.timeout,
        )
        response.raise_for_status()

    def __repr__(self):
        return f"<HttpBotConnection {self.platform}:{self.self_id}>"


class BotRegistry:
    """The set of live bot connections, keyed by "platform:self_id"."""

    def __init__(self, bots: Optional[List[BotConnection]] = None):
        self._bots: Dict[str, BotConnection] = {}
        for bot in bots or []:
            self.add(bot)

    @staticmethod
    def key(bot: BotConnection) -> str:
        return f"{bot.platform}:{bot.self_id}"

    def add(self, bot: BotConnection) -> None:
        self._bots[self.key(bot)] = bot
        logger.info(f"Registered bot connection {self.key(bot)}")

    def remove(self, platform: str, self_id: str) -> Optional[BotConnection]:
        return self._bots.pop(f"{platform}:{self_id}", None)

    def get(self, platform: str, self_id: str) -> Optional[BotConnection]:
        return self._bots.get(f"{platform}:{self_id}")

    def __iter__(self) -> Iterator[BotConnection]:
        # snapshot, connections may come and go while a batch is delivered
        return iter(list(self._bots.values()))

    def __len__(self) -> int:
        return len(self._bots)


def build_registry(configs: List[BotConnectionConfig]) -> BotRegistry:
    return BotRegistry([HttpBotConnection.from_config(config) for config in configs])
