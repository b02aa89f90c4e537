from typing import Optional

from pydantic import BaseModel, ConfigDict


class SubscriptionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    platform: str
    type: str
    target: str
    repo: str
    events: str = "all"


class CommandContext(BaseModel):
    """Who invoked a command, as resolved by the host chat framework."""

    platform: str
    guild_id: Optional[str] = None
    user_id: Optional[str] = None
    channel_id: Optional[str] = None
    is_admin: bool = False

    @property
    def target(self) -> Optional[str]:
        return self.guild_id or self.user_id or self.channel_id

    @property
    def target_type(self) -> str:
        if self.guild_id:
            return "group"
        if self.user_id:
            return "user"
        return "channel"


class SubscribeRequest(BaseModel):
    context: CommandContext
    repo: Optional[str] = None
    events: Optional[str] = None


class UnsubscribeRequest(BaseModel):
    context: CommandContext
    repo: Optional[str] = None
    target: Optional[str] = None


class ListRequest(BaseModel):
    context: CommandContext
    admin: bool = False
