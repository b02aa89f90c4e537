from sqlalchemy import Column, String, Text
from ..database import Base

TARGET_TYPES = ("group", "user", "channel")


class Subscription(Base):
    __tablename__ = "github_subscribers"

    platform = Column(String(60), primary_key=True)
    type = Column(String(60), primary_key=True)
    target = Column(String(150), primary_key=True)
    repo = Column(String(150), primary_key=True, index=True)
    events = Column(Text, nullable=False, default="all")  # "all" or comma separated event names

    def __repr__(self):
        return f"<Subscription {self.platform}:{self.type}:{self.target} {self.repo} [{self.events}]>"
