from typing import Annotated, List, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class RepositoryConfig(BaseModel):
    """A monitored repository and its webhook secret.

    The per-repository flags are optional; when left unset the global
    flag of the same name applies.
    """

    repo: str
    secret: str
    enable_watch: Optional[bool] = None
    enable_unknown_event: Optional[bool] = None

    @field_validator("repo")
    @classmethod
    def validate_repo(cls, v: str) -> str:
        v = v.strip()
        owner, _, name = v.partition("/")
        if not owner or not name:
            raise ValueError(f"repo must be in 'owner/name' form, got {v!r}")
        return v


class BotConnectionConfig(BaseModel):
    platform: str
    self_id: str
    url: str
    token: Optional[str] = None
    timeout: float = 10.0


class Settings(BaseSettings):
    """Service configuration read from the environment (and a .env file).

    GITHUB_REPOSITORIES and BOT_CONNECTIONS hold JSON lists, e.g.
    GITHUB_REPOSITORIES='[{"repo": "acme/widgets", "secret": "s3cr3t"}]'.
    API_KEYS is comma separated.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_ignore_empty=True,
        populate_by_name=True,
        extra="ignore",
    )

    database_url: str = "sqlite:///./github_webhooks.db"
    webhook_path: str = "/github/webhooks"
    repositories: List[RepositoryConfig] = Field(default_factory=list, validation_alias="github_repositories")
    allow_unknown_repository: bool = False
    enable_unknown_event: bool = False
    enable_watch: bool = False
    enable_image: bool = False
    bots: List[BotConnectionConfig] = Field(default_factory=list, validation_alias="bot_connections")
    api_keys: Annotated[List[str], NoDecode] = Field(default_factory=list)
    log_level: str = "INFO"

    @field_validator("webhook_path")
    @classmethod
    def validate_webhook_path(cls, v: str) -> str:
        if not v.startswith("/"):
            raise ValueError("webhook_path must start with '/'")
        return v

    @field_validator("repositories")
    @classmethod
    def validate_unique_repositories(cls, v: List[RepositoryConfig]) -> List[RepositoryConfig]:
        seen = set()
        for item in v:
            if item.repo in seen:
                raise ValueError(f"repository {item.repo} is configured more than once")
            seen.add(item.repo)
        return v

    @field_validator("api_keys", mode="before")
    @classmethod
    def split_api_keys(cls, v):
        if isinstance(v, str):
            return [key.strip() for key in v.split(",") if key.strip()]
        return v

    def find_repository(self, full_name: str) -> Optional[RepositoryConfig]:
        for item in self.repositories:
            if item.repo == full_name:
                return item
        return None

    def watch_enabled(self, repo_config: Optional[RepositoryConfig]) -> bool:
        if repo_config is not None and repo_config.enable_watch is not None:
            return repo_config.enable_watch
        return self.enable_watch

    def unknown_event_enabled(self, repo_config: Optional[RepositoryConfig]) -> bool:
        if repo_config is not None and repo_config.enable_unknown_event is not None:
            return repo_config.enable_unknown_event
        return self.enable_unknown_event


def load_settings() -> Settings:
    """Build Settings from the process environment.

    Raises:
        pydantic_settings.SettingsError: malformed JSON in one of the list variables.
        pydantic.ValidationError: a value fails validation.
    """
    return Settings()
