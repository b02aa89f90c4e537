"""Shared fixtures: in-memory database, fake bot connections, app factory."""

import json

import pytest
from fastapi.testclient import TestClient

from github_webhooks import store
from github_webhooks.bots import BotRegistry
from github_webhooks.config import RepositoryConfig, Settings
from github_webhooks.database import Base, build_engine, build_session_factory
from github_webhooks.main import create_app
from github_webhooks.security import compute_signature

REPO = "acme/widgets"
SECRET = "s3cr3t"
API_KEY = "test-key"


ENV_VARS = (
    "DATABASE_URL", "WEBHOOK_PATH", "GITHUB_REPOSITORIES", "ALLOW_UNKNOWN_REPOSITORY",
    "ENABLE_UNKNOWN_EVENT", "ENABLE_WATCH", "ENABLE_IMAGE", "BOT_CONNECTIONS", "API_KEYS", "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep settings independent of the host environment."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class FakeBot:
    """Records every message instead of sending it."""

    def __init__(self, platform="chat", self_id="bot1", fail_targets=()):
        self.platform = platform
        self.self_id = self_id
        self.fail_targets = set(fail_targets)
        self.sent = []

    def send_message(self, target, message, target_type=None):
        if target in self.fail_targets:
            raise RuntimeError(f"cannot reach {target}")
        self.sent.append((target, message))


def make_settings(**overrides) -> Settings:
    values = dict(
        database_url="sqlite://",
        repositories=[RepositoryConfig(repo=REPO, secret=SECRET)],
        api_keys=[API_KEY],
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def db():
    engine = build_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    session = build_session_factory(engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def bot():
    return FakeBot()


@pytest.fixture
def make_client(bot):
    """Factory returning a started TestClient for the given settings."""
    clients = []

    def _make(settings=None, bots=None):
        app = create_app(settings or make_settings(), bots=BotRegistry(bots if bots is not None else [bot]))
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def client(make_client):
    return make_client()


def add_subscription(client, target="g1", repo=REPO, events="all", platform="chat", type="group"):
    db = client.app.state.session_factory()
    try:
        store.upsert(db, platform=platform, type=type, target=target, repo=repo, events=events)
    finally:
        db.close()


def post_webhook(client, event, payload, secret=SECRET, signature=None, path="/github/webhooks"):
    body = json.dumps(payload).encode("utf-8")
    headers = {"Content-Type": "application/json", "X-GitHub-Event": event}
    if signature is None and secret is not None:
        signature = compute_signature(secret, body)
    if signature is not None:
        headers["X-Hub-Signature-256"] = signature
    return client.post(path, content=body, headers=headers)


def push_payload(repo=REPO, commits=None):
    if commits is None:
        commits = [
            {"id": "a1b2c3d4e5f6", "message": "Fix widget alignment\n\nLonger description", "url": f"https://github.com/{repo}/commit/a1b2c3d4e5f6"},
            {"id": "0f9e8d7c6b5a", "message": "Add widget tests", "url": f"https://github.com/{repo}/commit/0f9e8d7c6b5a"},
        ]
    return {
        "ref": "refs/heads/main",
        "compare": f"https://github.com/{repo}/compare/a1b2c3d...0f9e8d7",
        "pusher": {"name": "octocat"},
        "sender": {"login": "octocat"},
        "repository": {"full_name": repo, "html_url": f"https://github.com/{repo}", "stargazers_count": 3},
        "commits": commits,
    }


def star_payload(repo=REPO, action="created"):
    return {
        "action": action,
        "sender": {"login": "hubot"},
        "repository": {"full_name": repo, "html_url": f"https://github.com/{repo}", "stargazers_count": 42},
    }
