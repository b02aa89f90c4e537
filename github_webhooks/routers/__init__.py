# github_webhooks/routers/__init__.py
from .webhooks import build_router as build_webhooks_router
from .subscriptions import router as subscriptions_router

__all__ = ["build_webhooks_router", "subscriptions_router"]
