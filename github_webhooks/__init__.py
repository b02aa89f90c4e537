"""Deliver GitHub webhook notifications to subscribed chat targets."""

__version__ = "1.0.0"
