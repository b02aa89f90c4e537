from .subscription import Subscription, TARGET_TYPES

__all__ = ["Subscription", "TARGET_TYPES"]
