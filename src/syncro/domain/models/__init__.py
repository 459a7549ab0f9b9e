"""Domain models"""

from syncro.domain.models.event import EventListener, EventType, SubscriptionEvent
from syncro.domain.models.subscription import (
    BlockchainSync,
    CancellationResult,
    CancellationStatus,
    Subscription,
)

__all__ = [
    "BlockchainSync",
    "CancellationResult",
    "CancellationStatus",
    "EventListener",
    "EventType",
    "Subscription",
    "SubscriptionEvent",
]
