"""Lifecycle notifications emitted by single subscription operations"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable, Optional

if TYPE_CHECKING:
    from syncro.domain.models.subscription import CancellationResult


class EventType(str, Enum):
    """Lifecycle stage of an operation"""

    CANCELLING = "cancelling"
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True)
class SubscriptionEvent:
    """A single lifecycle notification"""

    type: EventType
    subscription_id: str
    result: Optional["CancellationResult"] = None  # Set on SUCCESS
    error: Optional[str] = None  # Set on FAILURE


EventListener = Callable[[SubscriptionEvent], None]
