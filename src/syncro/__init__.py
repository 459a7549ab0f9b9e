"""Async SDK for the Syncro subscription-management API"""

from syncro.application.subscription_client import SubscriptionError, SyncroClient
from syncro.domain.models import (
    BlockchainSync,
    CancellationResult,
    CancellationStatus,
    EventType,
    Subscription,
    SubscriptionEvent,
)
from syncro.infrastructure.batch import BatchItem, BatchResult, OperationOutcome, run_batch
from syncro.infrastructure.http_client import ApiRequest, TransportFailure
from syncro.infrastructure.retry import RetryPolicy, perform_with_retry

__all__ = [
    "ApiRequest",
    "BatchItem",
    "BatchResult",
    "BlockchainSync",
    "CancellationResult",
    "CancellationStatus",
    "EventType",
    "OperationOutcome",
    "RetryPolicy",
    "Subscription",
    "SubscriptionError",
    "SubscriptionEvent",
    "SyncroClient",
    "TransportFailure",
    "perform_with_retry",
    "run_batch",
]
