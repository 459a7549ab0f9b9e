"""Subscription models - resources returned by the subscription API"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

_KNOWN_FIELDS = (
    "id",
    "name",
    "price",
    "billing_cycle",
    "status",
    "renewal_url",
    "cancellation_url",
)


class CancellationStatus(str, Enum):
    """Outcome of a cancellation request"""

    CANCELLED = "cancelled"
    FAILED = "failed"
    PARTIAL = "partial"


@dataclass
class Subscription:
    """A subscription as reported by the API"""

    id: str
    name: str = ""
    price: float = 0.0
    billing_cycle: str = ""
    status: str = ""
    renewal_url: Optional[str] = None
    cancellation_url: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)  # Fields the API added that we don't model

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Subscription":
        """Build a subscription from an API payload

        Raises:
            ValueError: If the payload has no id
        """
        if not isinstance(data, dict) or data.get("id") is None:
            raise ValueError("Subscription payload is missing 'id'")

        return cls(
            id=str(data["id"]),
            name=data.get("name") or "",
            price=float(data.get("price") or 0.0),
            billing_cycle=data.get("billing_cycle") or "",
            status=data.get("status") or "",
            renewal_url=data.get("renewal_url"),
            cancellation_url=data.get("cancellation_url"),
            extra={k: v for k, v in data.items() if k not in _KNOWN_FIELDS},
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize back to the API's field names"""
        payload: Dict[str, Any] = dict(self.extra)
        payload.update(
            {
                "id": self.id,
                "name": self.name,
                "price": self.price,
                "billing_cycle": self.billing_cycle,
                "status": self.status,
            }
        )
        if self.renewal_url is not None:
            payload["renewal_url"] = self.renewal_url
        if self.cancellation_url is not None:
            payload["cancellation_url"] = self.cancellation_url
        return payload


@dataclass
class BlockchainSync:
    """On-chain sync status echoed back by a cancellation"""

    synced: bool = False
    transaction_hash: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["BlockchainSync"]:
        if not isinstance(data, dict):
            return None
        return cls(
            synced=bool(data.get("synced", False)),
            transaction_hash=data.get("transactionHash") or data.get("transaction_hash"),
            error=data.get("error"),
        )


@dataclass
class CancellationResult:
    """Result of cancelling a subscription"""

    success: bool
    status: CancellationStatus
    subscription: Subscription
    redirect_url: Optional[str] = None  # Where the user finishes cancellation, if anywhere
    blockchain: Optional[BlockchainSync] = None
