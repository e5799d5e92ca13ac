"""Lightweight collection-name constants and subscription field enums."""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class Collection:
    """Firestore collection names."""

    FAMILIES = "families"


# Field holding the nested subscription map on a family document
SUBSCRIPTION_FIELD = "subscriptionData"

# Sentinel userId for checkouts started before the family account exists
PENDING_USER_ID = "pending"


class SubscriptionStatus(str, Enum):
    """Local subscription status stored on the family record."""

    ACTIVE = "active"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


class Plan(str, Enum):
    """Billing plan vocabulary used by the application."""

    MONTHLY = "monthly"
    YEARLY = "yearly"


@dataclass
class SubscriptionData:
    """Delta applied to a family's subscriptionData map.

    Fields left as None are omitted from the write so stored values survive,
    except subscriptionEndDate which is written explicitly (null included).
    """

    status: SubscriptionStatus
    subscription_end_date: str | None = None  # ISO-8601, UTC
    plan: Plan | None = None
    customer_id: str | None = None
    subscription_id: str | None = None

    def __post_init__(self) -> None:
        if self.status == SubscriptionStatus.CANCELLED and self.subscription_end_date is not None:
            raise ValueError("cancelled subscriptions cannot carry an end date")

    def to_document(self) -> dict[str, Any]:
        """Render as the camelCase map stored in Firestore."""
        doc: dict[str, Any] = {"status": self.status.value}
        if self.plan is not None:
            doc["plan"] = self.plan.value
        if self.customer_id is not None:
            doc["customerId"] = self.customer_id
        if self.subscription_id is not None:
            doc["subscriptionId"] = self.subscription_id
        doc["subscriptionEndDate"] = self.subscription_end_date
        return doc
