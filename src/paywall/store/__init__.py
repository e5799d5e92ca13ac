"""Firestore-backed family subscription records."""

from paywall.store.client import create_firestore_client
from paywall.store.models import (
    PENDING_USER_ID,
    Collection,
    Plan,
    SubscriptionData,
    SubscriptionStatus,
)

__all__ = [
    "Collection",
    "PENDING_USER_ID",
    "Plan",
    "SubscriptionData",
    "SubscriptionStatus",
    "create_firestore_client",
]
