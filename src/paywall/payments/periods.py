"""Period-end derivation and Stripe-to-local vocabulary mapping."""

from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from paywall.store.models import Plan, SubscriptionStatus

# Stripe subscription status -> local status. Anything else maps to EXPIRED.
STATUS_MAP: dict[str, SubscriptionStatus] = {
    "active": SubscriptionStatus.ACTIVE,
    "past_due": SubscriptionStatus.EXPIRED,
    "canceled": SubscriptionStatus.CANCELLED,
    "unpaid": SubscriptionStatus.EXPIRED,
}


def _items(subscription: Mapping[str, Any]) -> list:
    items = subscription.get("items") or {}
    return items.get("data") or []


def earliest_period_end(subscription: Mapping[str, Any]) -> Optional[int]:
    """Earliest current_period_end (epoch seconds) across subscription items.

    A subscription with several items expires with its earliest-expiring
    item. Items without a period end are ignored; returns None if none remain.
    """
    ends = [item.get("current_period_end") for item in _items(subscription)]
    ends = [end for end in ends if end]
    if not ends:
        return None
    return min(ends)


def to_iso(epoch_seconds: Optional[int]) -> Optional[str]:
    """Render epoch seconds as ISO-8601 UTC with milliseconds, e.g. 2025-01-01T00:00:00.000Z."""
    if epoch_seconds is None:
        return None
    dt = datetime.fromtimestamp(epoch_seconds, tz=timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def subscription_end_date(subscription: Mapping[str, Any]) -> Optional[str]:
    """ISO-8601 end date of the earliest-expiring item, or None."""
    return to_iso(earliest_period_end(subscription))


def current_period_end(subscription: Mapping[str, Any]) -> Optional[int]:
    """Subscription-level period end, falling back to the item-level value.

    Newer Stripe API versions only report current_period_end on items.
    """
    return subscription.get("current_period_end") or earliest_period_end(subscription)


def map_status(stripe_status: Optional[str]) -> SubscriptionStatus:
    """Map a Stripe subscription status onto the local status vocabulary."""
    return STATUS_MAP.get(stripe_status or "", SubscriptionStatus.EXPIRED)


def normalize_plan(interval: Optional[str]) -> Plan:
    """Map a Stripe recurring interval ('month', 'year') onto a plan name."""
    return Plan.YEARLY if interval == "year" else Plan.MONTHLY


def plan_interval(subscription: Mapping[str, Any]) -> Optional[str]:
    """Recurring interval of the subscription's first item, if any."""
    items = _items(subscription)
    if not items:
        return None
    price = items[0].get("price") or {}
    recurring = price.get("recurring") or {}
    return recurring.get("interval")


def parse_plan(value: Optional[str]) -> Optional[Plan]:
    """Plan named in checkout metadata, or None if missing or unrecognized."""
    try:
        return Plan(value)
    except ValueError:
        return None
