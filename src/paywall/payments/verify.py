"""Payment verification and subscription restore by customer email."""

import logging
import time
from typing import Any, Optional

from paywall.payments.periods import (
    current_period_end,
    normalize_plan,
    plan_interval,
    subscription_end_date,
)
from paywall.payments.provider import StripeProvider

logger = logging.getLogger(__name__)


def _find_active_subscription(provider: StripeProvider, email: str) -> tuple[Any, Any]:
    """Look up (customer, active subscription) by email; either may be None.

    Only the first customer and the first active subscription are considered.
    """
    customer = provider.find_customer_by_email(email)
    if customer is None:
        logger.info(f"No customer found for email {email}")
        return None, None

    subscription = provider.find_active_subscription(customer["id"])
    if subscription is None:
        logger.info(f"No active subscriptions found for customer {customer['id']}")
    return customer, subscription


def verify_payment(provider: StripeProvider, email: str, now: Optional[float] = None) -> bool:
    """Check whether an email has an active, unexpired Stripe subscription.

    The period end is re-checked even for subscriptions Stripe reports as
    active, in case the status is stale.

    Args:
        provider: Stripe handle
        email: Customer email
        now: Current time in epoch seconds (defaults to time.time())

    Returns:
        True if a valid payment exists

    Raises:
        stripe.StripeError: On Stripe API errors
    """
    customer, subscription = _find_active_subscription(provider, email)
    if subscription is None:
        return False

    if now is None:
        now = time.time()

    period_end = current_period_end(subscription)
    if period_end is not None and period_end < int(now):
        logger.info(f"Subscription {subscription['id']} has expired for customer {customer['id']}")
        return False

    logger.info(f"Valid payment found for email {email}")
    return True


def restore_subscription(provider: StripeProvider, email: str) -> Optional[dict[str, Any]]:
    """Rebuild a subscription summary from Stripe for a re-authenticating user.

    Args:
        provider: Stripe handle
        email: Customer email

    Returns:
        Dict with id, status, customer, plan and current_period_end (ISO-8601),
        or None if no active subscription exists

    Raises:
        stripe.StripeError: On Stripe API errors
    """
    customer, subscription = _find_active_subscription(provider, email)
    if subscription is None:
        return None

    interval = plan_interval(subscription)
    logger.info(f"Found active subscription {subscription['id']}, interval={interval}")

    return {
        "id": subscription["id"],
        "status": subscription["status"],
        "customer": customer["id"],
        "plan": normalize_plan(interval).value,
        "current_period_end": subscription_end_date(subscription),
    }
