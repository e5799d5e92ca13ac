"""Immediate subscription cancellation."""

import logging
from typing import Any

from google.cloud.firestore import AsyncClient

from paywall.payments.provider import StripeProvider
from paywall.payments.sync import update_user_subscription
from paywall.store.models import Collection, SubscriptionData, SubscriptionStatus

logger = logging.getLogger(__name__)


async def cancel_subscription(
    provider: StripeProvider,
    db: AsyncClient,
    user_id: str,
    subscription_id: str,
    collection: str = Collection.FAMILIES,
) -> Any:
    """Cancel a Stripe subscription now and mirror it on the family record.

    The local write happens before customer.subscription.deleted arrives so
    the UI updates at once; the webhook later writes the same state.

    Returns:
        The cancelled Stripe Subscription object

    Raises:
        stripe.StripeError: On Stripe API errors (no local write happens)
    """
    canceled = provider.cancel_subscription(subscription_id)
    logger.info(f"Cancelled subscription {subscription_id} for user {user_id}")

    await update_user_subscription(
        db,
        user_id,
        SubscriptionData(status=SubscriptionStatus.CANCELLED, subscription_end_date=None),
        collection=collection,
    )

    return canceled
