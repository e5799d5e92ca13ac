"""Subscription state synchronization into the family record store."""

import logging

from google.cloud.firestore import AsyncClient

from paywall.store.models import SUBSCRIPTION_FIELD, Collection, SubscriptionData

logger = logging.getLogger(__name__)


async def update_user_subscription(
    db: AsyncClient,
    user_id: str | None,
    subscription: SubscriptionData,
    collection: str = Collection.FAMILIES,
) -> None:
    """Merge a subscription delta into the family's subscriptionData map.

    Keys not present in the delta keep their stored values, and the document
    is created if it does not exist yet.

    Never raises: a failed write is logged and dropped so the caller (the
    webhook handler in particular) can still acknowledge the provider. The
    record can be rebuilt later from Stripe state.

    Args:
        db: Firestore async client
        user_id: Family document ID. Falsy values skip the write.
        subscription: Delta to apply
        collection: Collection holding family documents
    """
    if not user_id:
        logger.error("No userId provided for subscription update - skipping")
        return

    data = subscription.to_document()

    try:
        doc_ref = db.collection(collection).document(user_id)
        await doc_ref.set({SUBSCRIPTION_FIELD: data}, merge=True)
    except Exception as e:
        # Log error but don't fail the request - Stripe is source of truth
        logger.error(f"Failed to update subscription for user {user_id}: {e}")
        return

    logger.info(f"Updated subscription for user {user_id}: {data}")
