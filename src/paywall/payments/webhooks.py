"""Stripe webhook handler and event processing."""

import logging
from typing import Any, Mapping, Optional

import stripe
from aiohttp import web
from google.cloud.firestore import AsyncClient

from paywall.payments.periods import map_status, parse_plan, subscription_end_date
from paywall.payments.provider import StripeProvider
from paywall.payments.sync import update_user_subscription
from paywall.store.models import (
    PENDING_USER_ID,
    Collection,
    SubscriptionData,
    SubscriptionStatus,
)

logger = logging.getLogger(__name__)


async def handle_webhook(
    payload: bytes,
    sig_header: Optional[str],
    provider: StripeProvider,
    db: AsyncClient,
    collection: str = Collection.FAMILIES,
) -> web.Response:
    """Handle and verify Stripe webhook events.

    Verifies the webhook signature, routes events to the matching handler and
    returns the HTTP response Stripe expects.

    Args:
        payload: Raw webhook payload bytes
        sig_header: Stripe-Signature header value
        provider: Stripe handle (holds the webhook secret)
        db: Firestore async client
        collection: Collection holding family documents

    Returns:
        aiohttp.web.Response: 400 if the event cannot be verified, 500 if
        processing raised (Stripe will retry), otherwise 200
    """
    if not sig_header:
        logger.error("Webhook signature verification failed: missing Stripe-Signature header")
        return web.Response(status=400, text="Webhook Error: Missing Stripe-Signature header")

    # Verify webhook signature
    try:
        event = provider.construct_event(payload, sig_header)
    except ValueError as e:
        logger.error(f"Invalid webhook payload: {e}")
        return web.Response(status=400, text=f"Webhook Error: {e}")
    except stripe.SignatureVerificationError as e:
        logger.error(f"Webhook signature verification failed: {e}")
        return web.Response(status=400, text=f"Webhook Error: {e}")

    event_type = event["type"]
    logger.info(f"Received webhook: {event_type}")

    # Route event to handler
    try:
        obj = event["data"]["object"]
        if event_type == "checkout.session.completed":
            await _handle_checkout_completed(obj, provider, db, collection)
        elif event_type == "invoice.payment_succeeded":
            await _handle_invoice_payment_succeeded(obj, provider)
        elif event_type == "customer.subscription.updated":
            await _handle_subscription_updated(obj, db, collection)
        elif event_type == "customer.subscription.deleted":
            await _handle_subscription_deleted(obj, db, collection)
        elif event_type == "invoice.payment_failed":
            await _handle_invoice_payment_failed(obj, provider, db, collection)
        else:
            # Unknown event type - acknowledge but don't process
            logger.info(f"Unhandled event type: {event_type}")

    except Exception as e:
        logger.exception(f"Error processing webhook {event_type}: {e}")
        # Return 500 so Stripe will retry
        return web.json_response({"error": "Webhook processing failed"}, status=500)

    return web.json_response({"received": True})


def _linked_user_id(obj: Mapping[str, Any]) -> Optional[str]:
    """Family ID from metadata; None when absent or still the 'pending' sentinel."""
    metadata = obj.get("metadata") or {}
    user_id = metadata.get("userId")
    if not user_id or user_id == PENDING_USER_ID:
        return None
    return user_id


async def _handle_checkout_completed(
    session: Mapping[str, Any],
    provider: StripeProvider,
    db: AsyncClient,
    collection: str,
) -> None:
    """Handle checkout.session.completed event.

    Activates the subscription on an existing family record. Sessions from a
    signup in progress (userId 'pending') have no record to write to yet.
    """
    logger.info(f"Payment completed for session {session.get('id')}")

    user_id = _linked_user_id(session)
    subscription_id = session.get("subscription")

    if not subscription_id or not user_id:
        logger.warning(
            f"checkout.session.completed not linked to a family record (new signup?): "
            f"customer={session.get('customer')}, "
            f"email={session.get('customer_email')}, subscription={subscription_id}"
        )
        return

    subscription = provider.retrieve_subscription(subscription_id)
    metadata = session.get("metadata") or {}

    await update_user_subscription(
        db,
        user_id,
        SubscriptionData(
            status=SubscriptionStatus.ACTIVE,
            plan=parse_plan(metadata.get("plan")),
            customer_id=session.get("customer"),
            subscription_id=subscription_id,
            subscription_end_date=subscription_end_date(subscription),
        ),
        collection=collection,
    )

    logger.info(f"Subscription activated for existing user {user_id}")


async def _handle_invoice_payment_succeeded(
    invoice: Mapping[str, Any],
    provider: StripeProvider,
) -> None:
    """Handle invoice.payment_succeeded event.

    Recurring payments are logged only; the renewal itself reaches the record
    through customer.subscription.updated.
    """
    subscription_id = invoice.get("subscription")
    if not subscription_id:
        logger.info("invoice.payment_succeeded without subscription - skipping")
        return

    subscription = provider.retrieve_subscription(subscription_id)
    customer = provider.retrieve_customer(subscription["customer"])
    logger.info(
        f"Recurring payment succeeded for {customer.get('email')} "
        f"(subscription {subscription_id})"
    )


async def _handle_subscription_updated(
    subscription: Mapping[str, Any],
    db: AsyncClient,
    collection: str,
) -> None:
    """Handle customer.subscription.updated event.

    Syncs subscription status and period end from Stripe.
    """
    stripe_status = subscription.get("status")
    logger.info(f"Subscription {subscription.get('id')} updated, status={stripe_status}")

    user_id = _linked_user_id(subscription)
    if not user_id:
        logger.info("subscription.updated without linked userId - skipping")
        return

    status = map_status(stripe_status)
    end_date = None
    if status != SubscriptionStatus.CANCELLED:
        end_date = subscription_end_date(subscription)

    await update_user_subscription(
        db,
        user_id,
        SubscriptionData(status=status, subscription_end_date=end_date),
        collection=collection,
    )

    logger.info(f"Updated user {user_id} subscription status to {status.value}")


async def _handle_subscription_deleted(
    subscription: Mapping[str, Any],
    db: AsyncClient,
    collection: str,
) -> None:
    """Handle customer.subscription.deleted event."""
    user_id = _linked_user_id(subscription)
    if user_id:
        await update_user_subscription(
            db,
            user_id,
            SubscriptionData(status=SubscriptionStatus.CANCELLED, subscription_end_date=None),
            collection=collection,
        )

    logger.info(f"Subscription cancelled: {subscription.get('id')}")


async def _handle_invoice_payment_failed(
    invoice: Mapping[str, Any],
    provider: StripeProvider,
    db: AsyncClient,
    collection: str,
) -> None:
    """Handle invoice.payment_failed event.

    Marks the family's subscription as expired.
    """
    subscription_id = invoice.get("subscription")
    if not subscription_id:
        logger.info("invoice.payment_failed without subscription - skipping")
        return

    subscription = provider.retrieve_subscription(subscription_id)
    logger.warning(f"Payment failed for subscription {subscription_id}")

    user_id = _linked_user_id(subscription)
    if not user_id:
        logger.warning(f"invoice.payment_failed: subscription {subscription_id} has no userId")
        return

    await update_user_subscription(
        db,
        user_id,
        SubscriptionData(
            status=SubscriptionStatus.EXPIRED,
            subscription_end_date=subscription_end_date(subscription),
        ),
        collection=collection,
    )

    logger.info(f"Marked subscription {subscription_id} as expired due to payment failure")
