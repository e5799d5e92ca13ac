"""HTTP handlers for the /api payment endpoints."""

import logging
from typing import Any

from aiohttp import web

from paywall.payments.cancel import cancel_subscription
from paywall.payments.checkout import create_checkout_session
from paywall.payments.verify import restore_subscription, verify_payment
from paywall.payments.webhooks import handle_webhook

logger = logging.getLogger(__name__)


async def _read_json(request: web.Request) -> dict[str, Any]:
    """Parse a JSON object body; malformed or non-object bodies read as {}."""
    try:
        body = await request.json()
    except ValueError:
        logger.warning(f"Malformed JSON body on {request.path}")
        return {}
    return body if isinstance(body, dict) else {}


def _failure(message: str, error: Exception) -> web.Response:
    return web.json_response({"error": message, "details": str(error)}, status=500)


async def create_checkout_session_endpoint(request: web.Request) -> web.Response:
    """Handle POST /api/create-checkout-session."""
    body = await _read_json(request)
    config = request.app["config"]

    try:
        session_id = create_checkout_session(
            request.app["provider"],
            config.price_ids,
            plan=body.get("plan"),
            origin=request.headers.get("Origin", ""),
            user_id=body.get("userId"),
            email=body.get("email"),
            family_name=body.get("familyName"),
            is_new_signup=bool(body.get("isNewSignup")),
        )
    except Exception as e:
        logger.error(f"Stripe checkout error: {e}")
        return _failure("Failed to create checkout session", e)

    return web.json_response({"id": session_id})


async def verify_payment_endpoint(request: web.Request) -> web.Response:
    """Handle POST /api/verify-payment."""
    body = await _read_json(request)
    email = body.get("email")
    if not email:
        return web.json_response({"error": "Email is required"}, status=400)

    logger.info(f"Verifying payment for email {email}")

    try:
        has_valid_payment = verify_payment(request.app["provider"], email)
    except Exception as e:
        logger.error(f"Error verifying payment: {e}")
        return _failure("Failed to verify payment", e)

    return web.json_response({"hasValidPayment": has_valid_payment})


async def restore_subscription_endpoint(request: web.Request) -> web.Response:
    """Handle POST /api/restore-subscription.

    userId is accepted but the lookup is by email only, so a subscription
    can be restored before the family account exists locally.
    """
    body = await _read_json(request)
    email = body.get("email")

    logger.info(f"Checking for existing subscription for {email}")

    try:
        subscription = restore_subscription(request.app["provider"], email)
    except Exception as e:
        logger.error(f"Error checking subscription: {e}")
        return _failure("Failed to check subscription", e)

    return web.json_response({"subscription": subscription})


async def cancel_subscription_endpoint(request: web.Request) -> web.Response:
    """Handle POST /api/cancel-subscription."""
    body = await _read_json(request)
    user_id = body.get("userId")
    subscription_id = body.get("subscriptionId")
    if not user_id or not subscription_id:
        return web.json_response({"error": "Missing userId or subscriptionId"}, status=400)

    try:
        canceled = await cancel_subscription(
            request.app["provider"],
            request.app["db"],
            user_id,
            subscription_id,
            collection=request.app["config"].families_collection,
        )
    except Exception as e:
        logger.error(f"Error cancelling subscription: {e}")
        return _failure("Failed to cancel subscription", e)

    return web.json_response({"success": True, "canceled": canceled})


async def webhook_endpoint(request: web.Request) -> web.Response:
    """Handle POST /api/webhook.

    The body is read raw; the signature covers the exact bytes Stripe sent.
    """
    payload = await request.read()

    return await handle_webhook(
        payload,
        request.headers.get("Stripe-Signature"),
        request.app["provider"],
        request.app["db"],
        collection=request.app["config"].families_collection,
    )


def add_routes(app: web.Application) -> None:
    """Register the payment API under /api."""
    app.router.add_post("/api/create-checkout-session", create_checkout_session_endpoint)
    app.router.add_post("/api/verify-payment", verify_payment_endpoint)
    app.router.add_post("/api/restore-subscription", restore_subscription_endpoint)
    app.router.add_post("/api/cancel-subscription", cancel_subscription_endpoint)
    app.router.add_post("/api/webhook", webhook_endpoint)
