"""Stripe Checkout session creation for subscription signup."""

import logging
from typing import Optional

from paywall.payments.provider import StripeProvider
from paywall.store.models import PENDING_USER_ID

logger = logging.getLogger(__name__)


def create_checkout_session(
    provider: StripeProvider,
    price_ids: dict[str, str],
    plan: Optional[str],
    origin: str,
    user_id: Optional[str] = None,
    email: Optional[str] = None,
    family_name: Optional[str] = None,
    is_new_signup: bool = False,
) -> str:
    """Create a Stripe Checkout Session for subscription signup.

    userId, plan and isNewSignup travel as session metadata so the
    checkout.session.completed webhook can link the payment back to the
    family. Signups that have no account yet use the 'pending' userId.

    A plan missing from price_ids is sent with a null price; Stripe rejects
    the request and the error propagates to the caller.

    Args:
        provider: Stripe handle
        price_ids: Plan name -> Stripe Price ID
        plan: 'monthly' or 'yearly'
        origin: Frontend origin the customer returns to
        user_id: Family ID, or None for a signup in progress
        email: Prefilled customer email
        family_name: Family display name (metadata only)
        is_new_signup: True when checkout happens during account signup

    Returns:
        Stripe Checkout Session ID

    Raises:
        stripe.StripeError: On Stripe API errors
    """
    logger.info(
        f"Creating checkout session: plan={plan}, user={user_id}, "
        f"email={email}, new_signup={is_new_signup}"
    )

    success_url = f"{origin}?success=true"
    if is_new_signup:
        success_url += "&signup=true"

    session = provider.create_checkout_session(
        payment_method_types=["card"],
        line_items=[
            {
                "price": price_ids.get(plan) if plan else None,
                "quantity": 1,
            }
        ],
        mode="subscription",
        success_url=success_url,
        cancel_url=f"{origin}?canceled=true",
        customer_email=email,
        metadata={
            "userId": user_id or PENDING_USER_ID,
            "familyName": family_name,
            "plan": plan,
            "isNewSignup": "true" if is_new_signup else "false",
        },
    )

    logger.info(f"Created checkout session {session.id} for user {user_id or PENDING_USER_ID}")

    return session.id
