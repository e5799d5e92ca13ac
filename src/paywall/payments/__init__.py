"""Stripe subscription and payment processing.

Handles checkout session creation, payment verification, subscription
restore and cancellation, and webhook reconciliation into Firestore.
"""

from paywall.payments.cancel import cancel_subscription
from paywall.payments.checkout import create_checkout_session
from paywall.payments.provider import StripeProvider
from paywall.payments.sync import update_user_subscription
from paywall.payments.verify import restore_subscription, verify_payment
from paywall.payments.webhooks import handle_webhook

__all__ = [
    "StripeProvider",
    "cancel_subscription",
    "create_checkout_session",
    "handle_webhook",
    "restore_subscription",
    "update_user_subscription",
    "verify_payment",
]
