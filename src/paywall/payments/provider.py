"""Stripe API handle used by the checkout, verification and webhook paths."""

import logging
from typing import Any, Optional

import stripe

from paywall.config.settings import AppConfig

logger = logging.getLogger(__name__)


class StripeProvider:
    """Thin wrapper over the Stripe resource API.

    Holds the secret key and webhook secret and passes the key on every call
    instead of setting the module-global ``stripe.api_key``, so independent
    handles (and test doubles) can coexist in one process. Results come back
    as plain dicts (``StripeObject.to_dict()``) so callers never depend on
    the SDK object types.
    """

    def __init__(self, secret_key: str, webhook_secret: str):
        self.secret_key = secret_key
        self.webhook_secret = webhook_secret

    @classmethod
    def from_config(cls, config: AppConfig) -> "StripeProvider":
        """Create a provider from application configuration."""
        if not config.stripe_secret_key.get_secret_value():
            logger.warning("stripe_secret_key is not set - Stripe calls will fail")
        if not config.stripe_webhook_secret.get_secret_value():
            logger.warning("stripe_webhook_secret is not set - webhooks will be rejected")
        return cls(
            secret_key=config.stripe_secret_key.get_secret_value(),
            webhook_secret=config.stripe_webhook_secret.get_secret_value(),
        )

    def construct_event(self, payload: bytes, sig_header: str) -> dict[str, Any]:
        """Verify the Stripe-Signature header and parse the event into a dict.

        Raises:
            ValueError: On a malformed payload
            stripe.SignatureVerificationError: On a bad or missing signature
        """
        event = stripe.Webhook.construct_event(payload, sig_header, self.webhook_secret)
        return event.to_dict()

    def find_customer_by_email(self, email: str) -> Optional[dict[str, Any]]:
        """Return the first customer with this exact email, or None."""
        customers = stripe.Customer.list(email=email, limit=1, api_key=self.secret_key)
        if not customers.data:
            return None
        return customers.data[0].to_dict()

    def find_active_subscription(self, customer_id: str) -> Optional[dict[str, Any]]:
        """Return the first active subscription for a customer, or None."""
        subscriptions = stripe.Subscription.list(
            customer=customer_id,
            status="active",
            limit=1,
            api_key=self.secret_key,
        )
        if not subscriptions.data:
            return None
        return subscriptions.data[0].to_dict()

    def retrieve_subscription(self, subscription_id: str) -> dict[str, Any]:
        return stripe.Subscription.retrieve(subscription_id, api_key=self.secret_key).to_dict()

    def retrieve_customer(self, customer_id: str) -> dict[str, Any]:
        return stripe.Customer.retrieve(customer_id, api_key=self.secret_key).to_dict()

    def cancel_subscription(self, subscription_id: str) -> dict[str, Any]:
        """Cancel a subscription immediately (not at period end)."""
        return stripe.Subscription.cancel(subscription_id, api_key=self.secret_key).to_dict()

    def create_checkout_session(self, **params: Any) -> Any:
        return stripe.checkout.Session.create(api_key=self.secret_key, **params)
