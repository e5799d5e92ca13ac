"""Subscription paywall backend: Stripe checkout, verification and webhooks."""
