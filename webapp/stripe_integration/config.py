"""
Stripe Configuration

Credentials are read from the process environment on every call so a key
rotated in the .env file is picked up without a restart, and so the secret
is never accepted from a request.
"""

import os
import logging

logger = logging.getLogger(__name__)

STRIPE_API_BASE = 'https://api.stripe.com'


class StripeConfigError(Exception):
    """Raised when Stripe credentials are missing from the environment."""


def get_secret_key():
    """Return the Stripe secret key or raise StripeConfigError"""
    secret_key = os.getenv('STRIPE_SECRET_KEY')
    if not secret_key:
        raise StripeConfigError('STRIPE_SECRET_KEY is not configured')
    return secret_key


def get_webhook_secret():
    """Return the webhook signing secret, or None when unset"""
    return os.getenv('STRIPE_WEBHOOK_SECRET') or None


def get_api_base():
    """Stripe API host (overridable for stripe-mock in development), without /v1"""
    base = os.getenv('STRIPE_API_BASE', STRIPE_API_BASE).rstrip('/')
    if base.endswith('/v1'):
        base = base[:-3]
    return base


def get_request_timeout():
    """Socket timeout in seconds for Stripe HTTP calls"""
    return float(os.getenv('STRIPE_TIMEOUT', '30'))


def is_stripe_configured():
    """Check if Stripe is properly configured"""
    return bool(os.getenv('STRIPE_SECRET_KEY'))


def get_stripe_mode():
    """'test' for test-mode keys, 'live' otherwise, None when unconfigured"""
    secret_key = os.getenv('STRIPE_SECRET_KEY')
    if not secret_key:
        return None
    return 'test' if secret_key.startswith(('sk_test_', 'rk_test_')) else 'live'


def get_stripe_config():
    """Get a secret-free view of the Stripe configuration"""
    return {
        'configured': is_stripe_configured(),
        'mode': get_stripe_mode(),
        'webhook_configured': get_webhook_secret() is not None,
    }
