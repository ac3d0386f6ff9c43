"""
Stripe Integration Package for MyShop Admin
"""

from .config import get_stripe_config, is_stripe_configured, StripeConfigError
from .client import stripe_request, StripeAPIError
from .products import ProductToSync, sync_product_to_stripe
from .archive import archive_product_in_stripe
from .money import cents_to_price, price_to_cents, SUPPORTED_CURRENCIES
from .webhooks import process_webhook, WEBHOOK_HANDLERS
from .connection import check_stripe_connection

__all__ = [
    'get_stripe_config',
    'is_stripe_configured',
    'StripeConfigError',
    'stripe_request',
    'StripeAPIError',
    'ProductToSync',
    'sync_product_to_stripe',
    'archive_product_in_stripe',
    'cents_to_price',
    'price_to_cents',
    'SUPPORTED_CURRENCIES',
    'process_webhook',
    'WEBHOOK_HANDLERS',
    'check_stripe_connection'
]
