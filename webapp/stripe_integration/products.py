"""
Stripe Product Sync Module
Pushes a local product to Stripe as Product -> Price -> Payment Link.

Prices and payment link line items are immutable on Stripe, so every sync
mints a new price and a new link. Idempotency keys make a repeated save with
the same amount reuse the objects created the first time instead of
duplicating them.
"""

import logging

from .client import stripe_request
from .money import normalize_currency

logger = logging.getLogger(__name__)

PRICE_SOURCE = 'myshop-admin'
PAYMENT_LINK_PAGE_SIZE = 100


class ProductToSync:
    """The subset of a local product that Stripe mirrors"""

    def __init__(self, id, title, price_cents, currency, description='', image='',
                 original_price_cents=None, category='', stripe_product_id=None,
                 stripe_price_id=None):
        if not id:
            raise ValueError('Product id is required')
        if not title:
            raise ValueError('Product title is required')
        if isinstance(price_cents, bool) or not isinstance(price_cents, int) or price_cents <= 0:
            raise ValueError('price_cents must be a positive integer')

        self.id = str(id)
        self.title = title
        self.price_cents = price_cents
        self.currency = normalize_currency(currency)
        self.description = description or ''
        self.image = image or ''
        self.original_price_cents = original_price_cents
        self.category = category or ''
        self.stripe_product_id = stripe_product_id or None
        self.stripe_price_id = stripe_price_id or None

    @classmethod
    def from_product(cls, product):
        """Build from a models.Product"""
        return cls(
            id=product.id,
            title=product.title,
            price_cents=product.price_cents,
            currency=product.currency,
            description=product.description,
            image=product.image,
            original_price_cents=product.original_price_cents,
            category=product.category,
            stripe_product_id=product.stripe_product_id,
            stripe_price_id=product.stripe_price_id,
        )

    @property
    def public_image(self):
        """Image URL if Stripe can fetch it, otherwise None"""
        if self.image and self.image.startswith('https://'):
            return self.image
        return None


# =============================================================================
# Idempotency keys
# =============================================================================

def product_create_key(local_product_id):
    return f"product-create-{local_product_id}"


def price_create_key(stripe_product_id, amount_cents, currency):
    return f"price-create-{stripe_product_id}-{amount_cents}-{currency}"


def payment_link_key(price_id):
    return f"payment-link-{price_id}"


# =============================================================================
# Product operations
# =============================================================================

def create_stripe_product(product):
    """Create a new product in Stripe, keyed on the local product ID"""
    logger.info(f"Creating Stripe product for {product.id} ({product.title})")

    params = {
        'name': product.title,
        'description': product.description,
        'active': True,
        'metadata': {
            'local_product_id': product.id,
            'category': product.category,
        },
    }
    if product.original_price_cents:
        params['metadata']['original_price_cents'] = product.original_price_cents
    if product.public_image:
        params['images'] = [product.public_image]

    return stripe_request(
        'POST', '/products', params,
        idempotency_key=product_create_key(product.id)
    )


def update_stripe_product(stripe_product_id, product):
    """Update name, description and image of an existing Stripe product"""
    logger.info(f"Updating Stripe product {stripe_product_id}")

    params = {}
    if product.title:
        params['name'] = product.title
    if product.description is not None:
        params['description'] = product.description
    if product.public_image:
        params['images'] = [product.public_image]

    return stripe_request('POST', f'/products/{stripe_product_id}', params)


def archive_stripe_product(stripe_product_id):
    """Mark a Stripe product as inactive (products with charges cannot be deleted)"""
    logger.info(f"Archiving Stripe product {stripe_product_id}")
    return stripe_request('POST', f'/products/{stripe_product_id}', {'active': False})


# =============================================================================
# Price operations
# =============================================================================

def create_stripe_price(stripe_product_id, price_cents, currency='usd'):
    """Create a one-off price in minor units (e.g. $49.00 = 4900)"""
    currency = normalize_currency(currency)
    logger.info(f"Creating Stripe price {price_cents} {currency} for {stripe_product_id}")

    return stripe_request(
        'POST', '/prices',
        {
            'product': stripe_product_id,
            'unit_amount': price_cents,
            'currency': currency,
            'metadata': {'source': PRICE_SOURCE},
        },
        idempotency_key=price_create_key(stripe_product_id, price_cents, currency)
    )


# =============================================================================
# Payment link operations
# =============================================================================

def create_payment_link(price_id):
    """Create a payment link for a single unit of a price"""
    logger.info(f"Creating Stripe payment link for price {price_id}")

    return stripe_request(
        'POST', '/payment_links',
        {'line_items': [{'price': price_id, 'quantity': 1}]},
        idempotency_key=payment_link_key(price_id)
    )


def update_payment_link(payment_link_id, active):
    """Activate or deactivate a payment link"""
    logger.info(f"Setting payment link {payment_link_id} active={active}")
    return stripe_request('POST', f'/payment_links/{payment_link_id}', {'active': active})


def list_payment_links(limit=PAYMENT_LINK_PAGE_SIZE):
    """First page of the account's payment links, with line items expanded"""
    response = stripe_request(
        'GET', '/payment_links',
        {'limit': limit, 'expand': ['data.line_items']}
    )
    return response.get('data', [])


def list_payment_link_line_items(payment_link_id):
    """Line items of a payment link"""
    response = stripe_request('GET', f'/payment_links/{payment_link_id}/line_items')
    return response.get('data', [])


# =============================================================================
# Full sync workflow
# =============================================================================

def sync_product_to_stripe(product):
    """
    Sync a product to Stripe: upsert product, create price, create payment link.

    Steps run strictly in order. A failing step stops the remaining ones and
    nothing already created is rolled back; an orphaned price is harmless.
    The local record is not touched - the caller persists the returned IDs.

    Args:
        product: ProductToSync instance

    Returns:
        dict: {'success': True, 'stripe_product_id', 'stripe_price_id',
               'stripe_payment_link_id', 'stripe_link'} or
              {'success': False, 'error': message}
    """
    try:
        logger.info(f"Starting Stripe sync for product {product.id}")

        if product.stripe_product_id:
            stripe_product = update_stripe_product(product.stripe_product_id, product)
        else:
            stripe_product = create_stripe_product(product)

        stripe_price = create_stripe_price(
            stripe_product['id'], product.price_cents, product.currency
        )
        payment_link = create_payment_link(stripe_price['id'])

        logger.info(
            f"Stripe sync completed for product {product.id}: "
            f"product={stripe_product['id']} price={stripe_price['id']} "
            f"link={payment_link['id']}"
        )
        return {
            'success': True,
            'stripe_product_id': stripe_product['id'],
            'stripe_price_id': stripe_price['id'],
            'stripe_payment_link_id': payment_link['id'],
            'stripe_link': payment_link['url'],
        }

    except Exception as e:
        logger.exception(f"Stripe sync failed for product {product.id}: {e}")
        return {'success': False, 'error': str(e) or 'Unknown error during Stripe sync'}
