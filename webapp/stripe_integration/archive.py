"""
Stripe Product Archive Module

Deactivates the payment link and product of a local product that is about
to be deleted so it can no longer be bought. Archiving is best-effort: every
Stripe failure is reported as a warning and the local delete goes ahead.
"""

import logging

from .config import is_stripe_configured
from .products import (
    archive_stripe_product, update_payment_link,
    list_payment_links, list_payment_link_line_items
)

logger = logging.getLogger(__name__)

NO_MATCH_WARNING = 'No matching payment link found in Stripe'


def _skipped(reason):
    return {'success': True, 'archived': False, 'skipped': True, 'reason': reason}


def _line_item_product_id(line_items):
    """Stripe product ID referenced by the first line item's price"""
    for item in line_items or []:
        price = item.get('price') or {}
        product_id = price.get('product')
        if isinstance(product_id, dict):
            product_id = product_id.get('id')
        if product_id:
            return product_id
    return None


def find_payment_link(stripe_link, payment_links):
    """Match a stored checkout URL against fetched payment links"""
    for link in payment_links:
        if link.get('url') == stripe_link or (link.get('id') and link['id'] in stripe_link):
            return link
    return None


def _deactivate_link(payment_link_id, warnings):
    try:
        update_payment_link(payment_link_id, False)
        logger.info(f"Payment link deactivated: {payment_link_id}")
    except Exception as e:
        warnings.append(f"Payment link deactivate: {e}")
        logger.warning(f"Failed to deactivate payment link {payment_link_id}: {e}")


def _archive_product(stripe_product_id, warnings):
    try:
        archive_stripe_product(stripe_product_id)
        logger.info(f"Stripe product archived: {stripe_product_id}")
        return True
    except Exception as e:
        warnings.append(f"Product archive: {e}")
        logger.warning(f"Failed to archive Stripe product {stripe_product_id}: {e}")
        return False


def _archive_by_ids(product, warnings):
    """Archive using the identifiers stored by a previous sync"""
    stripe_product_id = product.stripe_product_id

    if product.stripe_payment_link_id:
        _deactivate_link(product.stripe_payment_link_id, warnings)

        if not stripe_product_id:
            try:
                stripe_product_id = _line_item_product_id(
                    list_payment_link_line_items(product.stripe_payment_link_id)
                )
            except Exception as e:
                warnings.append(f"Payment link lookup: {e}")
                logger.warning(
                    f"Failed to read line items of {product.stripe_payment_link_id}: {e}"
                )

    if stripe_product_id:
        _archive_product(stripe_product_id, warnings)
    return stripe_product_id


def _archive_by_link(product, warnings):
    """Legacy rows that only stored the checkout URL"""
    match = find_payment_link(product.stripe_link, list_payment_links())
    if not match:
        logger.warning(f"No matching Stripe payment link found for {product.stripe_link}")
        warnings.append(NO_MATCH_WARNING)
        return None

    if match.get('active'):
        _deactivate_link(match['id'], warnings)

    stripe_product_id = _line_item_product_id((match.get('line_items') or {}).get('data'))
    if stripe_product_id:
        _archive_product(stripe_product_id, warnings)
    return stripe_product_id


def archive_product_in_stripe(product_id, get_product=None):
    """
    Best-effort archive of a product's Stripe payment link and product.

    Args:
        product_id: Local product ID
        get_product: Lookup callable returning a models.Product or None
                     (defaults to Product.get_by_id)

    Returns:
        dict: Always success=True. 'archived' tells whether a Stripe product
              was identified and archived; 'warnings' lists failed steps.
    """
    if get_product is None:
        from models import Product
        get_product = Product.get_by_id

    if not is_stripe_configured():
        return _skipped('Stripe not configured')

    product = get_product(product_id)
    if not product:
        logger.warning(f"Product {product_id} not found for Stripe archive")
        return _skipped('Product not found')

    if not product.has_stripe_reference():
        return _skipped('No Stripe payment link stored')

    logger.info(f"Archiving Stripe resources for product {product_id}")
    warnings = []
    archived_product_id = None

    try:
        if product.stripe_payment_link_id or product.stripe_product_id:
            archived_product_id = _archive_by_ids(product, warnings)
        else:
            archived_product_id = _archive_by_link(product, warnings)
    except Exception as e:
        logger.exception(f"Stripe archive failed for product {product_id}: {e}")
        warnings.append(f"Stripe archive: {e}")

    archived = bool(archived_product_id) and not any(
        w.startswith('Product archive') for w in warnings
    )
    result = {
        'success': True,
        'archived': archived,
        'archived_product_id': archived_product_id,
    }
    if warnings:
        result['warnings'] = warnings
    return result
