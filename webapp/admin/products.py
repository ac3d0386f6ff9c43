"""
Admin Product Routes

CRUD for shop products. Saving can push the product to Stripe; deleting
archives its Stripe objects first. The local database is the durability
boundary: Stripe identifiers are only trusted once written back here.
"""

import logging

from flask import jsonify

from . import admin_bp
from .routes import admin_required, get_json_body, record_action

from models import Product, PRODUCT_CATEGORIES
from stripe_integration import (
    ProductToSync, sync_product_to_stripe, archive_product_in_stripe,
    is_stripe_configured, price_to_cents
)
from stripe_integration.money import normalize_currency

logger = logging.getLogger(__name__)

TEXT_LIMITS = {
    'title': 200,
    'description': 1000,
    'image': 500,
    'ai_prompt': 5000,
    'stripe_link': 500,
}


def _parse_amount(data, cents_key, display_key, currency):
    """Minor units from either the integer field or the display string"""
    if data.get(cents_key) not in (None, ''):
        value = data[cents_key]
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ValueError(f'{cents_key} must be a non-negative integer')
        return value
    if data.get(display_key):
        return price_to_cents(data[display_key], currency)
    return None


def parse_product_payload(data, existing=None):
    """
    Extract product fields from a request body.

    Args:
        data: Decoded JSON body
        existing: Product being updated, or None on create

    Returns:
        Tuple of (fields: dict, error: str or None)
    """
    fields = {}

    try:
        for key, limit in TEXT_LIMITS.items():
            if key in data:
                value = (data.get(key) or '').strip()
                if len(value) > limit:
                    raise ValueError(f'{key} must be at most {limit} characters')
                fields[key] = value

        if existing is None and not fields.get('title'):
            raise ValueError('Title is required')
        if 'title' in fields and not fields['title']:
            raise ValueError('Title is required')

        image = fields.get('image')
        if image and not image.startswith(('http://', 'https://', '/')):
            raise ValueError('Invalid image URL')

        if 'category' in data:
            if data['category'] not in PRODUCT_CATEGORIES:
                raise ValueError(f"category must be one of {', '.join(PRODUCT_CATEGORIES)}")
            fields['category'] = data['category']

        currency = existing.currency if existing else 'usd'
        if data.get('currency'):
            currency = normalize_currency(data['currency'])
            fields['currency'] = currency

        price_cents = _parse_amount(data, 'price_cents', 'price', currency)
        if price_cents is not None:
            fields['price_cents'] = price_cents
        original_cents = _parse_amount(data, 'original_price_cents', 'original_price', currency)
        if original_cents is not None:
            fields['original_price_cents'] = original_cents

        if 'sort_order' in data:
            fields['sort_order'] = int(data['sort_order'] or 0)
        if 'active' in data:
            fields['active'] = bool(data['active'])
    except (TypeError, ValueError) as e:
        return None, str(e)

    return fields, None


def sync_and_persist(product):
    """
    Push a saved product to Stripe and store the returned identifiers.

    Returns:
        dict: the sync result; success=False when Stripe or the local
              write-back failed
    """
    if not is_stripe_configured():
        return {'success': False, 'error': 'STRIPE_SECRET_KEY is not configured on the server'}
    if not product.price_cents or product.price_cents <= 0:
        return {'success': False, 'error': 'A positive price is required to sync to Stripe'}

    result = sync_product_to_stripe(ProductToSync.from_product(product))
    if not result['success']:
        logger.warning(f"Stripe sync failed for product {product.id}: {result['error']}")
        return result

    try:
        product.apply_sync_result(result)
    except Exception as e:
        logger.error(
            f"Stripe sync for product {product.id} succeeded but saving "
            f"identifiers failed: {e}"
        )
        return dict(result, success=False,
                    error=f'Stripe sync succeeded but saving the payment link failed: {e}')

    logger.info(f"Product {product.id} synced to Stripe: {result['stripe_link']}")
    return result


def _saved_response(product, data, status):
    response = {'success': True, 'product': product.to_dict()}

    if data.get('sync_to_stripe'):
        stripe_result = sync_and_persist(product)
        response['stripe'] = stripe_result
        if stripe_result['success']:
            response['product'] = product.to_dict()
        else:
            response['stripe_warning'] = stripe_result['error']

    return jsonify(response), status


# =============================================================================
# Routes
# =============================================================================

@admin_bp.route('/api/products')
@admin_required
def list_products():
    """All products in display order"""
    products = Product.get_all()
    return jsonify({
        'success': True,
        'products': [p.to_dict() for p in products],
        'total': len(products)
    })


@admin_bp.route('/api/products/<product_id>')
@admin_required
def get_product(product_id):
    product = Product.get_by_id(product_id)
    if not product:
        return jsonify({'success': False, 'error': 'Product not found'}), 404
    return jsonify({'success': True, 'product': product.to_dict()})


@admin_bp.route('/api/products', methods=['POST'])
@admin_required
def create_product():
    """Create a product, optionally syncing it to Stripe"""
    data = get_json_body()
    fields, error = parse_product_payload(data)
    if error:
        return jsonify({'success': False, 'error': f'Validation error: {error}'}), 400

    product = Product(**fields)
    product.save()
    record_action('product_create', 'product', product.id, product.title)
    logger.info(f"Product created: {product.id} ({product.title})")

    return _saved_response(product, data, 201)


@admin_bp.route('/api/products/<product_id>', methods=['PUT'])
@admin_required
def update_product(product_id):
    """Update a product, optionally re-syncing it to Stripe"""
    product = Product.get_by_id(product_id)
    if not product:
        return jsonify({'success': False, 'error': 'Product not found'}), 404

    data = get_json_body()
    fields, error = parse_product_payload(data, existing=product)
    if error:
        return jsonify({'success': False, 'error': f'Validation error: {error}'}), 400

    for key, value in fields.items():
        setattr(product, key, value)
    product.save()
    record_action('product_update', 'product', product.id, ', '.join(sorted(fields)))

    return _saved_response(product, data, 200)


@admin_bp.route('/api/products/<product_id>/sync', methods=['POST'])
@admin_required
def sync_product(product_id):
    """Re-sync an existing product to Stripe"""
    product = Product.get_by_id(product_id)
    if not product:
        return jsonify({'success': False, 'error': 'Product not found'}), 404

    result = sync_and_persist(product)
    if not result['success']:
        return jsonify({'success': False, 'error': result['error']}), 502

    try:
        record_action('product_stripe_sync', 'product', product.id, result['stripe_link'])
    except Exception as e:
        logger.error(f"Audit log write failed after Stripe sync of product {product.id}: {e}")
    return jsonify({'success': True, 'stripe': result, 'product': product.to_dict()})


@admin_bp.route('/api/products/<product_id>', methods=['DELETE'])
@admin_required
def delete_product(product_id):
    """Archive the product in Stripe (best-effort), then delete it locally"""
    product = Product.get_by_id(product_id)
    if not product:
        return jsonify({'success': False, 'error': 'Product not found'}), 404

    archive_result = archive_product_in_stripe(product.id, get_product=lambda _id: product)
    for warning in archive_result.get('warnings', []):
        logger.warning(f"Stripe archive warning for product {product.id}: {warning}")

    product.delete()
    record_action('product_delete', 'product', product.id, product.title)
    logger.info(f"Product deleted: {product.id} ({product.title})")

    return jsonify({'success': True, 'stripe': archive_result})
