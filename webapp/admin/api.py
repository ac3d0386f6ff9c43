"""
Admin Panel API Endpoints
Stripe integration and settings endpoints for the admin dashboard
"""

import logging

from flask import jsonify, current_app

from . import admin_bp
from .routes import admin_required, get_json_body, record_action

from settings_store import SettingsStore
from stripe_integration import (
    ProductToSync, sync_product_to_stripe, archive_product_in_stripe,
    get_stripe_config, is_stripe_configured, check_stripe_connection
)

logger = logging.getLogger(__name__)


def get_settings_store():
    """Settings store registered on the app, or a database-backed default"""
    store = current_app.extensions.get('settings_store')
    if store is None:
        store = SettingsStore()
        current_app.extensions['settings_store'] = store
    return store


def _as_cents(value):
    """Accept integral strings such as "2900" from form-style clients"""
    if isinstance(value, str) and value.strip().isascii() and value.strip().isdigit():
        return int(value.strip())
    return value


# =============================================================================
# Stripe
# =============================================================================

@admin_bp.route('/api/stripe/status')
@admin_required
def api_stripe_status():
    """Whether Stripe is configured, and in which mode"""
    return jsonify(get_stripe_config())


@admin_bp.route('/api/stripe/test', methods=['POST'])
@admin_required
def api_stripe_test():
    """Check the configured key against the Stripe API"""
    return jsonify(check_stripe_connection())


@admin_bp.route('/api/stripe/sync', methods=['POST'])
@admin_required
def api_stripe_sync():
    """
    Sync a product payload to Stripe without touching the local record.

    The caller persists the returned identifiers; product save routes do
    that automatically.
    """
    data = get_json_body()
    product_id = data.get('product_id')
    title = data.get('title')
    price_cents = _as_cents(data.get('price_cents'))
    currency = data.get('currency')

    if not product_id or not title or not price_cents or not currency:
        return jsonify({
            'success': False,
            'error': 'product_id, title, price_cents, and currency are required'
        }), 400

    if not is_stripe_configured():
        return jsonify({
            'success': False,
            'error': 'STRIPE_SECRET_KEY is not configured on the server'
        }), 500

    try:
        product = ProductToSync(
            id=product_id,
            title=title,
            price_cents=price_cents,
            currency=currency,
            description=data.get('description') or '',
            image=data.get('image') or '',
            original_price_cents=_as_cents(data.get('original_price_cents')) or None,
            category=data.get('category') or '',
            stripe_product_id=data.get('stripe_product_id') or None,
        )
    except ValueError as e:
        return jsonify({'success': False, 'error': str(e)}), 400

    logger.info(f"Stripe sync request for product {product_id}: {price_cents} {product.currency}")
    result = sync_product_to_stripe(product)

    if not result['success']:
        logger.warning(f"Stripe sync failed for product {product_id}: {result['error']}")
        return jsonify({'success': False, 'error': result['error']}), 500

    try:
        record_action('stripe_sync', 'product', product_id, result['stripe_link'])
    except Exception as e:
        logger.error(f"Audit log write failed after Stripe sync of product {product_id}: {e}")
    return jsonify(result)


@admin_bp.route('/api/stripe/archive', methods=['POST'])
@admin_required
def api_stripe_archive():
    """Best-effort archive; always succeeds so the caller can delete locally"""
    data = get_json_body()
    product_id = data.get('product_id')
    if not product_id:
        return jsonify({'success': False, 'error': 'product_id is required'}), 400

    result = archive_product_in_stripe(product_id)
    for warning in result.get('warnings', []):
        logger.warning(f"Stripe archive warning for product {product_id}: {warning}")
    return jsonify(result)


# =============================================================================
# Settings
# =============================================================================

@admin_bp.route('/api/settings')
@admin_required
def api_settings():
    """All settings sections, secrets masked"""
    return jsonify({
        'success': True,
        'settings': get_settings_store().get_all(),
        'stripe': get_stripe_config()
    })


@admin_bp.route('/api/settings', methods=['POST'])
@admin_required
def api_settings_update():
    """Save one or more settings sections"""
    data = get_json_body()
    if not data:
        return jsonify({'success': False, 'error': 'No settings provided'}), 400

    try:
        get_settings_store().update(data)
    except ValueError as e:
        return jsonify({'success': False, 'error': str(e)}), 400

    record_action('settings_update', 'settings', None, ', '.join(sorted(data)))
    return jsonify({'success': True, 'message': 'Settings saved'})
