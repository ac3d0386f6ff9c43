"""
Admin Subscriber and Dashboard Routes
"""

import logging

from flask import jsonify

from . import admin_bp
from .routes import admin_required, record_action

from models import Subscriber, get_dashboard_stats

logger = logging.getLogger(__name__)


@admin_bp.route('/api/subscribers')
@admin_required
def list_subscribers():
    """All subscribers, most recent first"""
    subscribers = Subscriber.get_all()
    return jsonify({
        'success': True,
        'subscribers': [s.to_dict() for s in subscribers],
        'total': len(subscribers),
        'active': sum(1 for s in subscribers if s.active)
    })


@admin_bp.route('/api/subscribers/by-month')
@admin_required
def subscribers_by_month():
    return jsonify({'success': True, 'months': Subscriber.count_by_month()})


@admin_bp.route('/api/subscribers/<subscriber_id>', methods=['DELETE'])
@admin_required
def delete_subscriber(subscriber_id):
    subscriber = Subscriber.get_by_id(subscriber_id)
    if not subscriber:
        return jsonify({'success': False, 'error': 'Subscriber not found'}), 404

    subscriber.delete()
    record_action('subscriber_delete', 'subscriber', subscriber.id, subscriber.email)
    logger.info(f"Subscriber deleted: {subscriber.id}")

    return jsonify({'success': True})


@admin_bp.route('/api/dashboard/stats')
@admin_required
def dashboard_stats():
    """Counts shown on the admin dashboard"""
    return jsonify({'success': True, 'stats': get_dashboard_stats()})
