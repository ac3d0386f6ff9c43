"""
Admin Panel Routes
Authentication and shared helpers for the admin JSON API
"""

import os
import logging
from functools import wraps

from flask import request, session, jsonify
from flask_wtf.csrf import generate_csrf

from . import admin_bp
from .models import AdminUser, log_admin_action
from extensions import limiter, csrf

logger = logging.getLogger(__name__)

# Security logger for admin actions
security_logger = logging.getLogger('security')

MIN_PASSWORD_LENGTH = 6


# =============================================================================
# Decorators / helpers
# =============================================================================

def admin_required(f):
    """Require admin authentication"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not session.get('admin_user_id'):
            return jsonify({'success': False, 'error': 'Authentication required'}), 401
        return f(*args, **kwargs)
    return decorated_function


def get_json_body():
    """Request JSON body as a dict (empty dict when missing or malformed)"""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def record_action(action, entity_type=None, entity_id=None, details=None):
    """Write an audit log entry for the current admin"""
    log_admin_action(
        session.get('admin_user_id'), action,
        entity_type=entity_type, entity_id=entity_id,
        details=details, ip_address=request.remote_addr
    )


# =============================================================================
# Authentication Routes
# =============================================================================

@admin_bp.route('/api/login', methods=['POST'])
@csrf.exempt
@limiter.limit("5 per minute;20 per hour")
def login():
    """Admin login"""
    data = get_json_body()
    email = (data.get('email') or '').strip().lower()
    password = data.get('password') or ''

    if not email or not password:
        return jsonify({'success': False, 'error': 'Email and password are required'}), 400

    admin = AdminUser.get_by_email(email)

    if admin and admin.is_active and admin.check_password(password):
        session.clear()
        session['admin_user_id'] = admin.id
        session['admin_user_name'] = admin.full_name
        session['admin_user_role'] = admin.role
        admin.update_last_login()
        log_admin_action(admin.id, 'admin_login', ip_address=request.remote_addr)
        security_logger.info(
            f"ADMIN_LOGIN_SUCCESS: admin={admin.id} email={admin.email} "
            f"IP={request.remote_addr}"
        )
        return jsonify({'success': True, 'admin': admin.to_dict()})

    security_logger.warning(
        f"ADMIN_LOGIN_FAILED: email={email} "
        f"IP={request.remote_addr} user_agent={request.user_agent.string[:50]}"
    )
    return jsonify({'success': False, 'error': 'Invalid email or password'}), 401


@admin_bp.route('/api/logout', methods=['POST'])
def logout():
    """Admin logout"""
    admin_id = session.get('admin_user_id')
    if admin_id:
        log_admin_action(admin_id, 'admin_logout', ip_address=request.remote_addr)

    session.pop('admin_user_id', None)
    session.pop('admin_user_name', None)
    session.pop('admin_user_role', None)
    return jsonify({'success': True})


@admin_bp.route('/api/csrf-token')
def csrf_token():
    """Token for the X-CSRFToken header on state-changing admin calls"""
    return jsonify({'csrf_token': generate_csrf()})


@admin_bp.route('/api/me')
@admin_required
def me():
    """Current admin session"""
    return jsonify({
        'success': True,
        'admin': {
            'id': session.get('admin_user_id'),
            'full_name': session.get('admin_user_name'),
            'role': session.get('admin_user_role')
        }
    })


@admin_bp.route('/api/register', methods=['POST'])
@csrf.exempt
@limiter.limit("3 per hour")
def register():
    """
    Development-only admin registration.

    Disabled in production; create admins there with a migration or the
    database console.
    """
    if os.getenv('FLASK_ENV') == 'production':
        return jsonify({
            'success': False,
            'error': 'Registration is disabled in production.'
        }), 403

    data = get_json_body()
    email = (data.get('email') or '').strip().lower()
    password = data.get('password') or ''

    if not email or not password:
        return jsonify({'success': False, 'error': 'Email and password are required.'}), 400
    if len(password) < MIN_PASSWORD_LENGTH:
        return jsonify({
            'success': False,
            'error': f'Password must be at least {MIN_PASSWORD_LENGTH} characters.'
        }), 400
    if AdminUser.get_by_email(email):
        return jsonify({'success': False, 'error': 'An admin with this email already exists.'}), 400

    admin = AdminUser(email=email, full_name=data.get('full_name') or email)
    admin.set_password(password)
    admin.save()

    security_logger.info(f"ADMIN_REGISTERED: admin={admin.id} email={email} IP={request.remote_addr}")
    return jsonify({
        'success': True,
        'message': 'Account created. You can now sign in.',
        'admin_id': admin.id
    }), 201
