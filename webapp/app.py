"""
MyShop Admin - Flask Web Application
Admin API for the blog/shop site and its Stripe product sync
"""

import os
import logging
import time
from datetime import datetime

from flask import Flask, request, jsonify, g
from flask_talisman import Talisman
from dotenv import load_dotenv

# Load environment variables
load_dotenv(os.getenv('MYSHOP_ENV_FILE', '.env'))

from models import check_database
from extensions import limiter, csrf
from settings_store import SettingsStore
from stripe_integration import process_webhook, is_stripe_configured


# Configure logging
log_handlers = [logging.StreamHandler()]
LOG_DIR = os.getenv('LOG_DIR')
if LOG_DIR:
    log_handlers.append(logging.FileHandler(os.path.join(LOG_DIR, 'webapp.log')))

logging.basicConfig(
    level=os.getenv('LOG_LEVEL', 'INFO').upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=log_handlers
)
logger = logging.getLogger(__name__)

# Security logger for audit trail
security_logger = logging.getLogger('security')
if LOG_DIR:
    security_handler = logging.FileHandler(os.path.join(LOG_DIR, 'security.log'))
    security_handler.setFormatter(logging.Formatter('%(asctime)s - %(levelname)s - %(message)s'))
    security_logger.addHandler(security_handler)
security_logger.setLevel(logging.INFO)


# =============================================================================
# Configuration Validation - Fail-fast on missing secrets
# =============================================================================

def validate_required_config():
    """Validate that required configuration is present. Fail fast if missing."""
    required_vars = {
        'SECRET_KEY': 'Flask secret key for session security',
        'DB_PASSWORD': 'Database password',
    }

    missing = []
    insecure = []

    for var, description in required_vars.items():
        value = os.getenv(var)
        if not value:
            missing.append(f"  - {var}: {description}")
        elif var == 'SECRET_KEY' and 'change-this' in value.lower():
            insecure.append(f"  - {var}: Using insecure default value")

    if not is_stripe_configured():
        logger.warning("STRIPE_SECRET_KEY not set - Stripe product sync disabled")

    if missing or insecure:
        error_msg = "\n\nCRITICAL CONFIGURATION ERROR\n" + "=" * 40 + "\n"
        if missing:
            error_msg += "Missing required environment variables:\n" + "\n".join(missing) + "\n"
        if insecure:
            error_msg += "Insecure configuration detected:\n" + "\n".join(insecure) + "\n"
        error_msg += "\nPlease configure these in the .env file\n"

        # In production, fail fast. In development, warn but continue.
        if os.getenv('FLASK_ENV') == 'production':
            logger.critical(error_msg)
            raise RuntimeError(error_msg)
        else:
            logger.warning(error_msg)


validate_required_config()


# =============================================================================
# Initialize Flask app with secure configuration
# =============================================================================

app = Flask(__name__)

app.config['SECRET_KEY'] = os.getenv('SECRET_KEY')
if not app.config['SECRET_KEY']:
    # Only for development - production validated above
    app.config['SECRET_KEY'] = os.urandom(32).hex()
    logger.warning("Using randomly generated SECRET_KEY - sessions will not persist across restarts")

app.config['WTF_CSRF_ENABLED'] = True
app.config['MAX_CONTENT_LENGTH'] = 2 * 1024 * 1024  # 2MB, JSON only

# Session security configuration
app.config['SESSION_COOKIE_SECURE'] = os.getenv('FLASK_ENV') == 'production'
app.config['SESSION_COOKIE_HTTPONLY'] = True
app.config['SESSION_COOKIE_SAMESITE'] = 'Lax'
app.config['PERMANENT_SESSION_LIFETIME'] = 86400  # 24 hours

# Security headers; the API serves JSON only
talisman = Talisman(
    app,
    force_https=os.getenv('FLASK_ENV') == 'production',
    session_cookie_secure=os.getenv('FLASK_ENV') == 'production',
    strict_transport_security=True,
    strict_transport_security_max_age=31536000,
    content_security_policy={'default-src': "'none'", 'frame-ancestors': "'none'"},
    referrer_policy='strict-origin-when-cross-origin',
)


# =============================================================================
# Extensions
# =============================================================================

csrf.init_app(app)
limiter.init_app(app)

app.extensions['settings_store'] = SettingsStore()

from admin import admin_bp
app.register_blueprint(admin_bp, url_prefix='/admin')


@app.errorhandler(429)
def ratelimit_handler(e):
    """Handle rate limit exceeded"""
    security_logger.warning(
        f"Rate limit exceeded: IP={request.remote_addr} "
        f"endpoint={request.endpoint} "
        f"user_agent={request.user_agent.string[:100]}"
    )
    return jsonify({
        'success': False,
        'error': 'Rate limit exceeded',
        'message': 'Too many requests. Please try again later.',
        'retry_after': e.description
    }), 429


@app.errorhandler(404)
def not_found(e):
    return jsonify({'success': False, 'error': 'Not found'}), 404


@app.errorhandler(405)
def method_not_allowed(e):
    return jsonify({'success': False, 'error': 'Method not allowed'}), 405


@app.errorhandler(500)
def internal_error(e):
    logger.error(f"Unhandled error on {request.method} {request.path}: {e}")
    return jsonify({'success': False, 'error': 'Internal server error'}), 500


# =============================================================================
# Request Logging
# =============================================================================

@app.before_request
def log_request_info():
    """Log sensitive requests for security forensics"""
    g.request_start_time = time.time()

    if request.endpoint in ['admin.login', 'admin.register', 'stripe_webhook']:
        security_logger.info(
            f"REQUEST: {request.method} {request.path} "
            f"IP={request.remote_addr} "
            f"user_agent={request.user_agent.string[:100]}"
        )


@app.after_request
def log_response_info(response):
    """Log failed and slow requests"""
    if hasattr(g, 'request_start_time'):
        elapsed = time.time() - g.request_start_time

        if response.status_code in [401, 403]:
            security_logger.warning(
                f"FAILED REQUEST: {request.method} {request.path} "
                f"status={response.status_code} "
                f"IP={request.remote_addr} "
                f"elapsed={elapsed:.3f}s"
            )
        elif response.status_code >= 500:
            logger.error(f"{request.method} {request.path} {response.status_code} {elapsed:.3f}s")
        else:
            logger.debug(f"{request.method} {request.path} {response.status_code} {elapsed:.3f}s")

    return response


# =============================================================================
# Stripe Webhook
# =============================================================================

@app.route('/webhook/stripe', methods=['POST'])
@csrf.exempt
@limiter.exempt
def stripe_webhook():
    """Handle Stripe webhooks"""
    payload = request.get_data()
    sig_header = request.headers.get('Stripe-Signature')

    if not sig_header:
        logger.warning("Stripe webhook received without signature")
        return jsonify({'error': 'No signature'}), 400

    success, message = process_webhook(payload, sig_header)

    if success:
        return jsonify({'status': 'success', 'message': message}), 200

    if message in ('Invalid payload', 'Invalid signature'):
        security_logger.warning(f"Rejected Stripe webhook: {message} IP={request.remote_addr}")
        return jsonify({'status': 'error', 'message': message}), 400

    # Event is already recorded; 200 ends redelivery
    logger.error(f"Webhook processing failed: {message}")
    return jsonify({'status': 'error', 'message': message}), 200


# =============================================================================
# Health Checks
# =============================================================================

@app.route('/health')
@limiter.exempt
def health_check():
    """
    Health check endpoint for load balancers and monitoring.
    Returns 200 if the application can reach its database.
    """
    health_status = {
        'status': 'healthy',
        'timestamp': datetime.utcnow().isoformat() + 'Z',
        'checks': {}
    }
    overall_healthy = True

    try:
        started = time.time()
        check_database()
        health_status['checks']['database'] = {
            'status': 'healthy',
            'latency_ms': int((time.time() - started) * 1000)
        }
    except Exception as e:
        health_status['checks']['database'] = {
            'status': 'unhealthy',
            'error': str(e)[:100]
        }
        overall_healthy = False

    health_status['checks']['stripe'] = {
        'status': 'healthy' if is_stripe_configured() else 'degraded',
    }

    if not overall_healthy:
        health_status['status'] = 'unhealthy'
        return jsonify(health_status), 503

    return jsonify(health_status), 200


@app.route('/ready')
@limiter.exempt
def readiness_check():
    """Readiness check; dependency checks live in /health"""
    return jsonify({
        'status': 'ready',
        'timestamp': datetime.utcnow().isoformat() + 'Z'
    }), 200


if __name__ == '__main__':
    app.run(
        host=os.getenv('FLASK_HOST', '127.0.0.1'),
        port=int(os.getenv('FLASK_PORT', '5000')),
        debug=os.getenv('FLASK_DEBUG', '').lower() == 'true'
    )
