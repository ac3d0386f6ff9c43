"""
Pytest configuration and fixtures for MyShop Admin tests
"""

import os
import sys
import pytest

# Ensure the webapp module is importable
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Set test environment before importing app
os.environ['FLASK_ENV'] = 'testing'
os.environ['SECRET_KEY'] = 'test-secret-key-for-testing-only'
# No database in tests: every model call is patched
for key in ['DB_PASSWORD', 'DB_HOST', 'DB_USER', 'DB_NAME']:
    os.environ.pop(key, None)
os.environ['STRIPE_SECRET_KEY'] = 'sk_test_123'
os.environ['STRIPE_WEBHOOK_SECRET'] = 'whsec_test123'
os.environ.pop('STRIPE_API_BASE', None)
os.environ.pop('STRIPE_TIMEOUT', None)


@pytest.fixture(scope='session')
def app():
    """Create application for testing"""
    from app import app as flask_app
    from extensions import limiter

    flask_app.config.update({
        'TESTING': True,
        'WTF_CSRF_ENABLED': False,  # Disable CSRF for testing
    })
    limiter.enabled = False

    yield flask_app


@pytest.fixture
def settings_store(app):
    """Fresh in-memory settings store for each test"""
    from settings_store import SettingsStore, MemorySettingsBackend

    store = SettingsStore(backend=MemorySettingsBackend())
    app.extensions['settings_store'] = store
    return store


@pytest.fixture
def client(app):
    """Create test client"""
    return app.test_client()


@pytest.fixture
def admin_session(client):
    """
    Create a mock admin session for testing admin routes.
    Note: This simulates an admin session without hitting the database.
    """
    with client.session_transaction() as sess:
        sess['admin_user_id'] = 1
        sess['admin_user_name'] = 'Test Admin'
        sess['admin_user_role'] = 'admin'
    return client


@pytest.fixture
def stripe_unconfigured(monkeypatch):
    """Remove the Stripe secret key for the duration of a test"""
    monkeypatch.delenv('STRIPE_SECRET_KEY', raising=False)


@pytest.fixture
def product_factory():
    """Build models.Product instances without touching the database"""
    from models import Product

    def make(**overrides):
        fields = {
            'id': 'p1',
            'title': 'Guide',
            'description': 'A practical guide',
            'category': 'Mindset',
            'price_cents': 2900,
            'currency': 'usd',
        }
        fields.update(overrides)
        return Product(**fields)

    return make


@pytest.fixture
def stripe_webhook_payload():
    """
    Create a mock Stripe webhook payload.
    """
    return {
        'id': 'evt_test123',
        'type': 'checkout.session.completed',
        'livemode': False,
        'data': {
            'object': {
                'id': 'cs_test123',
                'payment_link': 'plink_123',
                'customer': 'cus_test123',
                'payment_intent': 'pi_test123',
            }
        }
    }
