"""
Stripe connectivity check for the settings panel
"""

import logging

import stripe

from .config import get_secret_key, get_stripe_mode, StripeConfigError

logger = logging.getLogger(__name__)


def check_stripe_connection():
    """
    Verify the configured secret key by retrieving the account balance.

    Only the server-side key is ever tested; keys are not accepted from
    requests.

    Returns:
        dict: {'success': True, 'mode', 'livemode', 'available': [...]} or
              {'success': False, 'error': message}
    """
    try:
        secret_key = get_secret_key()
    except StripeConfigError as e:
        return {'success': False, 'error': str(e)}

    if not secret_key.startswith(('sk_test_', 'sk_live_', 'rk_test_', 'rk_live_')):
        return {
            'success': False,
            'error': 'Invalid key format. Must start with sk_test_ or sk_live_'
        }

    try:
        balance = stripe.Balance.retrieve(api_key=secret_key)
    except stripe.StripeError as e:
        logger.warning(f"Stripe connection test failed: {e}")
        return {'success': False, 'error': e.user_message or str(e)}

    available = [
        {'currency': entry.currency, 'amount': entry.amount}
        for entry in (getattr(balance, 'available', None) or [])
    ]
    livemode = bool(getattr(balance, 'livemode', False))
    logger.info(f"Stripe connection test succeeded (livemode={livemode})")
    return {
        'success': True,
        'mode': get_stripe_mode(),
        'livemode': livemode,
        'available': available,
    }
