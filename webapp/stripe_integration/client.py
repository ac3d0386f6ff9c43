"""
Stripe REST Helper for MyShop Admin

Thin wrapper over the Stripe v1 API on top of the stripe SDK's raw request
support: the SDK does the form encoding (bracket notation for nested
parameters) and sends the Idempotency-Key header, this module supplies the
key from the environment and turns every failure into one exception type.
"""

import logging

import stripe

from .config import get_secret_key, get_api_base, get_request_timeout

logger = logging.getLogger(__name__)


class StripeAPIError(Exception):
    """Exception raised when a Stripe API request fails."""

    def __init__(self, message, status_code=None, error_type=None, code=None):
        """
        Initialize the StripeAPIError.

        Args:
            message: Error message reported by Stripe (or a transport error)
            status_code: HTTP status code from the response (optional)
            error_type: Stripe error type, e.g. 'invalid_request_error' (optional)
            code: Stripe error code, e.g. 'resource_missing' (optional)
        """
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_type = error_type
        self.code = code

    def __str__(self):
        return self.message

    @classmethod
    def from_stripe_error(cls, error):
        """Build from an SDK exception, keeping Stripe's own message"""
        status_code = error.http_status
        details = error.error
        return cls(
            error.user_message or f"Stripe API error: {status_code}",
            status_code=status_code,
            error_type=getattr(details, 'type', None),
            code=error.code
        )


def get_client():
    """StripeClient for the server-configured key"""
    return stripe.StripeClient(
        get_secret_key(),
        base_addresses={'api': get_api_base()},
        http_client=stripe.RequestsClient(timeout=get_request_timeout())
    )


def stripe_request(method, endpoint, params=None, idempotency_key=None):
    """
    Make an authenticated request to the Stripe API.

    Args:
        method: HTTP method (GET, POST, DELETE)
        endpoint: API endpoint path below /v1 (e.g., '/products')
        params: Parameter map, sent as query string for GET and as the
                form-encoded body otherwise; None values are dropped (optional)
        idempotency_key: Value for the Idempotency-Key header (optional)

    Returns:
        dict: Decoded JSON response

    Raises:
        StripeConfigError: If STRIPE_SECRET_KEY is not set
        StripeAPIError: If the request fails or Stripe returns an error
    """
    client = get_client()

    options = {}
    if idempotency_key:
        options['idempotency_key'] = idempotency_key

    logger.debug(f"Stripe {method.upper()} {endpoint}")

    try:
        response = client.raw_request(
            method.lower(), f"/v1{endpoint}", **(params or {}), **options
        )
    except stripe.StripeError as e:
        raise StripeAPIError.from_stripe_error(e)

    return response.data
