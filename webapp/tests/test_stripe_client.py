"""
Tests for the Stripe REST helper
"""

import pytest
from unittest.mock import Mock, patch

import stripe

from stripe_integration.client import stripe_request, StripeAPIError
from stripe_integration.config import StripeConfigError, get_api_base


def make_response(data):
    response = Mock()
    response.data = data
    return response


@pytest.fixture
def mock_client():
    with patch('stripe.StripeClient') as client_class, patch('stripe.RequestsClient') as http_class:
        client_class.http_class = http_class
        yield client_class


class TestStripeRequest:
    """Test request construction and error normalization"""

    def test_post_goes_through_sdk(self, mock_client):
        raw_request = mock_client.return_value.raw_request
        raw_request.return_value = make_response({'id': 'prod_1'})

        result = stripe_request('POST', '/products', {
            'name': 'Guide',
            'metadata': {'local_product_id': 'p1'},
        })

        assert result == {'id': 'prod_1'}
        raw_request.assert_called_once_with(
            'post', '/v1/products', name='Guide', metadata={'local_product_id': 'p1'}
        )
        args, kwargs = mock_client.call_args
        assert args == ('sk_test_123',)
        assert kwargs['base_addresses'] == {'api': 'https://api.stripe.com'}
        mock_client.http_class.assert_called_once_with(timeout=30.0)

    def test_idempotency_key_passed_as_option(self, mock_client):
        raw_request = mock_client.return_value.raw_request
        raw_request.return_value = make_response({'id': 'prod_1'})

        stripe_request('POST', '/products', {'name': 'Guide'}, idempotency_key='product-create-p1')

        assert raw_request.call_args.kwargs['idempotency_key'] == 'product-create-p1'

    def test_no_idempotency_key_by_default(self, mock_client):
        raw_request = mock_client.return_value.raw_request
        raw_request.return_value = make_response({})

        stripe_request('GET', '/payment_links', {'limit': 100, 'expand': ['data.line_items']})

        raw_request.assert_called_once_with(
            'get', '/v1/payment_links', limit=100, expand=['data.line_items']
        )

    def test_get_without_params(self, mock_client):
        raw_request = mock_client.return_value.raw_request
        raw_request.return_value = make_response({'data': []})

        assert stripe_request('GET', '/payment_links/plink_1/line_items') == {'data': []}
        raw_request.assert_called_once_with('get', '/v1/payment_links/plink_1/line_items')

    def test_error_message_from_stripe(self, mock_client):
        mock_client.return_value.raw_request.side_effect = stripe.InvalidRequestError(
            'No such price', 'price', code='resource_missing', http_status=400,
            json_body={'error': {
                'message': 'No such price',
                'type': 'invalid_request_error',
                'code': 'resource_missing',
            }}
        )

        with pytest.raises(StripeAPIError) as exc_info:
            stripe_request('POST', '/payment_links', {})

        error = exc_info.value
        assert str(error) == 'No such price'
        assert error.status_code == 400
        assert error.error_type == 'invalid_request_error'
        assert error.code == 'resource_missing'

    def test_error_without_message(self, mock_client):
        mock_client.return_value.raw_request.side_effect = stripe.APIError(None, http_status=500)

        with pytest.raises(StripeAPIError) as exc_info:
            stripe_request('GET', '/products')

        assert str(exc_info.value) == 'Stripe API error: 500'
        assert exc_info.value.error_type is None

    def test_connection_error(self, mock_client):
        mock_client.return_value.raw_request.side_effect = stripe.APIConnectionError(
            'Network error communicating with Stripe'
        )

        with pytest.raises(StripeAPIError) as exc_info:
            stripe_request('GET', '/products')

        assert exc_info.value.status_code is None
        assert 'Network error' in str(exc_info.value)

    def test_missing_secret_key(self, mock_client, stripe_unconfigured):
        with pytest.raises(StripeConfigError):
            stripe_request('GET', '/products')

        mock_client.assert_not_called()


class TestApiBase:
    """Test the API host override"""

    def test_default(self):
        assert get_api_base() == 'https://api.stripe.com'

    @pytest.mark.parametrize('value', [
        'http://localhost:12111', 'http://localhost:12111/', 'http://localhost:12111/v1/',
    ])
    def test_override_strips_version_path(self, value, monkeypatch):
        monkeypatch.setenv('STRIPE_API_BASE', value)
        assert get_api_base() == 'http://localhost:12111'
