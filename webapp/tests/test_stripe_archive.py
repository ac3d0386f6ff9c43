"""
Tests for best-effort Stripe archiving of deleted products
"""

from unittest.mock import patch

from stripe_integration.archive import (
    archive_product_in_stripe, find_payment_link, NO_MATCH_WARNING
)
from stripe_integration.client import StripeAPIError

LINK_URL = 'https://buy.stripe.com/test_abc'


def remote_link(link_id='plink_1', url=LINK_URL, active=True, product='prod_1'):
    return {
        'id': link_id,
        'url': url,
        'active': active,
        'line_items': {'data': [{'price': {'id': 'price_1', 'product': product}}]},
    }


def lookup(product):
    return lambda _id: product


class TestArchiveSkips:
    """Test the cases that never reach Stripe"""

    @patch('stripe_integration.archive.list_payment_links')
    def test_not_configured(self, mock_list, product_factory, stripe_unconfigured):
        result = archive_product_in_stripe('p1', get_product=lookup(product_factory(stripe_link=LINK_URL)))

        assert result['success'] is True
        assert result['archived'] is False
        assert result['skipped'] is True
        mock_list.assert_not_called()

    @patch('stripe_integration.archive.list_payment_links')
    def test_product_not_found(self, mock_list):
        result = archive_product_in_stripe('missing', get_product=lookup(None))

        assert result == {'success': True, 'archived': False, 'skipped': True,
                          'reason': 'Product not found'}
        mock_list.assert_not_called()

    @patch('stripe_integration.archive.update_payment_link')
    @patch('stripe_integration.archive.archive_stripe_product')
    @patch('stripe_integration.archive.list_payment_links')
    def test_never_synced_makes_no_calls(self, mock_list, mock_archive, mock_update, product_factory):
        result = archive_product_in_stripe('p1', get_product=lookup(product_factory()))

        assert result['success'] is True
        assert result['archived'] is False
        assert result['reason'] == 'No Stripe payment link stored'
        mock_list.assert_not_called()
        mock_archive.assert_not_called()
        mock_update.assert_not_called()


class TestArchiveByStoredIds:
    """Test products synced with identifiers stored locally"""

    @patch('stripe_integration.archive.list_payment_links')
    @patch('stripe_integration.archive.update_payment_link')
    @patch('stripe_integration.archive.archive_stripe_product')
    def test_archives_link_and_product_without_listing(self, mock_archive, mock_update,
                                                       mock_list, product_factory):
        product = product_factory(stripe_product_id='prod_1', stripe_payment_link_id='plink_1',
                                  stripe_link=LINK_URL)

        result = archive_product_in_stripe('p1', get_product=lookup(product))

        assert result == {'success': True, 'archived': True, 'archived_product_id': 'prod_1'}
        mock_update.assert_called_once_with('plink_1', False)
        mock_archive.assert_called_once_with('prod_1')
        mock_list.assert_not_called()

    @patch('stripe_integration.archive.list_payment_link_line_items')
    @patch('stripe_integration.archive.update_payment_link')
    @patch('stripe_integration.archive.archive_stripe_product')
    def test_product_id_from_line_items(self, mock_archive, mock_update, mock_items, product_factory):
        mock_items.return_value = [{'price': {'id': 'price_1', 'product': 'prod_9'}}]
        product = product_factory(stripe_payment_link_id='plink_1')

        result = archive_product_in_stripe('p1', get_product=lookup(product))

        assert result['archived'] is True
        assert result['archived_product_id'] == 'prod_9'
        mock_archive.assert_called_once_with('prod_9')

    @patch('stripe_integration.archive.update_payment_link')
    @patch('stripe_integration.archive.archive_stripe_product')
    def test_product_archive_failure_is_warning(self, mock_archive, mock_update, product_factory):
        mock_archive.side_effect = StripeAPIError('No such product')
        product = product_factory(stripe_product_id='prod_1', stripe_payment_link_id='plink_1')

        result = archive_product_in_stripe('p1', get_product=lookup(product))

        assert result['success'] is True
        assert result['archived'] is False
        assert result['warnings'] == ['Product archive: No such product']


class TestArchiveByLink:
    """Test legacy rows that only stored the checkout URL"""

    @patch('stripe_integration.archive.update_payment_link')
    @patch('stripe_integration.archive.archive_stripe_product')
    @patch('stripe_integration.archive.list_payment_links')
    def test_matches_url_and_archives(self, mock_list, mock_archive, mock_update, product_factory):
        mock_list.return_value = [remote_link('plink_other', 'https://buy.stripe.com/other'),
                                  remote_link()]

        result = archive_product_in_stripe('p1', get_product=lookup(product_factory(stripe_link=LINK_URL)))

        assert result == {'success': True, 'archived': True, 'archived_product_id': 'prod_1'}
        mock_update.assert_called_once_with('plink_1', False)
        mock_archive.assert_called_once_with('prod_1')

    @patch('stripe_integration.archive.update_payment_link')
    @patch('stripe_integration.archive.archive_stripe_product')
    @patch('stripe_integration.archive.list_payment_links')
    def test_inactive_link_not_deactivated_again(self, mock_list, mock_archive, mock_update,
                                                 product_factory):
        mock_list.return_value = [remote_link(active=False)]

        result = archive_product_in_stripe('p1', get_product=lookup(product_factory(stripe_link=LINK_URL)))

        assert result['archived'] is True
        mock_update.assert_not_called()

    @patch('stripe_integration.archive.archive_stripe_product')
    @patch('stripe_integration.archive.list_payment_links')
    def test_no_match_reports_warning(self, mock_list, mock_archive, product_factory):
        mock_list.return_value = [remote_link('plink_other', 'https://buy.stripe.com/other')]

        result = archive_product_in_stripe('p1', get_product=lookup(product_factory(stripe_link=LINK_URL)))

        assert result['success'] is True
        assert result['archived'] is False
        assert result['warnings'] == [NO_MATCH_WARNING]
        mock_archive.assert_not_called()

    @patch('stripe_integration.archive.update_payment_link')
    @patch('stripe_integration.archive.archive_stripe_product')
    @patch('stripe_integration.archive.list_payment_links')
    def test_deactivate_failure_still_archives_product(self, mock_list, mock_archive, mock_update,
                                                       product_factory):
        mock_list.return_value = [remote_link()]
        mock_update.side_effect = StripeAPIError('Link locked')

        result = archive_product_in_stripe('p1', get_product=lookup(product_factory(stripe_link=LINK_URL)))

        assert result['archived'] is True
        assert result['warnings'] == ['Payment link deactivate: Link locked']
        mock_archive.assert_called_once_with('prod_1')

    @patch('stripe_integration.archive.list_payment_links')
    def test_list_failure_never_raises(self, mock_list, product_factory):
        mock_list.side_effect = StripeAPIError('Stripe unavailable')

        result = archive_product_in_stripe('p1', get_product=lookup(product_factory(stripe_link=LINK_URL)))

        assert result['success'] is True
        assert result['archived'] is False
        assert result['warnings'] == ['Stripe archive: Stripe unavailable']


class TestFindPaymentLink:
    """Test URL matching"""

    def test_exact_url(self):
        assert find_payment_link(LINK_URL, [remote_link()])['id'] == 'plink_1'

    def test_id_contained_in_stored_link(self):
        link = remote_link('plink_1', 'https://buy.stripe.com/changed')
        assert find_payment_link('https://example.com/?link=plink_1', [link]) is link

    def test_no_match(self):
        assert find_payment_link('https://buy.stripe.com/zzz', [remote_link()]) is None
