"""
Tests for the read-only Stripe drift report
"""

import os
import sys

sys.path.insert(0, os.path.join(
    os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))), 'scripts'
))

from unittest.mock import Mock, patch

from check_stripe_drift import compare, fetch_remote_products


class TestCompare:
    """Test drift classification"""

    def test_classifies_products(self, product_factory):
        local = [
            product_factory(id='p1', stripe_product_id='prod_1'),
            product_factory(id='p2', stripe_product_id='prod_gone'),
            product_factory(id='p3'),
        ]
        remote = {'prod_1': 'p1', 'prod_orphan': 'p9'}

        report = compare(local, remote)

        assert report['missing_remote'] == [('prod_gone', 'p2')]
        assert report['untracked_remote'] == [('prod_orphan', 'p9')]
        assert report['never_synced'] == ['p3']

    def test_no_drift(self, product_factory):
        report = compare([product_factory(stripe_product_id='prod_1')], {'prod_1': 'p1'})
        assert report['missing_remote'] == []
        assert report['untracked_remote'] == []


class TestFetchRemoteProducts:
    """Test remote product listing"""

    @patch('stripe.Product.list')
    def test_only_admin_created_products(self, mock_list):
        mock_list.return_value.auto_paging_iter.return_value = [
            Mock(id='prod_1', metadata={'local_product_id': 'p1'}),
            Mock(id='prod_manual', metadata={}),
        ]

        assert fetch_remote_products() == {'prod_1': 'p1'}
        mock_list.assert_called_once_with(limit=100, active=True)

    @patch('stripe.Product.list')
    def test_include_inactive(self, mock_list):
        mock_list.return_value.auto_paging_iter.return_value = []

        fetch_remote_products(include_inactive=True)

        mock_list.assert_called_once_with(limit=100)
