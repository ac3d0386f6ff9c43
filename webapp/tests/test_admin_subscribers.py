"""
Tests for admin subscriber and dashboard routes
"""

from datetime import datetime
from unittest.mock import patch

import pytest

from models import Subscriber


def make_subscriber(**overrides):
    fields = {
        'id': 's1',
        'email': 'reader@example.com',
        'subscribed_at': datetime(2026, 3, 1, 12, 0),
    }
    fields.update(overrides)
    return Subscriber(**fields)


class TestSubscriberAuth:
    """Test subscriber routes require an admin session"""

    @pytest.mark.parametrize('method,path', [
        ('get', '/admin/api/subscribers'),
        ('get', '/admin/api/subscribers/by-month'),
        ('delete', '/admin/api/subscribers/s1'),
        ('get', '/admin/api/dashboard/stats'),
    ])
    def test_requires_login(self, client, method, path):
        assert getattr(client, method)(path).status_code == 401


class TestSubscriberRoutes:
    """Test listing and deleting subscribers"""

    @patch.object(Subscriber, 'get_all')
    def test_list_subscribers(self, mock_get_all, admin_session):
        mock_get_all.return_value = [
            make_subscriber(),
            make_subscriber(id='s2', email='gone@example.com', active=False),
        ]

        data = admin_session.get('/admin/api/subscribers').get_json()

        assert data['total'] == 2
        assert data['active'] == 1
        assert data['subscribers'][0]['subscribed_at'] == '2026-03-01T12:00:00'
        assert data['subscribers'][0]['source'] == 'website'

    @patch.object(Subscriber, 'count_by_month')
    def test_by_month(self, mock_count, admin_session):
        mock_count.return_value = [{'month': '2026-03', 'count': 4}]

        data = admin_session.get('/admin/api/subscribers/by-month').get_json()

        assert data['months'] == [{'month': '2026-03', 'count': 4}]

    @patch.object(Subscriber, 'get_by_id', return_value=None)
    def test_delete_missing(self, mock_get, admin_session):
        assert admin_session.delete('/admin/api/subscribers/nope').status_code == 404

    @patch('admin.subscribers.record_action')
    @patch.object(Subscriber, 'delete')
    @patch.object(Subscriber, 'get_by_id')
    def test_delete_subscriber(self, mock_get, mock_delete, mock_record, admin_session):
        mock_get.return_value = make_subscriber()

        response = admin_session.delete('/admin/api/subscribers/s1')

        assert response.status_code == 200
        mock_delete.assert_called_once()
        mock_record.assert_called_once_with(
            'subscriber_delete', 'subscriber', 's1', 'reader@example.com'
        )


class TestDashboardStats:
    """Test the dashboard counters"""

    @patch('admin.subscribers.get_dashboard_stats')
    def test_stats(self, mock_stats, admin_session):
        mock_stats.return_value = {
            'posts_count': 3, 'products_count': 2, 'subscribers_count': 10, 'views_count': 420
        }

        data = admin_session.get('/admin/api/dashboard/stats').get_json()

        assert data['success'] is True
        assert data['stats']['views_count'] == 420
