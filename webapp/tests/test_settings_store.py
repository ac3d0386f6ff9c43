"""
Tests for the sectioned settings store
"""

import pytest

from settings_store import SettingsStore, MemorySettingsBackend, MASK


@pytest.fixture
def store():
    return SettingsStore(backend=MemorySettingsBackend({
        'integrations': {'provider': 'openai', 'apiKey': 'sk-real-secret'},
        'profile': {'name': 'Jane'},
    }))


class TestSettingsStore:
    """Test reads, writes and secret masking"""

    def test_get_all_masks_secrets(self, store):
        settings = store.get_all()
        assert settings['integrations'] == {'provider': 'openai', 'apiKey': MASK}
        assert settings['profile'] == {'name': 'Jane'}

    def test_get_all_unmasked(self, store):
        assert store.get_all(masked=False)['integrations']['apiKey'] == 'sk-real-secret'

    def test_empty_secret_not_masked(self):
        store = SettingsStore(backend=MemorySettingsBackend({'integrations': {'apiKey': ''}}))
        assert store.get_all()['integrations']['apiKey'] == ''

    def test_set_known_section(self, store):
        store.set('contact', {'email': 'hello@example.com'})
        assert store.get('contact') == {'email': 'hello@example.com'}

    def test_set_unknown_section_rejected(self, store):
        with pytest.raises(ValueError):
            store.set('billing', {})

    def test_masked_secret_keeps_stored_value(self, store):
        store.set('integrations', {'provider': 'anthropic', 'apiKey': MASK})

        saved = store.get('integrations')
        assert saved == {'provider': 'anthropic', 'apiKey': 'sk-real-secret'}

    def test_nested_masked_secret_keeps_stored_value(self):
        store = SettingsStore(backend=MemorySettingsBackend({
            'integrations': {'stripe': {'secretKey': 'sk_live_real', 'testMode': False}},
        }))

        section = store.get_all()['integrations']
        assert section['stripe']['secretKey'] == MASK
        section['stripe']['testMode'] = True
        store.set('integrations', section)

        assert store.get('integrations') == {
            'stripe': {'secretKey': 'sk_live_real', 'testMode': True}
        }

    def test_masked_secret_without_stored_value_is_dropped(self, store):
        store.set('chat', {'assistant': {'apiKey': MASK}})
        assert store.get('chat') == {'assistant': {'apiKey': None}}

    def test_new_secret_replaces_stored_value(self, store):
        store.set('integrations', {'provider': 'openai', 'apiKey': 'sk-new'})
        assert store.get('integrations')['apiKey'] == 'sk-new'

    def test_update_validates_before_writing(self, store):
        with pytest.raises(ValueError):
            store.update({'profile': {'name': 'Changed'}, 'unknown': {}})

        assert store.get('profile') == {'name': 'Jane'}

    def test_update_writes_all_sections(self, store):
        store.update({'profile': {'name': 'Changed'}, 'chat': {'enabled': True}})

        assert store.get('profile') == {'name': 'Changed'}
        assert store.get('chat') == {'enabled': True}


class TestSettingsRoutes:
    """Test the admin settings API"""

    def test_settings_requires_login(self, client):
        response = client.get('/admin/api/settings')
        assert response.status_code == 401

    def test_get_settings(self, admin_session, settings_store):
        settings_store.set('integrations', {'apiKey': 'sk-secret'})

        response = admin_session.get('/admin/api/settings')

        assert response.status_code == 200
        data = response.get_json()
        assert data['settings']['integrations']['apiKey'] == MASK
        assert data['stripe']['configured'] is True
        assert 'sk_test_123' not in response.get_data(as_text=True)

    def test_save_settings(self, admin_session, settings_store, monkeypatch):
        monkeypatch.setattr('admin.api.record_action', lambda *args, **kwargs: None)

        response = admin_session.post('/admin/api/settings', json={'profile': {'name': 'New'}})

        assert response.status_code == 200
        assert settings_store.get('profile') == {'name': 'New'}

    def test_save_unknown_section(self, admin_session, settings_store):
        response = admin_session.post('/admin/api/settings', json={'payroll': {}})
        assert response.status_code == 400

    def test_save_empty_body(self, admin_session, settings_store):
        response = admin_session.post('/admin/api/settings', json={})
        assert response.status_code == 400
