"""
Settings store for the admin settings panel.

Values are grouped in sections (profile, chat, contact, integrations) and
persisted through an injected backend, so the panel works against the
database in production and an in-memory dict in tests.
"""

import logging

logger = logging.getLogger(__name__)

KNOWN_SECTIONS = ('profile', 'chat', 'contact', 'integrations')

SECRET_FIELDS = ('apiKey', 'secretKey', 'serviceRoleKey', 'webhookSecret')

MASK = '********'


class DatabaseSettingsBackend:
    """Reads and writes the settings table"""

    def load_all(self):
        from models import Setting
        return Setting.get_all()

    def save(self, key, value):
        from models import Setting
        Setting.upsert(key, value)


class MemorySettingsBackend:
    """Process-local backend"""

    def __init__(self, initial=None):
        self._data = dict(initial or {})

    def load_all(self):
        return dict(self._data)

    def save(self, key, value):
        self._data[key] = value


def mask_secrets(value):
    """Replace secret-looking fields of a section with a fixed mask"""
    if not isinstance(value, dict):
        return value
    return {
        k: (MASK if k in SECRET_FIELDS and v else mask_secrets(v))
        for k, v in value.items()
    }


def restore_secrets(value, current):
    """Put stored secrets back wherever the incoming value still holds the mask"""
    if not isinstance(value, dict):
        return value
    if not isinstance(current, dict):
        current = {}
    return {
        k: (current.get(k) if k in SECRET_FIELDS and v == MASK else restore_secrets(v, current.get(k)))
        for k, v in value.items()
    }


class SettingsStore:
    """Section-based settings with pluggable persistence"""

    def __init__(self, backend=None):
        self.backend = backend or DatabaseSettingsBackend()

    def get_all(self, masked=True):
        settings = self.backend.load_all()
        if masked:
            return {key: mask_secrets(value) for key, value in settings.items()}
        return settings

    def get(self, key, default=None):
        return self.backend.load_all().get(key, default)

    def set(self, key, value):
        if key not in KNOWN_SECTIONS:
            raise ValueError(f"Unknown settings section: {key}")

        # A masked secret coming back from the UI means "unchanged"
        value = restore_secrets(value, self.get(key))

        self.backend.save(key, value)
        logger.info(f"Settings section '{key}' updated")

    def update(self, mapping):
        """Validate every section name before writing any of them"""
        unknown = [key for key in mapping if key not in KNOWN_SECTIONS]
        if unknown:
            raise ValueError(f"Unknown settings section(s): {', '.join(sorted(unknown))}")
        for key, value in mapping.items():
            self.set(key, value)
