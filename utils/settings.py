"""
Settings Module - Site settings key/value store and the derived profile
"""

import time
import threading
from datetime import datetime
from flask import current_app
from .store import find_many, find_one, insert_one, update_one, delete_one, to_iso


PROFILE_CACHE_KEY = 'profile'
TAGLINE_PREFIX = 'profile_tagline_'
DEFAULT_TAGLINE = 'Building the future of the web'


def _to_int(value):
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return 0


def _to_list(value):
    return [item.strip() for item in str(value or '').split(',') if item.strip()]


# setting key -> (profile field, converter)
PROFILE_FIELDS = {
    'profile_name': ('name', str),
    'profile_bio': ('bio', str),
    'profile_role': ('role', str),
    'profile_email': ('email', str),
    'profile_location': ('location', str),
    'profile_website': ('website', str),
    'profile_github': ('github', str),
    'profile_linkedin': ('linkedin', str),
    'profile_twitter': ('twitter', str),
    'profile_avatar': ('avatar', str),
    'profile_years_experience': ('yearsOfExperience', _to_int),
    'profile_projects_completed': ('projectsCompleted', _to_int),
    'profile_happy_clients': ('happyClients', _to_int),
    'profile_technologies': ('technologies', _to_list),
}

DEFAULT_PROFILE = {
    'name': '',
    'bio': '',
    'role': 'Full Stack Developer',
    'email': '',
    'location': '',
    'website': '',
    'github': '',
    'linkedin': '',
    'twitter': '',
    'avatar': '',
    'yearsOfExperience': 0,
    'projectsCompleted': 0,
    'happyClients': 0,
    'technologies': [],
    'taglines': [DEFAULT_TAGLINE],
}


class TTLCache:
    """Small time-based cache with an injectable clock"""

    def __init__(self, clock=time.monotonic):
        self._clock = clock
        self._entries = {}  # {key: (expires_at, value)}
        self._generations = {}  # {key: invalidation count}
        self._lock = threading.Lock()

    def get(self, key, loader, ttl):
        """
        Return the cached value for key, calling loader when missing or expired

        A value loaded while the key was invalidated is returned but not
        stored, so the next call loads again.
        """
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry and entry[0] > now:
                return entry[1]
            generation = self._generations.get(key, 0)

        value = loader()
        with self._lock:
            if self._generations.get(key, 0) == generation:
                self._entries[key] = (self._clock() + ttl, value)
        return value

    def invalidate(self, key):
        with self._lock:
            self._entries.pop(key, None)
            self._generations[key] = self._generations.get(key, 0) + 1


def setting_to_dict(setting):
    """Convert site setting model to dictionary"""
    return {
        '_id': setting.id,
        'key': setting.key,
        'value': setting.value,
        'createdAt': to_iso(setting.created_at),
        'updatedAt': to_iso(setting.updated_at)
    }


def get_all_settings():
    return [setting_to_dict(s) for s in find_many('siteSettings', sort={'key': 1})]


def get_setting_by_key(key):
    setting = find_one('siteSettings', {'key': key})
    return setting_to_dict(setting) if setting else None


def update_setting(key, value):
    """Create or update a setting; returns the stored setting"""
    now = datetime.utcnow()
    if not update_one('siteSettings', {'key': key}, {'value': value, 'updated_at': now}):
        insert_one('siteSettings', {
            'key': key,
            'value': value,
            'created_at': now,
            'updated_at': now
        })
    current_app.logger.info(f"Site setting '{key}' saved")
    return get_setting_by_key(key)


def delete_setting(key):
    """Delete a setting; True if one was removed"""
    return delete_one('siteSettings', {'key': key}) > 0


def get_default_setting_value(key, default_value=''):
    setting = get_setting_by_key(key)
    return (setting or {}).get('value') or default_value


def initialize_default_settings(defaults):
    """Insert any default settings whose key does not exist yet"""
    existing_keys = {s.key for s in find_many('siteSettings', projection=['key'])}
    now = datetime.utcnow()
    created = 0
    for key, value in defaults.items():
        if key not in existing_keys:
            insert_one('siteSettings', {
                'key': key,
                'value': value,
                'created_at': now,
                'updated_at': now
            })
            created += 1
    current_app.logger.info(f"Initialized {created} default settings")
    return created


def normalize_profile(settings):
    """
    Resolve settings into the typed profile

    Args:
        settings: Iterable of {'key', 'value'} dicts

    Returns:
        dict: DEFAULT_PROFILE overlaid with known keys; profile_tagline_*
        values collected in key order into 'taglines'
    """
    profile = {k: (list(v) if isinstance(v, list) else v) for k, v in DEFAULT_PROFILE.items()}
    taglines = []

    for setting in sorted(settings, key=lambda s: s['key']):
        key, value = setting['key'], setting.get('value')
        if key in PROFILE_FIELDS:
            field, convert = PROFILE_FIELDS[key]
            profile[field] = convert(value if value is not None else '')
        elif key.startswith(TAGLINE_PREFIX) and value:
            taglines.append(value)

    profile['taglines'] = taglines or [DEFAULT_TAGLINE]
    return profile


def get_profile_cache():
    """The profile cache attached to the current app"""
    return current_app.extensions['profile_cache']


def get_profile():
    """Normalized profile, served from the cache within PROFILE_CACHE_TTL"""
    ttl = current_app.config.get('PROFILE_CACHE_TTL', 60)
    return get_profile_cache().get(
        PROFILE_CACHE_KEY,
        lambda: normalize_profile(get_all_settings()),
        ttl
    )


def invalidate_profile():
    get_profile_cache().invalidate(PROFILE_CACHE_KEY)


__all__ = [
    'PROFILE_FIELDS',
    'DEFAULT_PROFILE',
    'TTLCache',
    'setting_to_dict',
    'get_all_settings',
    'get_setting_by_key',
    'update_setting',
    'delete_setting',
    'get_default_setting_value',
    'initialize_default_settings',
    'normalize_profile',
    'get_profile_cache',
    'get_profile',
    'invalidate_profile'
]
