"""
Settings Routes - Site settings and the cached public profile
"""

from flask import request, jsonify, current_app
from utils.settings import (
    get_all_settings, get_setting_by_key, update_setting, delete_setting,
    get_profile, invalidate_profile
)
from utils.activity import log_activity
from utils.decorators import admin_required
from utils.security import get_current_identity
from utils.errors import ValidationError, NotFoundError
from utils.payload import get_json_body, optional_string
from . import settings_bp


def _setting_fields(body):
    key, value = optional_string(body, 'key'), body.get('value')
    if isinstance(value, (dict, list)):
        raise ValidationError('Setting value must be a scalar')
    return key, value


def _preview(value, limit=50):
    value = str(value)
    return value[:limit] + '...' if len(value) > limit else value


def _save_and_log(key, value):
    setting = update_setting(key, value)
    invalidate_profile()

    identity = get_current_identity() or {}
    log_activity(
        'profile', f"Updated setting: {key}", 'update',
        description=f"Updated site setting with key {key}",
        details=f"New value: {_preview(value)}",
        user=identity.get('name') or 'Admin'
    )
    return setting


@settings_bp.route('/site-settings')
def list_settings():
    """All settings, or a single one by key"""
    key = request.args.get('key')
    if key:
        setting = get_setting_by_key(key)
        if not setting:
            raise NotFoundError('Setting not found')
        return jsonify(setting)
    return jsonify(get_all_settings())


@settings_bp.route('/site-settings', methods=['POST'])
@admin_required
def create_setting():
    body = get_json_body()
    key, value = _setting_fields(body)
    if not key or not value:
        raise ValidationError('Key and value are required')

    if get_setting_by_key(key):
        return jsonify({'error': 'Setting with this key already exists. Use PUT to update.'}), 409

    return jsonify(_save_and_log(key, str(value))), 201


@settings_bp.route('/site-settings', methods=['PUT'])
@admin_required
def put_setting():
    """Update or create a setting"""
    body = get_json_body()
    key, value = _setting_fields(body)
    if not key or value is None:
        raise ValidationError('Key and value are required')

    return jsonify(_save_and_log(key, str(value)))


@settings_bp.route('/site-settings', methods=['DELETE'])
@admin_required
def remove_setting():
    body = get_json_body()
    key = optional_string(body, 'key') or request.args.get('key')
    if not key:
        raise ValidationError('Key is required')

    deleted = delete_setting(key)
    invalidate_profile()
    current_app.logger.info(f"Site setting '{key}' deleted: {deleted}")
    return jsonify({'success': True, 'deleted': key if deleted else None})


@settings_bp.route('/profile')
def profile():
    return jsonify(get_profile())
