"""
Activities Routes - Activity ledger API
"""

from flask import request, jsonify
from utils.activity import (
    ACTIVITY_TYPES, submit_activity, get_recent_activity, list_activity,
    get_activities_by_item_id, get_activity_statistics
)
from utils.decorators import admin_required
from utils.security import get_current_identity
from utils.errors import ValidationError
from utils.payload import get_json_body
from . import activities_bp


def _int_arg(name, default):
    value = request.args.get(name)
    if value is None or value == '':
        return default
    try:
        return int(value)
    except ValueError:
        raise ValidationError(f"'{name}' must be an integer")


def _bool_arg(name):
    return request.args.get(name, '').lower() in ('1', 'true', 'yes')


@activities_bp.route('/activities')
def recent_activities():
    """Most recent activities"""
    limit = max(1, min(_int_arg('limit', 10), 100))
    return jsonify(get_recent_activity(limit))


@activities_bp.route('/activities', methods=['POST'])
def create_activity():
    """Record an activity; admin page views are skipped"""
    result = submit_activity(get_json_body(), get_current_identity())
    if result.get('skipped'):
        return jsonify(result)
    return jsonify(result), 201


@activities_bp.route('/admin/activities')
@admin_required
def admin_activities():
    """Paginated activity listing with type filter and optional page views"""
    activity_type = request.args.get('type') or None
    if activity_type and activity_type not in ACTIVITY_TYPES:
        raise ValidationError(f"Unknown activity type: {activity_type}")

    return jsonify(list_activity(
        type=activity_type,
        include_views=_bool_arg('includeViews'),
        page=_int_arg('page', 1),
        page_size=_int_arg('pageSize', None)
    ))


@activities_bp.route('/admin/activities/stats')
@admin_required
def activity_stats():
    return jsonify(get_activity_statistics())


@activities_bp.route('/admin/activities/items/<item_id>')
@admin_required
def item_activities(item_id):
    """History of a single item"""
    return jsonify(get_activities_by_item_id(item_id, limit=_int_arg('limit', 20)))
