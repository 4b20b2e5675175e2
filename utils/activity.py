"""
Activity Module - Append-only activity ledger

Records create/update/delete/view events for the content-management
side of the site. Entries are never updated or deleted here.
"""

import math
from datetime import datetime, timedelta
from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from .store import find_many, count, count_by, insert_one, to_iso
from .security import is_admin
from .errors import ValidationError, AuthorizationError, PersistenceError


ACTIVITY_TYPES = {
    'blog', 'project', 'skill', 'experience', 'education',
    'profile', 'contact', 'system', 'other'
}

# Actions that may be recorded without an admin session
ANONYMOUS_ACTIONS = {'view', 'create'}

SKIPPED_RESULT = {'skipped': True, 'message': 'Admin page views are not tracked'}


def activity_to_dict(activity):
    """Convert activity model to dictionary"""
    return {
        '_id': activity.id,
        'type': activity.type,
        'action': activity.action,
        'title': activity.title,
        'description': activity.description or '',
        'details': activity.details or '',
        'path': activity.path or '',
        'user': activity.user,
        'itemId': activity.item_id,
        'timestamp': to_iso(activity.timestamp)
    }


def is_admin_view(action, path=None, user=None):
    """True for page views that originate from the admin area"""
    if action != 'view':
        return False
    marker = current_app.config.get('ADMIN_PATH_MARKER', '/admin/').lower()
    if isinstance(path, str) and marker in path.lower():
        return True
    return isinstance(user, str) and user.lower() == 'admin'


def validate_activity(type, title, action):
    """Validate required activity fields"""
    if not all(isinstance(value, str) and value.strip() for value in (type, title, action)):
        raise ValidationError('Type, title and action are required')
    if type not in ACTIVITY_TYPES:
        raise ValidationError(f"Unknown activity type: {type}")


def resolve_actor(identity=None, user=None):
    """Explicit actor, else the session's display name, else Visitor"""
    if user:
        return user
    if identity:
        return identity.get('name') or 'Admin'
    return 'Visitor'


def record_activity(type, title, action, description='', details='', path='',
                    user=None, identity=None, item_id=None):
    """
    Append one event to the ledger

    Args:
        type (str): Activity type (blog, project, contact, ...)
        title (str): Human label of the affected entity
        action (str): Action performed (create, update, delete, view, ...)
        description (str): Free text description
        details (str): Free text details
        path (str): Link back to the affected resource
        user (str, optional): Explicit actor name
        identity (dict, optional): Session identity used for attribution
        item_id (str, optional): Identifier of the affected entity

    Returns:
        dict: The persisted event, or a skipped marker for admin views

    Raises:
        ValidationError: Missing or unknown fields
        PersistenceError: The write failed
    """
    if is_admin_view(action, path, user):
        current_app.logger.debug(f"Skipping admin page view: {path}")
        return dict(SKIPPED_RESULT)

    validate_activity(type, title, action)

    try:
        activity = insert_one('activities', {
            'type': type,
            'title': title,
            'action': action,
            'description': description or '',
            'details': details or '',
            'path': path or '',
            'user': resolve_actor(identity, user),
            'item_id': item_id,
            'timestamp': datetime.utcnow()
        })
    except SQLAlchemyError as e:
        current_app.logger.error(f"Error inserting activity: {str(e)}")
        raise PersistenceError('Failed to create activity') from e

    return activity_to_dict(activity)


def submit_activity(data, identity=None):
    """
    Caller-facing write entry point

    Actions other than view and create require an admin identity.
    Attribution comes from the identity only.
    """
    data = data or {}
    if not isinstance(data, dict):
        raise ValidationError('Activity must be an object')
    action = data.get('action')
    path = data.get('path') or ''
    if not isinstance(path, str):
        raise ValidationError('Path must be a string')

    if is_admin_view(action, path):
        return dict(SKIPPED_RESULT)

    validate_activity(data.get('type'), data.get('title'), action)

    if action not in ANONYMOUS_ACTIONS and not is_admin(identity):
        raise AuthorizationError('Unauthorized for this action type')

    return record_activity(
        type=data.get('type'),
        title=data.get('title'),
        action=action,
        description=data.get('description') or '',
        details=data.get('details') or '',
        path=path,
        identity=identity,
        item_id=data.get('itemId')
    )


def log_activity(type, title, action, **kwargs):
    """Record a side-effect activity; failures are logged, never raised"""
    try:
        return record_activity(type, title, action, **kwargs)
    except (PersistenceError, ValidationError) as e:
        current_app.logger.error(f"Failed to log {type}/{action} activity: {str(e)}")
        return None


def format_activity_time(moment):
    """Format a moment as ('Jan 5, 2025', '03:04:05 PM')"""
    date_part = f"{moment.strftime('%b')} {moment.day}, {moment.year}"
    return date_part, moment.strftime('%I:%M:%S %p')


def track_detailed_activity(type, title, action, details, path=None, user=None, item_id=None):
    """Track an activity with a timestamped human-readable description"""
    date_part, time_part = format_activity_time(datetime.utcnow())
    return log_activity(
        type, title, action,
        description=f"{details} on {date_part} at {time_part}",
        details=details,
        path=path or '',
        user=user or 'System',
        item_id=item_id
    )


def get_recent_activity(limit=10):
    """Most recent activities, newest first"""
    activities = find_many('activities', sort={'timestamp': -1}, limit=limit)
    return [activity_to_dict(a) for a in activities]


def list_activity(type=None, include_views=False, page=1, page_size=None):
    """
    Paginated, filtered activity listing

    Returns:
        dict: {items, total, page, pageSize, totalPages}
    """
    max_page_size = current_app.config.get('ACTIVITY_MAX_PAGE_SIZE', 100)
    if page_size is None:
        page_size = current_app.config.get('ACTIVITY_DEFAULT_PAGE_SIZE', 50)
    page_size = max(1, min(int(page_size), max_page_size))
    page = max(1, int(page))

    query = {}
    if type:
        query['type'] = type
    if not include_views:
        query['action'] = {'$ne': 'view'}

    total = count('activities', query)
    activities = find_many(
        'activities',
        query,
        sort={'timestamp': -1},
        skip=(page - 1) * page_size,
        limit=page_size
    )

    return {
        'items': [activity_to_dict(a) for a in activities],
        'total': total,
        'page': page,
        'pageSize': page_size,
        'totalPages': math.ceil(total / page_size)
    }


def get_activities_by_type(type, limit=20):
    activities = find_many('activities', {'type': type}, sort={'timestamp': -1}, limit=limit)
    return [activity_to_dict(a) for a in activities]


def get_activities_by_item_id(item_id, limit=20):
    activities = find_many('activities', {'item_id': item_id}, sort={'timestamp': -1}, limit=limit)
    return [activity_to_dict(a) for a in activities]


def get_activity_statistics(now=None):
    """Counts over the whole ledger: windows, by type and by action"""
    now = now or datetime.utcnow()
    windows = {
        'today': now - timedelta(hours=24),
        'last7Days': now - timedelta(days=7),
        'last30Days': now - timedelta(days=30)
    }
    stats = {
        'total': count('activities'),
        'byType': count_by('activities', 'type'),
        'byAction': count_by('activities', 'action')
    }
    for name, since in windows.items():
        stats[name] = count('activities', {'timestamp': {'$gte': since}})

    return stats


__all__ = [
    'ACTIVITY_TYPES',
    'activity_to_dict',
    'is_admin_view',
    'record_activity',
    'submit_activity',
    'log_activity',
    'track_detailed_activity',
    'get_recent_activity',
    'list_activity',
    'get_activities_by_type',
    'get_activities_by_item_id',
    'get_activity_statistics'
]
