"""
Page Views Module - Per-path hit counter
"""

from .store import find_one, upsert_increment
from .errors import ValidationError


def normalize_path(path):
    if not isinstance(path, str) or not path.strip():
        raise ValidationError('Path parameter is required')
    return path.strip().lower()


def increment(path):
    """Atomically count one view of path; returns the new count"""
    return upsert_increment('page_views', 'path', normalize_path(path),
                            field='count', touch='last_updated')


def get_count(path):
    """Current view count of path, 0 when never viewed"""
    page_view = find_one('page_views', {'path': normalize_path(path)})
    return page_view.count if page_view else 0


__all__ = ['normalize_path', 'increment', 'get_count']
