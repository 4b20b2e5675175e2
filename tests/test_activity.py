from datetime import datetime, timedelta

import pytest
from sqlalchemy.exc import OperationalError

from utils import activity
from utils import store
from utils.errors import ValidationError, AuthorizationError, PersistenceError


ADMIN = {'name': 'Site Owner', 'role': 'ADMIN'}


def _insert(type='blog', action='update', title='Post', at=None, item_id=None):
    return store.insert_one('activities', {
        'type': type,
        'action': action,
        'title': title,
        'user': 'Admin',
        'item_id': item_id,
        'timestamp': at or datetime.utcnow(),
    })


def test_record_activity_persists_one_event(app):
    before = datetime.utcnow()
    result = activity.record_activity('blog', 'Hello world', 'create',
                                      description='New post', path='/blog/hello')

    assert store.count('activities') == 1
    assert result['type'] == 'blog'
    assert result['action'] == 'create'
    assert result['title'] == 'Hello world'
    assert result['user'] == 'Visitor'
    assert result['_id']

    stored = store.find_one('activities', {'id': result['_id']})
    assert stored.timestamp >= before


@pytest.mark.parametrize('path, user', [
    ('/admin/dashboard', None),
    ('/ADMIN/contact', None),
    ('/blog/post', 'admin'),
])
def test_admin_page_views_are_skipped(app, path, user):
    result = activity.record_activity('blog', 'Dashboard', 'view', path=path, user=user)

    assert result == {'skipped': True, 'message': 'Admin page views are not tracked'}
    assert store.count('activities') == 0


def test_admin_path_marker_only_applies_to_views(app):
    activity.record_activity('blog', 'Dashboard', 'update', path='/admin/blog')
    assert store.count('activities') == 1


@pytest.mark.parametrize('type, title, action', [
    ('', 'Title', 'create'),
    ('blog', '  ', 'create'),
    ('blog', 'Title', None),
    ('podcast', 'Title', 'create'),
])
def test_record_activity_validation(app, type, title, action):
    with pytest.raises(ValidationError):
        activity.record_activity(type, title, action)
    assert store.count('activities') == 0


def test_attribution(app):
    assert activity.record_activity('blog', 'A', 'create')['user'] == 'Visitor'
    assert activity.record_activity('blog', 'B', 'update', identity=ADMIN)['user'] == 'Site Owner'
    assert activity.record_activity('blog', 'C', 'update', identity={'role': 'ADMIN'})['user'] == 'Admin'
    assert activity.record_activity('blog', 'D', 'update', user='cron', identity=ADMIN)['user'] == 'cron'


def test_submit_activity_requires_admin_for_mutations(app):
    with pytest.raises(AuthorizationError):
        activity.submit_activity({'type': 'blog', 'title': 'Post', 'action': 'update'})
    assert store.count('activities') == 0

    created = activity.submit_activity({'type': 'blog', 'title': 'Post', 'action': 'update',
                                        'itemId': 'post-1'}, ADMIN)
    assert created['user'] == 'Site Owner'
    assert created['itemId'] == 'post-1'


def test_submit_activity_allows_anonymous_views(app):
    result = activity.submit_activity({'type': 'blog', 'title': 'Post', 'action': 'view',
                                       'path': '/blog/post'})
    assert result['user'] == 'Visitor'

    skipped = activity.submit_activity({'type': 'blog', 'title': 'Admin', 'action': 'view',
                                        'path': '/admin/blog'})
    assert skipped['skipped'] is True
    assert store.count('activities') == 1


def _failing_insert(collection, document):
    raise OperationalError('INSERT', {}, Exception('database is locked'))


def test_record_activity_store_failure(app, monkeypatch):
    monkeypatch.setattr(activity, 'insert_one', _failing_insert)

    with pytest.raises(PersistenceError):
        activity.record_activity('blog', 'Post', 'create')


def test_log_activity_swallows_failures(app, monkeypatch):
    assert activity.log_activity('podcast', 'Post', 'create') is None

    monkeypatch.setattr(activity, 'insert_one', _failing_insert)
    assert activity.log_activity('blog', 'Post', 'create') is None


def test_track_detailed_activity_description(app):
    result = activity.track_detailed_activity('contact', 'Contact from Jane', 'archive',
                                              'Archived message "Hi"', item_id='m1')

    assert result['user'] == 'System'
    assert result['details'] == 'Archived message "Hi"'
    assert result['description'].startswith('Archived message "Hi" on ')
    assert ' at ' in result['description']
    assert result['description'].endswith(('AM', 'PM'))


def test_format_activity_time():
    date_part, time_part = activity.format_activity_time(datetime(2025, 1, 5, 15, 4, 5))
    assert date_part == 'Jan 5, 2025'
    assert time_part == '03:04:05 PM'


def test_recent_activity_newest_first(app):
    base = datetime(2025, 3, 1, 9, 0, 0)
    for i in range(5):
        _insert(title=f'Post {i}', at=base + timedelta(hours=i))

    recent = activity.get_recent_activity(limit=3)
    assert [a['title'] for a in recent] == ['Post 4', 'Post 3', 'Post 2']


def test_list_activity_pagination(app):
    base = datetime(2025, 3, 1, 9, 0, 0)
    for i in range(25):
        _insert(title=f'Post {i}', at=base + timedelta(minutes=i))

    first = activity.list_activity(page=1, page_size=10)
    assert len(first['items']) == 10
    assert first['total'] == 25
    assert first['totalPages'] == 3
    assert first['items'][0]['title'] == 'Post 24'

    third = activity.list_activity(page=3, page_size=10)
    assert len(third['items']) == 5
    assert third['items'][-1]['title'] == 'Post 0'

    beyond = activity.list_activity(page=4, page_size=10)
    assert beyond['items'] == []
    assert beyond['total'] == 25


def test_list_activity_clamps_page_size(app):
    _insert()
    assert activity.list_activity(page_size=500)['pageSize'] == 100
    assert activity.list_activity(page_size=0)['pageSize'] == 1
    assert activity.list_activity()['pageSize'] == 50
    assert activity.list_activity(page=0)['page'] == 1


def test_list_activity_filters(app):
    _insert(type='blog', action='update')
    _insert(type='blog', action='view')
    _insert(type='project', action='create')

    assert activity.list_activity()['total'] == 2
    assert activity.list_activity(include_views=True)['total'] == 3
    assert activity.list_activity(type='blog')['total'] == 1
    assert activity.list_activity(type='blog', include_views=True)['total'] == 2


def test_activities_by_type_and_item(app):
    _insert(type='contact', item_id='m1', at=datetime(2025, 1, 1))
    _insert(type='contact', item_id='m1', action='reply', at=datetime(2025, 1, 2))
    _insert(type='blog', item_id='p1')

    assert len(activity.get_activities_by_type('contact')) == 2
    history = activity.get_activities_by_item_id('m1')
    assert [a['action'] for a in history] == ['reply', 'update']
    assert activity.get_activities_by_item_id('missing') == []


def test_activity_statistics(app):
    now = datetime(2025, 6, 30, 12, 0, 0)
    _insert(type='blog', action='create', at=now - timedelta(hours=1))
    _insert(type='blog', action='update', at=now - timedelta(days=3))
    _insert(type='project', action='view', at=now - timedelta(days=20))
    _insert(type='contact', action='create', at=now - timedelta(days=90))

    stats = activity.get_activity_statistics(now=now)
    assert stats['total'] == 4
    assert stats['today'] == 1
    assert stats['last7Days'] == 2
    assert stats['last30Days'] == 3
    assert stats['byType'] == {'blog': 2, 'project': 1, 'contact': 1}
    assert stats['byAction'] == {'create': 2, 'update': 1, 'view': 1}


@pytest.mark.parametrize('data', [
    ['blog', 'Post', 'view'],
    {'type': 'blog', 'title': 'Post', 'action': 'view', 'path': 42},
    {'type': 'blog', 'title': 'Post', 'action': 'view', 'path': ['/admin/']},
])
def test_submit_activity_rejects_malformed_input(app, data):
    with pytest.raises(ValidationError):
        activity.submit_activity(data)
    assert store.count('activities') == 0
