import threading
from datetime import datetime, timedelta

import pytest

import config
from app import create_app
from extensions import db
from utils import store
from utils.errors import ConfigurationError


def _seed_activities(n, base=None):
    base = base or datetime(2025, 1, 1, 12, 0, 0)
    for i in range(n):
        store.insert_one('activities', {
            'type': 'blog' if i % 2 else 'project',
            'title': f'Item {i}',
            'action': 'view' if i % 5 == 0 else 'update',
            'timestamp': base + timedelta(minutes=i),
        })


def test_create_app_without_database_url_fails(monkeypatch):
    for var in ('DATABASE_URL', 'PGUSER', 'PGPASSWORD', 'PGHOST', 'PGPORT', 'PGDATABASE'):
        monkeypatch.delenv(var, raising=False)

    with pytest.raises(ConfigurationError):
        create_app('development')


def test_get_database_requires_connection_string(app, monkeypatch):
    assert store.get_database() is db

    monkeypatch.setitem(app.config, 'SQLALCHEMY_DATABASE_URI', None)
    with pytest.raises(ConfigurationError):
        store.get_database()


def test_get_database_reuses_the_same_engine(app):
    assert store.get_database().engine is store.get_database().engine


def test_resolve_database_url_rewrites_postgres_scheme(monkeypatch):
    monkeypatch.setenv('DATABASE_URL', 'postgres://u:p@localhost:5432/site')
    assert config.resolve_database_url() == 'postgresql://u:p@localhost:5432/site'


def test_resolve_database_url_from_pg_variables(monkeypatch):
    monkeypatch.delenv('DATABASE_URL', raising=False)
    monkeypatch.setenv('PGUSER', 'u')
    monkeypatch.setenv('PGPASSWORD', 'p')
    monkeypatch.setenv('PGHOST', 'db')
    monkeypatch.setenv('PGPORT', '5432')
    monkeypatch.setenv('PGDATABASE', 'site')
    assert config.resolve_database_url() == 'postgresql://u:p@db:5432/site'


def test_unknown_collection_and_field(app):
    with pytest.raises(ValueError):
        store.find_many('nope')
    with pytest.raises(ValueError):
        store.find_many('activities', {'missing': 1})
    with pytest.raises(ValueError):
        store.find_many('activities', {'action': {'$regex': 'x'}})


def test_find_many_filters_sort_skip_limit(app):
    _seed_activities(10)

    newest = store.find_many('activities', sort={'timestamp': -1}, limit=3)
    assert [a.title for a in newest] == ['Item 9', 'Item 8', 'Item 7']

    second_page = store.find_many('activities', sort={'timestamp': -1}, skip=3, limit=3)
    assert [a.title for a in second_page] == ['Item 6', 'Item 5', 'Item 4']

    non_views = store.find_many('activities', {'action': {'$ne': 'view'}})
    assert len(non_views) == 8
    assert store.count('activities', {'action': {'$ne': 'view'}}) == 8

    picked = store.find_many('activities', {'title': {'$in': ['Item 1', 'Item 2']}})
    assert sorted(a.title for a in picked) == ['Item 1', 'Item 2']

    since = datetime(2025, 1, 1, 12, 7, 0)
    assert store.count('activities', {'timestamp': {'$gte': since}}) == 3


def test_find_one_and_missing(app):
    _seed_activities(3)
    assert store.find_one('activities', {'title': 'Item 2'}).type == 'project'
    assert store.find_one('activities', {'title': 'Item 99'}) is None


def test_update_one_touches_single_document(app):
    _seed_activities(4)

    matched = store.update_one('activities', {'type': 'project'}, {'details': 'changed'})
    assert matched == 1
    assert store.count('activities', {'details': 'changed'}) == 1

    assert store.update_one('activities', {'title': 'Item 99'}, {'details': 'x'}) == 0


def test_delete_one(app):
    _seed_activities(2)
    assert store.delete_one('activities', {'title': 'Item 0'}) == 1
    assert store.delete_one('activities', {'title': 'Item 0'}) == 0
    assert store.count('activities') == 1


def test_add_to_set_keeps_values_unique(app):
    message = store.insert_one('contactMessages', {
        'name': 'A', 'email': 'a@example.com', 'subject': 'S', 'message': 'M' * 12, 'tags': [],
    })

    assert store.add_to_set('contactMessages', {'id': message.id}, 'tags', 'lead') == 1
    assert store.add_to_set('contactMessages', {'id': message.id}, 'tags', 'lead') == 1
    assert store.add_to_set('contactMessages', {'id': message.id}, 'tags', 'urgent') == 1
    assert store.find_one('contactMessages', {'id': message.id}).tags == ['lead', 'urgent']

    assert store.add_to_set('contactMessages', {'id': 'missing'}, 'tags', 'x') == 0


def test_upsert_increment_creates_then_increments(app):
    assert store.upsert_increment('page_views', 'path', '/blog', touch='last_updated') == 1
    first = store.find_one('page_views', {'path': '/blog'}).last_updated

    assert store.upsert_increment('page_views', 'path', '/blog', touch='last_updated') == 2
    view = store.find_one('page_views', {'path': '/blog'})
    assert view.count == 2
    assert view.last_updated >= first
    assert store.count('page_views') == 1


def test_concurrent_increments_do_not_lose_updates(monkeypatch, tmp_path):
    monkeypatch.setattr(config.TestingConfig, 'SQLALCHEMY_DATABASE_URI',
                        f"sqlite:///{tmp_path / 'views.db'}")
    monkeypatch.setattr(config.TestingConfig, 'SQLALCHEMY_ENGINE_OPTIONS',
                        {'connect_args': {'check_same_thread': False, 'timeout': 30}})
    app = create_app('testing')

    threads_count, per_thread = 8, 5
    errors = []

    def worker():
        try:
            with app.app_context():
                for _ in range(per_thread):
                    store.upsert_increment('page_views', 'path', '/about', touch='last_updated')
                db.session.remove()
        except Exception as e:  # surfaced through the assertion below
            errors.append(e)

    threads = [threading.Thread(target=worker) for _ in range(threads_count)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    with app.app_context():
        assert store.find_one('page_views', {'path': '/about'}).count == threads_count * per_thread
        db.session.remove()
        db.engine.dispose()


def test_count_by_groups_matching_documents(app):
    _seed_activities(10)

    assert store.count_by('activities', 'type') == {'blog': 5, 'project': 5}
    assert store.count_by('activities', 'action', {'type': 'project'}) == {'view': 1, 'update': 4}
    assert store.count_by('activities', 'type', {'title': 'Item 99'}) == {}
    with pytest.raises(ValueError):
        store.count_by('activities', 'missing')
