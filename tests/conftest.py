import pytest

from app import create_app
from extensions import db
from utils import security


ADMIN_USERNAME = 'admin'
ADMIN_PASSWORD = 'admin-password'


@pytest.fixture
def app():
    """
    Provide an application on a fresh in-memory SQLite database,
    with an app context pushed for direct calls into the utils layer.
    """
    app = create_app('testing')
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_client(client):
    """Test client holding a logged-in admin session"""
    resp = client.post('/auth/login', json={'username': ADMIN_USERNAME, 'password': ADMIN_PASSWORD})
    assert resp.status_code == 200, resp.get_data(as_text=True)
    return client


@pytest.fixture(autouse=True)
def reset_rate_limits():
    security.RATE_LIMIT_REQUESTS.clear()
    yield
    security.RATE_LIMIT_REQUESTS.clear()


@pytest.fixture
def make_message():
    """Factory creating contact messages through the workflow"""
    from utils.contact import create_contact_message

    def _make(name='Jane Doe', email='jane@example.com', subject='Hello there',
              message='I would like to talk about a project.'):
        return create_contact_message(name, email, subject, message)

    return _make
