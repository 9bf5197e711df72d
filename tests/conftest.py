import os
import sys
import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
os.environ.setdefault('APP_ENV', 'testing')
os.environ.setdefault('CELERY_TASK_ALWAYS_EAGER', '1')

from models import db  # noqa: E402

API = '/api/v1'


@pytest.fixture(scope='session')
def app_instance():
    from quickbuy import create_app
    app = create_app()
    app.config.update(
        TESTING=True,
        SQLALCHEMY_DATABASE_URI='sqlite:///:memory:',
        SQLALCHEMY_TRACK_MODIFICATIONS=False
    )
    return app

@pytest.fixture(scope='function')
def app(app_instance):
    with app_instance.app_context():
        db.drop_all()
        db.create_all()
        yield app_instance
        db.session.remove()
        db.drop_all()

@pytest.fixture(scope='function')
def client(app):
    return app.test_client()


@pytest.fixture
def login(client):
    """Return a callable issuing an access token header for a stub account."""
    def _login(username='buyer1', role='buyer'):
        resp = client.post('/__auth/login_stub', json={'username': username, 'role': role})
        data = resp.get_json()['data']
        return {'Authorization': f"Bearer {data['access']}"}, data['user_id']
    return _login


@pytest.fixture
def seed_cart(client):
    """Return a callable creating products and cart lines for a buyer."""
    def _seed(items, buyer='buyer1', seller='seller1'):
        resp = client.post('/__seed/cart', json={'buyer': buyer, 'seller': seller, 'items': items})
        return resp.get_json()['data']['product_ids']
    return _seed
