import pytest

from app import create_app
from models import db


@pytest.fixture
def app(tmp_path):
    app = create_app({
        "TESTING": True,
        "SECRET_KEY": "test-secret",
        "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'test.db'}",
        "RECENT_TRANSACTIONS_LIMIT": 5,
    })
    yield app
    with app.app_context():
        db.session.remove()
        db.engine.dispose()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def session(app):
    with app.app_context():
        yield db.session


@pytest.fixture
def auth_client(client):
    client.post("/register", json={"name": "Ana", "email": "ana@example.com", "password": "s3cret"})
    resp = client.post("/login", data={"email": "ana@example.com", "password": "s3cret"})
    assert resp.status_code == 302
    return client
