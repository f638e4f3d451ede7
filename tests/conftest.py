import pytest
from app import create_app
from models import db, Profile
from backend import create_client


@pytest.fixture
def app():
    """Fresh app on its own in-memory SQLite database."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SECRET_KEY': 'test-secret',
        'DEFAULT_CURRENCY': 'INR',
    })
    yield app
    with app.app_context():
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def ctx(app):
    with app.app_context():
        yield app


@pytest.fixture
def backend(ctx):
    return create_client({})


@pytest.fixture
def profiles(ctx):
    db.session.add_all([
        Profile(username='ana', full_name='Ana Lima'),
        Profile(username='raj', full_name='Raj Patel'),
    ])
    db.session.commit()
