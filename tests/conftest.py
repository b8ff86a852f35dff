import uuid
from dataclasses import replace
from functools import wraps

import pytest
from flask import g

# Patch auth decorators BEFORE importing create_app, so blueprints
# are registered with the mocked versions.
import newsportal.middleware.auth as auth_module

TEST_USER_ID = str(uuid.uuid4())
OTHER_USER_ID = str(uuid.uuid4())

_original_require_auth = auth_module.require_auth
_original_optional_auth = auth_module.optional_auth


def _bind_test_user():
    from newsportal.domain import User
    g.user_id = TEST_USER_ID
    g.user = User(id=TEST_USER_ID, username='Test User', avatar='')
    g.jwt_payload = {'sub': TEST_USER_ID, 'email': 'test@example.com'}
    g.access_token = 'test-token'


def _mock_require_auth(f):
    """Mock require_auth: skip JWT validation, set g.user_id to test UUID."""
    @wraps(f)
    def decorated(*args, **kwargs):
        _bind_test_user()
        return f(*args, **kwargs)
    return decorated


def _mock_optional_auth(f):
    """Mock optional_auth: set g.user_id to test UUID."""
    @wraps(f)
    def decorated(*args, **kwargs):
        _bind_test_user()
        return f(*args, **kwargs)
    return decorated


# Apply patches before any blueprint imports
auth_module.require_auth = _mock_require_auth
auth_module.optional_auth = _mock_optional_auth

from newsportal import create_app
from newsportal.extensions import db as _db
from newsportal.config import TestConfig
from newsportal.domain import Article, Quote
from newsportal.models import User as UserRow
from newsportal.services.backend import Backend
from newsportal.services.genai import EXTENSION_KEY


def make_article(n=1, **overrides):
    """Build a volatile article as the generator would return it."""
    article = Article(
        title='Buona notizia %d' % n,
        summary='Riassunto %d' % n,
        source='Fonte %d' % n,
        url='https://www.google.com/search?q=buona+notizia+%d' % n,
        date='2025-05-20',
        category='Tecnologia',
        sentiment_score=0.9,
    )
    return replace(article, **overrides)


class FakeGenerator:
    """Stands in for the provider-backed Generator; records every call."""

    def __init__(self):
        self.news = []
        self.news_error = None
        self.image = 'data:image/png;base64,iVBORw0KGgo='
        self.audio = 'AAABAAIA'
        self.quote = Quote(text='Ogni giorno è un nuovo inizio.', author='Anonimo')
        self.deed = 'Chiama un amico che non senti da tempo.'
        self.calls = []

    def fetch_positive_news(self, query, label):
        self.calls.append(('news', query, label))
        if self.news_error is not None:
            raise self.news_error
        return [replace(a) for a in self.news]

    def generate_article_image(self, title):
        self.calls.append(('image', title))
        return self.image

    def generate_audio(self, text):
        self.calls.append(('audio', text))
        return self.audio

    def generate_inspirational_quote(self):
        self.calls.append(('quote',))
        return self.quote

    def generate_good_deed(self):
        self.calls.append(('deed',))
        return self.deed

    def count(self, kind):
        return sum(1 for call in self.calls if call[0] == kind)


@pytest.fixture
def app():
    """Create a test Flask application with SQLite in-memory database."""
    application = create_app(TestConfig)
    application.extensions[EXTENSION_KEY] = FakeGenerator()

    with application.app_context():
        _db.create_all()

        # Create a test user profile
        _db.session.add(UserRow(id=TEST_USER_ID, username='Test User'))
        _db.session.commit()

        yield application

        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def client(app):
    """Create a test client with mocked JWT auth."""
    with app.test_client() as test_client:
        yield test_client


@pytest.fixture
def generator(app):
    return app.extensions[EXTENSION_KEY]


@pytest.fixture
def backend(app):
    return Backend.from_session(_db.session)
