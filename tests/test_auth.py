import json
import uuid
from unittest.mock import MagicMock, patch

import pytest
import requests

from newsportal.models import User as UserRow
from newsportal.services.backend.auth import (
    CONNECTION_MESSAGE, INVALID_CREDENTIALS_MESSAGE, RATE_LIMIT_MESSAGE, UNKNOWN_MESSAGE,
    AuthStore, auth_error_message, avatar_for, clean_credentials,
)

SUPABASE_URL = 'https://example.supabase.co'


def _response(status_code, body):
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = body
    resp.text = json.dumps(body)
    return resp


@pytest.fixture
def auth_store(app):
    from newsportal.extensions import db
    return AuthStore(db.session, SUPABASE_URL, 'publishable-key', timeout=3)


class TestErrorMessages:

    @pytest.mark.parametrize('text, expected', [
        ('TypeError: Failed to fetch', CONNECTION_MESSAGE),
        ('Network request failed', CONNECTION_MESSAGE),
        ('Invalid login credentials', INVALID_CREDENTIALS_MESSAGE),
        ('Email rate limit exceeded', RATE_LIMIT_MESSAGE),
        ('', UNKNOWN_MESSAGE),
        (None, UNKNOWN_MESSAGE),
        ('User already registered', 'User already registered'),
    ])
    def test_mapping(self, text, expected):
        assert auth_error_message(text) == expected

    def test_clean_credentials(self):
        assert clean_credentials(' "Mario@Example.com" ', ' segreta ') == ('mario@example.com', 'segreta')

    def test_avatar_is_url_safe(self):
        assert avatar_for('a b@c').endswith('seed=a%20b%40c')


class TestAuthStore:

    def test_sign_in_posts_cleaned_credentials(self, auth_store):
        with patch('newsportal.services.backend.auth.requests.post') as post:
            post.return_value = _response(200, {'access_token': 'tok'})
            result = auth_store.sign_in_with_email('Mario@Example.com ', 'pw')

        assert result.error is None
        assert result.data == {'access_token': 'tok'}
        args, kwargs = post.call_args
        assert args[0] == SUPABASE_URL + '/auth/v1/token?grant_type=password'
        assert kwargs['json'] == {'email': 'mario@example.com', 'password': 'pw'}
        assert kwargs['headers']['apikey'] == 'publishable-key'
        assert kwargs['timeout'] == 3

    def test_provider_rejection(self, auth_store):
        with patch('newsportal.services.backend.auth.requests.post') as post:
            post.return_value = _response(400, {'error_description': 'Invalid login credentials'})
            result = auth_store.sign_in_with_email('a@b.c', 'pw')
        assert auth_error_message(result.error) == INVALID_CREDENTIALS_MESSAGE

    def test_network_failure(self, auth_store):
        with patch('newsportal.services.backend.auth.requests.post') as post:
            post.side_effect = requests.ConnectionError('refused')
            result = auth_store.sign_in_with_email('a@b.c', 'pw')
        assert auth_error_message(result.error) == CONNECTION_MESSAGE

    def test_sign_up_creates_profile(self, auth_store):
        user_id = str(uuid.uuid4())
        with patch('newsportal.services.backend.auth.requests.post') as post:
            post.return_value = _response(200, {'user': {'id': user_id}, 'session': None})
            result = auth_store.sign_up_with_email('luisa@example.com', 'pw')

        assert result.error is None
        row = auth_store.session.get(UserRow, user_id)
        assert row.username == 'luisa'
        assert 'seed=luisa%40example.com' in row.avatar
        payload = post.call_args.kwargs['json']
        assert payload['data']['full_name'] == 'luisa'

    def test_sign_out_sends_token(self, auth_store):
        with patch('newsportal.services.backend.auth.requests.post') as post:
            post.return_value = _response(204, {})
            assert auth_store.sign_out('tok').error is None
        assert post.call_args.kwargs['headers']['Authorization'] == 'Bearer tok'

    def test_unconfigured_provider(self, app):
        from newsportal.extensions import db
        result = AuthStore(db.session).sign_in_with_email('a@b.c', 'pw')
        assert result.error == 'Auth provider not configured'

    def test_profile_from_claims(self, auth_store):
        user_id = str(uuid.uuid4())
        user = auth_store.profile_from_claims({'sub': user_id, 'email': 'gianni@example.com'})

        assert user.username == 'gianni'
        assert auth_store.get_user(user_id) == user

    def test_profile_prefers_metadata(self, auth_store):
        user_id = str(uuid.uuid4())
        user = auth_store.profile_from_claims({
            'sub': user_id,
            'email': 'g@example.com',
            'user_metadata': {'full_name': 'Gianni', 'avatar_url': 'https://img/a.png'},
        })
        assert (user.username, user.avatar) == ('Gianni', 'https://img/a.png')

    def test_profile_without_subject(self, auth_store):
        assert auth_store.profile_from_claims({'email': 'x@y.z'}) is None


class TestAuthEndpoints:

    def _post(self, client, path, payload):
        return client.post(path, data=json.dumps(payload), content_type='application/json')

    def test_login_requires_credentials(self, client):
        assert self._post(client, '/api/auth/login', {'email': 'a@b.c'}).status_code == 400

    def test_login_maps_errors(self, app, client):
        app.config['SUPABASE_URL'] = SUPABASE_URL
        with patch('newsportal.services.backend.auth.requests.post') as post:
            post.return_value = _response(400, {'msg': 'Invalid login credentials'})
            resp = self._post(client, '/api/auth/login', {'email': 'a@b.c', 'password': 'x'})

        assert resp.status_code == 401
        assert resp.get_json()['error'] == INVALID_CREDENTIALS_MESSAGE

    def test_login_returns_session(self, app, client):
        app.config['SUPABASE_URL'] = SUPABASE_URL
        with patch('newsportal.services.backend.auth.requests.post') as post:
            post.return_value = _response(200, {'access_token': 'tok'})
            resp = self._post(client, '/api/auth/login', {'email': 'a@b.c', 'password': 'x'})

        assert resp.status_code == 200
        assert resp.get_json()['session'] == {'access_token': 'tok'}

    def test_logout(self, app, client):
        app.config['SUPABASE_URL'] = SUPABASE_URL
        with patch('newsportal.services.backend.auth.requests.post') as post:
            post.return_value = _response(204, {})
            resp = client.post('/api/auth/logout')

        assert resp.get_json() == {'ok': True}
        assert post.call_args.kwargs['headers']['Authorization'] == 'Bearer test-token'
