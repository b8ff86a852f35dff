import logging
import re
from urllib.parse import quote

import requests
from sqlalchemy.exc import SQLAlchemyError

from newsportal.domain import AuthResult, User
from newsportal.models import User as UserRow
from .base import Store

logger = logging.getLogger(__name__)

DEFAULT_USERNAME = 'Utente'
AVATAR_URL = 'https://api.dicebear.com/7.x/avataaars/svg?seed={seed}'

CONNECTION_MESSAGE = (
    'Errore di connessione al database. Verifica che il tuo browser '
    'o la rete non blocchino Supabase.'
)
INVALID_CREDENTIALS_MESSAGE = 'Email o password errati.'
RATE_LIMIT_MESSAGE = 'Troppi tentativi. Riprova tra un minuto.'
UNKNOWN_MESSAGE = 'Errore sconosciuto.'

# Provider wording -> user message. Matching is on lowercase substrings.
_AUTH_ERROR_MESSAGES = (
    (('failed to fetch', 'connection error', 'network'), CONNECTION_MESSAGE),
    (('invalid login credentials',), INVALID_CREDENTIALS_MESSAGE),
    (('rate limit',), RATE_LIMIT_MESSAGE),
)


def auth_error_message(text):
    """Map provider error text to a user-readable message."""
    if not text:
        return UNKNOWN_MESSAGE
    lowered = text.lower()
    for needles, message in _AUTH_ERROR_MESSAGES:
        if any(needle in lowered for needle in needles):
            return message
    return text


def clean_credentials(email, password):
    email = re.sub(r'[\'"\s]+', '', email or '').lower()
    return email, (password or '').strip()


def avatar_for(seed):
    return AVATAR_URL.format(seed=quote(seed or '', safe=''))


def _provider_error(resp):
    try:
        body = resp.json()
    except ValueError:
        return resp.text or 'HTTP %d' % resp.status_code
    return (
        body.get('msg')
        or body.get('error_description')
        or body.get('message')
        or body.get('error')
        or 'HTTP %d' % resp.status_code
    )


class AuthStore(Store):
    """Public user rows plus calls to the hosted auth provider."""

    def __init__(self, session, supabase_url='', api_key='', timeout=10):
        super().__init__(session)
        self.supabase_url = supabase_url.rstrip('/')
        self.api_key = api_key
        self.timeout = timeout

    def ensure_user_exists(self, user):
        """Create or refresh the public profile row. Never raises."""
        try:
            row = self.session.get(UserRow, user.id)
            if row is None:
                row = UserRow(id=user.id, username=user.username, avatar=user.avatar)
                self.session.add(row)
            else:
                row.username = user.username
                row.avatar = user.avatar
            self.session.commit()
        except SQLAlchemyError as e:
            self._rollback('ensure_user_exists', e)
            return False
        return True

    def get_user(self, user_id):
        try:
            row = self.session.get(UserRow, user_id)
        except SQLAlchemyError as e:
            self._rollback('get_user', e)
            return None
        if row is None:
            return None
        return User(id=row.id, username=row.username, avatar=row.avatar or '')

    def profile_from_claims(self, claims):
        """Build the current user from verified JWT claims and sync the row."""
        user_id = (claims or {}).get('sub')
        if not user_id:
            return None
        metadata = claims.get('user_metadata') or {}
        email = claims.get('email') or ''
        username = (
            metadata.get('full_name')
            or (email.split('@')[0] if email else '')
            or DEFAULT_USERNAME
        )
        avatar = metadata.get('avatar_url') or avatar_for(user_id)
        user = User(id=user_id, username=username, avatar=avatar)
        self.ensure_user_exists(user)
        return user

    # --- Hosted auth provider ---

    def _post(self, path, payload=None, token=None):
        headers = {'apikey': self.api_key, 'Content-Type': 'application/json'}
        if token:
            headers['Authorization'] = 'Bearer ' + token
        return requests.post(
            self.supabase_url + path,
            json=payload or {},
            headers=headers,
            timeout=self.timeout,
        )

    def _call(self, action, path, payload=None, token=None):
        if not self.supabase_url:
            return AuthResult(error='Auth provider not configured')
        try:
            resp = self._post(path, payload, token)
        except requests.RequestException as e:
            logger.warning('[auth] %s failed: %s', action, e)
            return AuthResult(error='Failed to fetch: %s' % e)
        if resp.status_code >= 400:
            error = _provider_error(resp)
            logger.info('[auth] %s rejected: %s', action, error)
            return AuthResult(error=error)
        try:
            data = resp.json()
        except ValueError:
            data = {}
        return AuthResult(data=data)

    def sign_up_with_email(self, email, password):
        email, password = clean_credentials(email, password)
        username = email.split('@')[0]
        avatar = avatar_for(email)
        result = self._call('sign_up', '/auth/v1/signup', {
            'email': email,
            'password': password,
            'data': {'full_name': username, 'avatar_url': avatar},
        })
        user = result.data.get('user') or result.data
        if result.error is None and user.get('id'):
            self.ensure_user_exists(User(id=user['id'], username=username, avatar=avatar))
        return result

    def sign_in_with_email(self, email, password):
        email, password = clean_credentials(email, password)
        return self._call('sign_in', '/auth/v1/token?grant_type=password', {
            'email': email,
            'password': password,
        })

    def sign_out(self, access_token):
        return self._call('sign_out', '/auth/v1/logout', token=access_token)
