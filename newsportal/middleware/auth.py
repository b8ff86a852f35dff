import jwt
from jwt import PyJWKClient
from functools import wraps
from flask import request, jsonify, g, current_app
from newsportal.services.backend import get_backend

# Module-level JWKS client (cached, avoids fetching keys on every request)
_jwks_client = None


def _get_jwks_client():
    global _jwks_client
    if _jwks_client is None:
        jwks_url = current_app.config['SUPABASE_URL'] + '/auth/v1/.well-known/jwks.json'
        _jwks_client = PyJWKClient(jwks_url, cache_keys=True)
    return _jwks_client


def _decode_token(token):
    """Decode and verify a Supabase JWT using the JWKS endpoint (ES256)."""
    client = _get_jwks_client()
    signing_key = client.get_signing_key_from_jwt(token)
    return jwt.decode(
        token,
        signing_key.key,
        algorithms=['ES256'],
        audience='authenticated'
    )


def _bearer_token():
    auth_header = request.headers.get('Authorization', '')
    if auth_header.startswith('Bearer '):
        return auth_header[7:]
    return None


def _bind_user(payload, token):
    """Resolve the profile for verified claims; creates the row on first use."""
    user = get_backend().auth.profile_from_claims(payload)
    if user is None:
        return False
    g.user_id = user.id
    g.user = user
    g.jwt_payload = payload
    g.access_token = token
    return True


def require_auth(f):
    @wraps(f)
    def decorated(*args, **kwargs):
        token = _bearer_token()
        if not token:
            return jsonify({'error': 'Missing authorization token'}), 401

        try:
            payload = _decode_token(token)
        except jwt.ExpiredSignatureError:
            return jsonify({'error': 'Token expired'}), 401
        except jwt.InvalidTokenError:
            return jsonify({'error': 'Invalid token'}), 401

        if not _bind_user(payload, token):
            return jsonify({'error': 'Invalid token payload'}), 401

        return f(*args, **kwargs)
    return decorated


def optional_auth(f):
    """Like require_auth but doesn't fail if no token present."""
    @wraps(f)
    def decorated(*args, **kwargs):
        g.user_id = None
        g.user = None
        g.jwt_payload = None
        g.access_token = None

        token = _bearer_token()
        if token:
            try:
                _bind_user(_decode_token(token), token)
            except jwt.InvalidTokenError:
                current_app.logger.debug('Ignoring invalid token on optional route')

        return f(*args, **kwargs)
    return decorated
