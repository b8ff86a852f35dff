from flask import Blueprint, request, jsonify, g
from newsportal.middleware.auth import require_auth
from newsportal.services.backend import get_backend
from newsportal.services.backend.auth import auth_error_message

bp = Blueprint('auth', __name__, url_prefix='/api/auth')


def _credentials():
    data = request.get_json(silent=True) or {}
    return data.get('email', ''), data.get('password', '')


@bp.route('/signup', methods=['POST'])
def signup():
    email, password = _credentials()
    if not email or not password:
        return jsonify({'error': 'email and password are required'}), 400

    result = get_backend().auth.sign_up_with_email(email, password)
    if result.error:
        return jsonify({'error': auth_error_message(result.error)}), 400
    return jsonify({'session': result.data.get('session'), 'user': result.data.get('user', result.data)}), 201


@bp.route('/login', methods=['POST'])
def login():
    email, password = _credentials()
    if not email or not password:
        return jsonify({'error': 'email and password are required'}), 400

    result = get_backend().auth.sign_in_with_email(email, password)
    if result.error:
        return jsonify({'error': auth_error_message(result.error)}), 401
    return jsonify({'session': result.data})


@bp.route('/logout', methods=['POST'])
@require_auth
def logout():
    result = get_backend().auth.sign_out(g.access_token)
    if result.error:
        return jsonify({'error': auth_error_message(result.error)}), 502
    return jsonify({'ok': True})
