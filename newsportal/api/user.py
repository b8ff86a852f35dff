from flask import Blueprint, jsonify, g
from newsportal.middleware.auth import require_auth
from newsportal.services.backend import get_backend

bp = Blueprint('user', __name__, url_prefix='/api/user')


@bp.route('/profile', methods=['GET'])
@require_auth
def get_profile():
    favorite_ids = get_backend().favorites.get_user_favorite_ids(g.user_id)
    return jsonify({
        'profile': {
            'id': g.user.id,
            'username': g.user.username,
            'avatar': g.user.avatar,
            'email': g.jwt_payload.get('email', ''),
        },
        'favorite_ids': sorted(favorite_ids),
    })
