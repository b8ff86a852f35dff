from flask import Blueprint, request, jsonify, g
from newsportal.middleware.auth import optional_auth, require_auth
from newsportal.services.backend import get_backend

bp = Blueprint('categories', __name__, url_prefix='/api/categories')


@bp.route('', methods=['GET'])
@optional_auth
def list_categories():
    """Default categories plus global and (when signed in) the user's own."""
    categories = get_backend().categories.get_categories(g.user_id)
    return jsonify({'categories': [c.to_dict() for c in categories]})


@bp.route('', methods=['POST'])
@require_auth
def create_category():
    """Add a personal category. Labels are unique case-insensitively."""
    data = request.get_json(silent=True)
    if not data:
        return jsonify({'error': 'Request body is required'}), 400

    label = (data.get('label') or '').strip()
    if not label:
        return jsonify({'error': 'label is required'}), 400

    value = (data.get('value') or '').strip() or '%s notizie positive' % label
    category = get_backend().categories.add_category(label, value, g.user_id)
    if category is None:
        return jsonify({'error': 'La categoria "%s" esiste già!' % label}), 400

    return jsonify({'category': category.to_dict()}), 201


@bp.route('/<category_id>', methods=['DELETE'])
@require_auth
def delete_category(category_id):
    """Delete one of the user's own categories."""
    if not get_backend().categories.delete_category(category_id, g.user_id):
        return jsonify({'error': 'Category not found'}), 404
    return jsonify({'ok': True})
