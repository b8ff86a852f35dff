from flask import Blueprint, request, jsonify, g
from newsportal.middleware.auth import require_auth
from newsportal.services.backend import get_backend
from newsportal.api.interactions import resolve_article_id

bp = Blueprint('favorites', __name__, url_prefix='/api/favorites')


@bp.route('', methods=['GET'])
@require_auth
def list_favorites():
    """Favorited articles, most recently favorited first."""
    articles = get_backend().favorites.get_user_favorite_articles(g.user_id)
    return jsonify({'articles': [a.to_dict() for a in articles]})


@bp.route('/ids', methods=['GET'])
@require_auth
def list_favorite_ids():
    ids = get_backend().favorites.get_user_favorite_ids(g.user_id)
    return jsonify({'ids': sorted(ids)})


@bp.route('/toggle', methods=['POST'])
@require_auth
def toggle_favorite():
    """Flip the favorite state of an article.

    Body: { article_id } or { article: {...} } for a not yet saved article.
    """
    data = request.get_json(silent=True)
    if not data:
        return jsonify({'error': 'Request body is required'}), 400

    article_id = resolve_article_id(data.get('article_id'), data)
    if article_id is None:
        return jsonify({'error': 'Article not found'}), 404

    favorites = get_backend().favorites
    if favorites.is_favorite(article_id, g.user_id):
        ok = favorites.remove_favorite(article_id, g.user_id)
        favorite = not ok
    else:
        ok = favorites.add_favorite(article_id, g.user_id)
        favorite = ok
    if not ok:
        return jsonify({'error': 'Favorite could not be updated'}), 503
    return jsonify({'article_id': article_id, 'favorite': favorite})
