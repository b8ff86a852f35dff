from flask import Blueprint, request, jsonify, g
from newsportal.domain import Article, is_stable_id
from newsportal.middleware.auth import optional_auth, require_auth
from newsportal.services.backend import get_backend
from newsportal.services.news_app import persist_article

bp = Blueprint('interactions', __name__, url_prefix='/api')


def resolve_article_id(article_id, data):
    """Stable id for the target article, persisting a volatile one first.

    Clients acting on a generated article that has no id yet send it in the
    body as ``article``; it is upserted before any join-table write.
    """
    if is_stable_id(article_id):
        return article_id
    payload = (data or {}).get('article')
    if not isinstance(payload, dict) or not payload.get('url'):
        return None
    persisted = persist_article(get_backend(), Article.from_dict(payload))
    return persisted.id if persisted else None


def _reactions(article_id, user_id=None):
    interactions = get_backend().interactions
    return {
        'article_id': article_id,
        'like_count': interactions.get_like_count(article_id),
        'dislike_count': interactions.get_dislike_count(article_id),
        'liked': interactions.has_user_liked(article_id, user_id) if user_id else False,
        'disliked': interactions.has_user_disliked(article_id, user_id) if user_id else False,
    }


@bp.route('/articles/<article_id>/comments', methods=['GET'])
@optional_auth
def list_comments(article_id):
    """Comments for an article, newest first. Unknown ids yield []."""
    comments = get_backend().interactions.get_comments(article_id)
    return jsonify({'comments': [c.to_dict() for c in comments]})


@bp.route('/articles/<article_id>/comments', methods=['POST'])
@require_auth
def create_comment(article_id):
    data = request.get_json(silent=True)
    if not data or not (data.get('text') or '').strip():
        return jsonify({'error': 'text is required'}), 400

    target_id = resolve_article_id(article_id, data)
    if target_id is None:
        return jsonify({'error': 'Article not found'}), 404

    comment = get_backend().interactions.add_comment(target_id, g.user, data['text'])
    if comment is None:
        return jsonify({'error': 'Comment could not be saved'}), 503
    return jsonify({'comment': comment.to_dict()}), 201


@bp.route('/comments/<comment_id>', methods=['DELETE'])
@require_auth
def delete_comment(comment_id):
    """Remove a comment. Only its author may delete it."""
    if not get_backend().interactions.delete_comment(comment_id, g.user_id):
        return jsonify({'error': 'Comment not found'}), 404
    return jsonify({'ok': True})


@bp.route('/articles/<article_id>/reactions', methods=['GET'])
@optional_auth
def get_reactions(article_id):
    if not is_stable_id(article_id):
        return jsonify({'error': 'Article not found'}), 404
    return jsonify(_reactions(article_id, g.user_id))


def _toggle(article_id, kind):
    target_id = resolve_article_id(article_id, request.get_json(silent=True))
    if target_id is None:
        return jsonify({'error': 'Article not found'}), 404

    interactions = get_backend().interactions
    toggle = interactions.toggle_like if kind == 'like' else interactions.toggle_dislike
    active = toggle(target_id, g.user_id)
    data = _reactions(target_id, g.user_id)
    data['active'] = active
    return jsonify(data)


@bp.route('/articles/<article_id>/like', methods=['POST'])
@require_auth
def toggle_like(article_id):
    """Toggle a like; an existing dislike by the same user is removed."""
    return _toggle(article_id, 'like')


@bp.route('/articles/<article_id>/dislike', methods=['POST'])
@require_auth
def toggle_dislike(article_id):
    """Toggle a dislike; an existing like by the same user is removed."""
    return _toggle(article_id, 'dislike')
