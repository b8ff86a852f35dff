from flask import Blueprint, request, jsonify, g, current_app
from newsportal.domain import is_stable_id
from newsportal.middleware.auth import optional_auth
from newsportal.services.backend import get_backend
from newsportal.services.genai import get_generator
from newsportal.services.news_app import load_news

bp = Blueprint('news', __name__, url_prefix='/api/news')

PREFETCHER_KEY = 'newsportal.prefetcher'


def schedule_images(articles):
    """Hand persisted articles without an image to the background prefetcher."""
    prefetcher = current_app.extensions.get(PREFETCHER_KEY)
    if prefetcher is None:
        return 0
    return prefetcher.schedule([a for a in articles if is_stable_id(a.id)])


@bp.route('', methods=['GET'])
@optional_auth
def get_news():
    """Cache-first article list for a category or a free-text search.

    Query params:
        category: category id (default: first category)
        q: free-text search, takes precedence over category
        refresh: 1 to bypass the cache and generate fresh articles
    """
    backend = get_backend()
    term = request.args.get('q', '').strip()
    force_ai = request.args.get('refresh') in ('1', 'true')

    if term:
        query, label = term, term
    else:
        categories = backend.categories.get_categories(g.user_id)
        category_id = request.args.get('category')
        if category_id:
            category = next((c for c in categories if c.id == category_id), None)
            if category is None:
                return jsonify({'error': 'Category not found'}), 404
        else:
            category = categories[0]
        query, label = category.value, category.label

    result = load_news(backend, get_generator(), query, label, force_ai=force_ai)
    articles = result.articles
    if articles and not result.from_cache:
        # Persist before answering so clients receive stable ids
        articles = backend.articles.save_articles(label, articles)
    schedule_images(articles)

    return jsonify({
        'label': label,
        'articles': [a.to_dict() for a in articles],
        'from_cache': result.from_cache,
        'notification': result.notification,
    })
