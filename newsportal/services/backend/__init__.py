"""Backend facade over the relational store.

Each sub-domain is its own store class; ``Backend`` wires them together
explicitly so nothing is merged by name.
"""

from flask import current_app

from newsportal.extensions import db
from .articles import ArticleStore
from .auth import AuthStore
from .categories import CategoryStore
from .favorites import FavoriteStore
from .inspiration import InspirationStore
from .interactions import InteractionStore


class Backend:

    def __init__(self, auth, categories, articles, favorites, interactions, inspiration):
        self.auth = auth
        self.categories = categories
        self.articles = articles
        self.favorites = favorites
        self.interactions = interactions
        self.inspiration = inspiration

    @classmethod
    def from_session(cls, session, supabase_url='', supabase_key='', timeout=10,
                     cache_limit=20, pool_limit=100):
        auth = AuthStore(session, supabase_url, supabase_key, timeout)
        return cls(
            auth=auth,
            categories=CategoryStore(session),
            articles=ArticleStore(session, cache_limit=cache_limit),
            favorites=FavoriteStore(session),
            interactions=InteractionStore(session, users=auth),
            inspiration=InspirationStore(session, pool_limit=pool_limit),
        )


def get_backend():
    """Backend bound to the current app's config and scoped session."""
    config = current_app.config
    return Backend.from_session(
        db.session,
        supabase_url=config.get('SUPABASE_URL', ''),
        supabase_key=config.get('SUPABASE_PUBLISHABLE_KEY', ''),
        timeout=config.get('SUPABASE_TIMEOUT', 10),
        cache_limit=config.get('CACHED_ARTICLES_LIMIT', 20),
        pool_limit=config.get('INSPIRATION_POOL_LIMIT', 100),
    )


__all__ = [
    'Backend', 'get_backend', 'ArticleStore', 'AuthStore', 'CategoryStore',
    'FavoriteStore', 'InspirationStore', 'InteractionStore',
]
