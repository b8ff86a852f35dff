"""Client session state and the flows that drive it.

``NewsApp`` is the single source of truth for what a client shows: the
browsing mode (category, search or favorites), the article list, the
signed-in user and their favorites. It sequences cache lookups, generation
fallbacks, optimistic updates and background persistence.
"""

import logging
import threading
from dataclasses import dataclass, field, replace
from typing import List, Optional

from flask import current_app, has_app_context

from newsportal.domain import (
    DEFAULT_CATEGORIES,
    Persisted,
    classify,
    default_categories,
    is_stable_id,
)
from newsportal.services.auth_state import AuthState, SignedIn, SignedOut, TokenRefreshed, reduce_auth
from newsportal.services.genai import GenerationError

logger = logging.getLogger(__name__)

NO_NEW_NEWS = 'Nessuna nuova notizia trovata ora.'
EMPTY_ARCHIVE = 'Archivio vuoto.'
RATE_LIMITED = 'Limite API Gemini raggiunto. Riprova tra poco.'
CATEGORY_EXISTS = 'La categoria "{label}" esiste già!'
CATEGORY_DELETED = 'Categoria eliminata con successo.'
FALLBACK_LABEL = 'Generale'


@dataclass
class NewsResult:
    articles: List = field(default_factory=list)
    notification: Optional[str] = None
    from_cache: bool = False


def load_news(backend, generator, query, label, force_ai=False):
    """Cache-first article loading with generation as the fallback.

    A non-empty cache hit returns without calling the generator. Generated
    articles come back flagged ``is_new`` and are NOT persisted here; the
    caller decides when to write them. Never raises.
    """
    if not force_ai:
        cached = backend.articles.get_cached_articles(label)
        if cached:
            return NewsResult(articles=cached, from_cache=True)

    empty_message = NO_NEW_NEWS if force_ai else EMPTY_ARCHIVE
    try:
        generated = generator.fetch_positive_news(query, label)
    except GenerationError as e:
        logger.warning('News generation failed for "%s": %s', label, e)
        return NewsResult(notification=RATE_LIMITED if e.rate_limited else empty_message)
    except Exception:
        logger.exception('Unexpected failure generating news for "%s"', label)
        return NewsResult(notification=empty_message)

    if not generated:
        return NewsResult(notification=empty_message)
    return NewsResult(articles=[replace(a, is_new=True) for a in generated])


def persist_article(backend, article):
    """Upsert a volatile article and return it as ``Persisted`` (or None)."""
    status = classify(article)
    if isinstance(status, Persisted):
        return status
    saved = backend.articles.save_articles(article.category or FALLBACK_LABEL, [article])
    if not saved or not is_stable_id(saved[0].id):
        logger.info('Could not persist %s', article.url)
        return None
    return Persisted(id=saved[0].id, article=saved[0])


@dataclass
class Reactions:
    liked: bool
    disliked: bool
    like_count: int
    dislike_count: int


def _spawn(fn):
    """Run ``fn`` on a daemon thread inside the caller's app context, if any."""
    if has_app_context():
        app = current_app._get_current_object()

        def target():
            with app.app_context():
                fn()
    else:
        target = fn
    thread = threading.Thread(target=target, daemon=True)
    thread.start()
    return thread


class NewsApp:

    def __init__(self, backend, generator, prefetcher=None, run_async=None):
        self.backend = backend
        self.generator = generator
        self.prefetcher = prefetcher
        self.run_async = run_async or _spawn
        self._lock = threading.RLock()

        self.categories = []
        self.active_category_id = ''
        self.articles = []
        self.loading = False
        self.selected_article = None
        self.notification = None
        self.search_term = ''
        self.auth = AuthState()

    # --- Derived state ---

    @property
    def current_user(self):
        return self.auth.user

    @property
    def favorite_article_ids(self):
        return self.auth.favorite_ids

    @property
    def show_login_modal(self):
        return self.auth.show_login_modal

    @show_login_modal.setter
    def show_login_modal(self, value):
        self.auth = replace(self.auth, show_login_modal=bool(value))

    @property
    def show_favorites_only(self):
        return self.auth.show_favorites_only

    @property
    def active_category(self):
        return next((c for c in self.categories if c.id == self.active_category_id), None)

    @property
    def active_category_label(self):
        if self.search_term:
            return 'Ricerca: %s' % self.search_term
        category = self.active_category
        return category.label if category else None

    @property
    def next_article(self):
        if self.selected_article is None:
            return None
        urls = [a.url for a in self.articles]
        try:
            index = urls.index(self.selected_article.url)
        except ValueError:
            index = -1
        if index + 1 < len(self.articles):
            return self.articles[index + 1]
        return None

    # --- Lifecycle ---

    def start(self, user=None):
        """Initial load: profile (if any), categories, then the article list."""
        if user is not None:
            self.handle_auth_event(SignedIn(user), sync=False)
        self.load_categories()
        self._sync()

    def handle_auth_event(self, event, sync=True):
        previous = self.current_user
        favorite_ids = ()
        if isinstance(event, (SignedIn, TokenRefreshed)):
            favorite_ids = self.backend.favorites.get_user_favorite_ids(event.user.id)
        with self._lock:
            was_favorites = self.show_favorites_only
            self.auth = reduce_auth(self.auth, event, favorite_ids)
        user_changed = (previous and previous.id) != (self.current_user and self.current_user.id)
        if user_changed:
            self.load_categories()
        if sync and (user_changed or was_favorites != self.show_favorites_only):
            self._sync()

    def logout(self, access_token=None):
        if access_token:
            self.backend.auth.sign_out(access_token)
        self.handle_auth_event(SignedOut())

    def load_categories(self):
        user_id = self.current_user.id if self.current_user else None
        try:
            categories = self.backend.categories.get_categories(user_id)
        except Exception:
            logger.exception('Category load failed, using defaults')
            categories = default_categories()
        self.categories = categories or default_categories()
        if not self.active_category_id and not self.search_term and self.categories:
            self.active_category_id = self.categories[0].id
        return self.categories

    # --- Mode transitions ---

    def select_category(self, category_id):
        self.search_term = ''
        self.active_category_id = category_id
        self.auth = replace(self.auth, show_favorites_only=False)
        self._sync()

    def search(self, term):
        term = (term or '').strip()
        if not term:
            return
        self.auth = replace(self.auth, show_favorites_only=False)
        self.active_category_id = ''
        self.search_term = term
        self._sync()

    def set_show_favorites_only(self, value):
        self.search_term = ''
        self.auth = replace(self.auth, show_favorites_only=bool(value))
        self._sync()

    def refresh(self):
        """Reload the current search or category, bypassing the cache."""
        if self.search_term:
            self.fetch_news(self.search_term, self.search_term, force_ai=True)
            return
        category = self.active_category
        if category is not None:
            self.fetch_news(category.value, category.label, force_ai=True)

    def _sync(self):
        if self.show_favorites_only:
            self._load_favorites()
        elif self.search_term:
            self.fetch_news(self.search_term, self.search_term, force_ai=False)
        elif self.active_category_id and self.categories:
            category = self.active_category
            if category is not None:
                self.fetch_news(category.value, category.label, force_ai=False)

    def _load_favorites(self):
        if self.current_user is None:
            self.articles = []
            return
        self.loading = True
        try:
            favorites = self.backend.favorites.get_user_favorite_articles(self.current_user.id)
            with self._lock:
                self.articles = favorites
                self.auth = replace(
                    self.auth, favorite_ids=frozenset(a.id for a in favorites if a.id),
                )
        finally:
            self.loading = False

    # --- Articles ---

    def fetch_news(self, query, label, force_ai=False):
        self.loading = True
        self.notification = None
        try:
            result = load_news(self.backend, self.generator, query, label, force_ai)
            if result.notification:
                self.notification = result.notification
            if not result.articles:
                return result
            with self._lock:
                self.articles = list(result.articles)
            if result.from_cache:
                self._schedule_images(result.articles)
            else:
                generated = list(result.articles)
                self.run_async(lambda: self._persist_generated(label, generated))
            return result
        finally:
            self.loading = False

    def _persist_generated(self, label, articles):
        saved = self.backend.articles.save_articles(label, articles)
        ids = {a.url: a.id for a in saved if is_stable_id(a.id)}
        if not ids:
            logger.warning('Generated articles for "%s" were not persisted', label)
            return
        for url, article_id in ids.items():
            self._assign_id(url, article_id)
        self._schedule_images(self.articles)

    def _assign_id(self, url, article_id):
        with self._lock:
            self.articles = [
                a.with_id(article_id) if a.url == url and not is_stable_id(a.id) else a
                for a in self.articles
            ]
            if self.selected_article is not None and self.selected_article.url == url:
                self.selected_article = self.selected_article.with_id(article_id)

    def _schedule_images(self, articles):
        if self.prefetcher is None or self.show_favorites_only:
            return
        self.prefetcher.schedule([a for a in articles if is_stable_id(a.id)])

    def _find_by_url(self, url):
        with self._lock:
            return next((a for a in self.articles if a.url == url), None)

    def ensure_persisted(self, article):
        """Return the article as ``Persisted``, upserting it if needed.

        ``None`` means no identifier could be obtained; callers must then
        abandon identifier-dependent work.
        """
        status = classify(article)
        if isinstance(status, Persisted):
            return status
        known = self._find_by_url(article.url)
        if known is not None and is_stable_id(known.id):
            return Persisted(id=known.id, article=known)

        persisted = persist_article(self.backend, article)
        if persisted is not None:
            self._assign_id(article.url, persisted.id)
        return persisted

    def select_article(self, article):
        self.selected_article = article

    def on_image_generated(self, url, image):
        with self._lock:
            self.articles = [
                replace(a, image_url=image) if a.url == url else a for a in self.articles
            ]

    def update_article(self, updated):
        with self._lock:
            self.articles = [
                updated if (updated.id and a.id == updated.id) or a.url == updated.url else a
                for a in self.articles
            ]

    # --- User actions ---

    def _require_user(self):
        if self.current_user is None:
            self.show_login_modal = True
            return None
        return self.current_user

    def toggle_favorite(self, article):
        """Flip the favorite state; returns the new state or None if aborted."""
        user = self._require_user()
        if user is None:
            return None
        persisted = self.ensure_persisted(article)
        if persisted is None:
            return None

        favorites = self.backend.favorites
        with self._lock:
            is_favorite = persisted.id in self.favorite_article_ids
        if is_favorite:
            if favorites.remove_favorite(persisted.id, user.id):
                with self._lock:
                    self.auth = replace(self.auth, favorite_ids=self.auth.favorite_ids - {persisted.id})
        elif favorites.add_favorite(persisted.id, user.id):
            with self._lock:
                self.auth = replace(self.auth, favorite_ids=self.auth.favorite_ids | {persisted.id})
        return persisted.id in self.favorite_article_ids

    def _react(self, article, toggle):
        user = self._require_user()
        if user is None:
            return None
        persisted = self.ensure_persisted(article)
        if persisted is None:
            return None
        interactions = self.backend.interactions
        toggle(persisted.id, user.id)
        reactions = Reactions(
            liked=interactions.has_user_liked(persisted.id, user.id),
            disliked=interactions.has_user_disliked(persisted.id, user.id),
            like_count=interactions.get_like_count(persisted.id),
            dislike_count=interactions.get_dislike_count(persisted.id),
        )
        current = self._find_by_url(persisted.article.url) or persisted.article
        self.update_article(replace(
            current,
            id=persisted.id,
            like_count=reactions.like_count,
            dislike_count=reactions.dislike_count,
        ))
        return reactions

    def toggle_like(self, article):
        return self._react(article, self.backend.interactions.toggle_like)

    def toggle_dislike(self, article):
        return self._react(article, self.backend.interactions.toggle_dislike)

    def get_comments(self, article):
        if not is_stable_id(article.id):
            known = self._find_by_url(article.url)
            if known is None or not is_stable_id(known.id):
                return []
            article = known
        return self.backend.interactions.get_comments(article.id)

    def add_comment(self, article, text):
        user = self._require_user()
        if user is None or not (text or '').strip():
            return None
        persisted = self.ensure_persisted(article)
        if persisted is None:
            return None
        return self.backend.interactions.add_comment(persisted.id, user, text)

    def delete_comment(self, comment_id):
        if self.current_user is None:
            return False
        return self.backend.interactions.delete_comment(comment_id, self.current_user.id)

    # --- Categories ---

    def add_category(self, label):
        user = self._require_user()
        label = (label or '').strip()
        if user is None or not label:
            return None
        category = self.backend.categories.add_category(
            label, '%s notizie positive' % label, user.id,
        )
        if category is None:
            self.notification = CATEGORY_EXISTS.format(label=label)
            return None
        self.categories = self.categories + [category]
        self.notification = None
        self.select_category(category.id)
        return category

    def delete_category(self, category_id):
        user = self.current_user
        if user is None:
            return False
        if not self.backend.categories.delete_category(category_id, user.id):
            return False
        self.categories = [c for c in self.categories if c.id != category_id]
        if self.active_category_id == category_id:
            self.select_category(DEFAULT_CATEGORIES[0].id)
        self.notification = CATEGORY_DELETED
        return True
