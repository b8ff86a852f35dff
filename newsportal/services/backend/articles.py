from datetime import date, datetime

from sqlalchemy.exc import SQLAlchemyError

from newsportal.domain import Article, is_stable_id
from newsportal.models import Article as ArticleRow
from .base import Store, logger

DEFAULT_TITLE = 'Senza Titolo'
DEFAULT_SOURCE = 'Fonte'
DEFAULT_SENTIMENT = 0.8


def normalize_date(raw) -> str:
    """Reduce any timestamp-like value to its YYYY-MM-DD component."""
    if raw is None:
        return ''
    if isinstance(raw, datetime):
        return raw.date().isoformat()
    if isinstance(raw, date):
        return raw.isoformat()
    text = str(raw).strip()
    for sep in ('T', ' '):
        if sep in text:
            text = text.split(sep, 1)[0]
    return text


def row_to_article(row, like_count=0, dislike_count=0) -> Article:
    raw_date = row.published_date or row.created_at or ''
    return Article(
        id=row.id,
        title=row.title or DEFAULT_TITLE,
        summary=row.summary or '',
        source=row.source or DEFAULT_SOURCE,
        url=row.url,
        date=normalize_date(raw_date),
        category=row.category,
        image_url=row.image_url or '',
        audio_base64=row.audio_base64 or '',
        sentiment_score=float(row.sentiment_score or DEFAULT_SENTIMENT),
        like_count=like_count,
        dislike_count=dislike_count,
    )


class ArticleStore(Store):
    """Article cache keyed by category label, upserted by url."""

    def __init__(self, session, cache_limit=20):
        super().__init__(session)
        self.cache_limit = cache_limit

    def get_cached_articles(self, label):
        search_tag = (label or '').strip()
        logger.debug('[articles] cache lookup for "%s"', search_tag)
        try:
            rows = (
                self.session.query(ArticleRow)
                .filter(ArticleRow.category == search_tag)
                .order_by(ArticleRow.created_at.desc())
                .limit(self.cache_limit)
                .all()
            )
            counts = self._reaction_counts([r.id for r in rows])
        except SQLAlchemyError as e:
            self._rollback('get_cached_articles', e)
            return []

        articles = []
        for row in rows:
            likes, dislikes = counts.get(row.id, (0, 0))
            articles.append(row_to_article(row, likes, dislikes))
        logger.info('[articles] %d cached articles for "%s"', len(articles), search_tag)
        return articles

    def save_articles(self, label, articles):
        """Upsert ``articles`` by url and return them annotated with ids.

        The result keeps the caller's order. On failure the input comes back
        unchanged so the caller can carry on without ids.
        """
        if not articles:
            return []
        try:
            urls = [a.url for a in articles]
            existing = {
                row.url: row
                for row in self.session.query(ArticleRow).filter(ArticleRow.url.in_(urls))
            }
            rows = []
            for article in articles:
                row = existing.get(article.url)
                if row is None:
                    row = ArticleRow(url=article.url)
                    self.session.add(row)
                    existing[article.url] = row
                row.category = article.category or label
                row.title = article.title
                row.summary = article.summary
                row.source = article.source
                row.published_date = article.date
                row.sentiment_score = article.sentiment_score
                if article.image_url:
                    row.image_url = article.image_url
                if article.audio_base64:
                    row.audio_base64 = article.audio_base64
                rows.append(row)
            self.session.commit()
        except SQLAlchemyError as e:
            self._rollback('save_articles', e)
            return list(articles)

        return [article.with_id(row.id) for article, row in zip(articles, rows)]

    def get_article(self, article_id):
        if not is_stable_id(article_id):
            return None
        try:
            row = self.session.get(ArticleRow, article_id)
            if row is None:
                return None
            likes, dislikes = self._reaction_counts([row.id]).get(row.id, (0, 0))
        except SQLAlchemyError as e:
            self._rollback('get_article', e)
            return None
        return row_to_article(row, likes, dislikes)

    def _update_by_url(self, url, **values):
        try:
            updated = (
                self.session.query(ArticleRow)
                .filter(ArticleRow.url == url)
                .update(values)
            )
            self.session.commit()
        except SQLAlchemyError as e:
            self._rollback('update %s' % ', '.join(values), e)
            return False
        return updated > 0

    def update_article_image(self, url, image_url):
        return self._update_by_url(url, image_url=image_url)

    def update_article_audio(self, url, audio_base64):
        return self._update_by_url(url, audio_base64=audio_base64)
