import logging

from sqlalchemy import func

from newsportal.models import Like, Dislike

logger = logging.getLogger('newsportal.services.backend')


class Store:
    """Common plumbing for the capability stores.

    Every store works on an injected SQLAlchemy session and degrades store
    errors to a neutral value instead of raising.
    """

    def __init__(self, session):
        self.session = session

    def _rollback(self, action, exc):
        logger.warning('[%s] %s failed: %s', type(self).__name__, action, exc)
        try:
            self.session.rollback()
        except Exception:
            logger.exception('Session rollback failed')

    def _reaction_counts(self, article_ids):
        """Return {article_id: (like_count, dislike_count)} for ``article_ids``."""
        if not article_ids:
            return {}
        counts = {article_id: [0, 0] for article_id in article_ids}
        for index, model in enumerate((Like, Dislike)):
            rows = (
                self.session.query(model.article_id, func.count(model.id))
                .filter(model.article_id.in_(article_ids))
                .group_by(model.article_id)
                .all()
            )
            for article_id, count in rows:
                counts[article_id][index] = count
        return {k: (v[0], v[1]) for k, v in counts.items()}
