from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from newsportal.domain import is_stable_id
from newsportal.models import Favorite
from .articles import row_to_article
from .base import Store


class FavoriteStore(Store):

    def is_favorite(self, article_id, user_id):
        if not is_stable_id(article_id) or not user_id:
            return False
        try:
            return self.session.query(Favorite.id).filter_by(
                article_id=article_id, user_id=user_id
            ).first() is not None
        except SQLAlchemyError as e:
            self._rollback('is_favorite', e)
            return False

    def add_favorite(self, article_id, user_id):
        """Create the favorite pair. An existing pair counts as success."""
        if not is_stable_id(article_id) or not user_id:
            return False
        try:
            self.session.add(Favorite(article_id=article_id, user_id=user_id))
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            return self.is_favorite(article_id, user_id)
        except SQLAlchemyError as e:
            self._rollback('add_favorite', e)
            return False
        return True

    def remove_favorite(self, article_id, user_id):
        if not is_stable_id(article_id) or not user_id:
            return False
        try:
            self.session.query(Favorite).filter_by(
                article_id=article_id, user_id=user_id
            ).delete()
            self.session.commit()
        except SQLAlchemyError as e:
            self._rollback('remove_favorite', e)
            return False
        return True

    def get_user_favorite_articles(self, user_id):
        """Favorited articles, most recently favorited first."""
        if not user_id:
            return []
        try:
            favorites = (
                self.session.query(Favorite)
                .filter_by(user_id=user_id)
                .order_by(Favorite.created_at.desc())
                .all()
            )
            rows = [f.article for f in favorites if f.article is not None]
            counts = self._reaction_counts([r.id for r in rows])
        except SQLAlchemyError as e:
            self._rollback('get_user_favorite_articles', e)
            return []
        return [row_to_article(r, *counts.get(r.id, (0, 0))) for r in rows]

    def get_user_favorite_ids(self, user_id):
        if not user_id:
            return set()
        try:
            rows = self.session.query(Favorite.article_id).filter_by(user_id=user_id).all()
        except SQLAlchemyError as e:
            self._rollback('get_user_favorite_ids', e)
            return set()
        return {article_id for (article_id,) in rows}
