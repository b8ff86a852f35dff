from sqlalchemy.exc import SQLAlchemyError

from newsportal.domain import Comment, is_stable_id
from newsportal.models import Comment as CommentRow, Like, Dislike
from .base import Store, logger


def _row_to_comment(row):
    return Comment(
        id=row.id,
        article_id=row.article_id,
        user_id=row.user_id,
        username=row.username,
        text=row.text,
        timestamp=int(row.created_at.timestamp() * 1000),
    )


class InteractionStore(Store):
    """Comments plus the mutually exclusive like/dislike pair."""

    def __init__(self, session, users):
        super().__init__(session)
        self.users = users

    # --- Comments ---

    def get_comments(self, article_id):
        if not is_stable_id(article_id):
            return []
        try:
            rows = (
                self.session.query(CommentRow)
                .filter_by(article_id=article_id)
                .order_by(CommentRow.created_at.desc())
                .all()
            )
        except SQLAlchemyError as e:
            self._rollback('get_comments', e)
            return []
        return [_row_to_comment(r) for r in rows]

    def add_comment(self, article_id, user, text):
        text = (text or '').strip()
        if not is_stable_id(article_id) or user is None or not text:
            return None
        self.users.ensure_user_exists(user)
        try:
            row = CommentRow(
                article_id=article_id,
                user_id=user.id,
                username=user.username,
                text=text,
            )
            self.session.add(row)
            self.session.commit()
        except SQLAlchemyError as e:
            self._rollback('add_comment', e)
            return None
        return _row_to_comment(row)

    def delete_comment(self, comment_id, user_id):
        """Delete a comment; only its author may do so."""
        if not comment_id or not user_id:
            return False
        try:
            deleted = (
                self.session.query(CommentRow)
                .filter_by(id=comment_id, user_id=user_id)
                .delete()
            )
            self.session.commit()
        except SQLAlchemyError as e:
            self._rollback('delete_comment', e)
            return False
        if not deleted:
            logger.info('Comment %s not found or not owned by %s', comment_id, user_id)
        return deleted > 0

    # --- Like / Dislike ---

    def _toggle(self, target, opposite, article_id, user_id):
        if not is_stable_id(article_id) or not user_id:
            return False
        try:
            self.session.query(opposite).filter_by(
                article_id=article_id, user_id=user_id
            ).delete()
            existing = self.session.query(target).filter_by(
                article_id=article_id, user_id=user_id
            ).first()
            if existing is not None:
                self.session.delete(existing)
                active = False
            else:
                self.session.add(target(article_id=article_id, user_id=user_id))
                active = True
            self.session.commit()
        except SQLAlchemyError as e:
            self._rollback('toggle %s' % target.__tablename__, e)
            return False
        return active

    def toggle_like(self, article_id, user_id):
        return self._toggle(Like, Dislike, article_id, user_id)

    def toggle_dislike(self, article_id, user_id):
        return self._toggle(Dislike, Like, article_id, user_id)

    def _count(self, model, article_id):
        if not is_stable_id(article_id):
            return 0
        try:
            return self.session.query(model).filter_by(article_id=article_id).count()
        except SQLAlchemyError as e:
            self._rollback('count %s' % model.__tablename__, e)
            return 0

    def _exists(self, model, article_id, user_id):
        if not is_stable_id(article_id) or not user_id:
            return False
        try:
            return self.session.query(model.id).filter_by(
                article_id=article_id, user_id=user_id
            ).first() is not None
        except SQLAlchemyError as e:
            self._rollback('lookup %s' % model.__tablename__, e)
            return False

    def get_like_count(self, article_id):
        return self._count(Like, article_id)

    def get_dislike_count(self, article_id):
        return self._count(Dislike, article_id)

    def has_user_liked(self, article_id, user_id):
        return self._exists(Like, article_id, user_id)

    def has_user_disliked(self, article_id, user_id):
        return self._exists(Dislike, article_id, user_id)
