from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError

from newsportal.domain import Category, DEFAULT_CATEGORIES, default_categories
from newsportal.models import Category as CategoryRow
from .base import Store, logger


def _row_to_category(row):
    return Category(id=row.id, label=row.label, value=row.value, user_id=row.user_id)


class CategoryStore(Store):
    """Global categories plus the ones each user adds for themselves."""

    def _scoped_query(self, user_id):
        query = self.session.query(CategoryRow)
        if user_id:
            return query.filter(or_(CategoryRow.user_id.is_(None), CategoryRow.user_id == user_id))
        return query.filter(CategoryRow.user_id.is_(None))

    def get_categories(self, user_id=None):
        """Defaults first, then store rows visible to ``user_id``.

        Any store failure falls back to the hardcoded defaults.
        """
        try:
            rows = self._scoped_query(user_id).order_by(CategoryRow.created_at.asc()).all()
        except SQLAlchemyError as e:
            self._rollback('get_categories', e)
            return default_categories()

        categories = default_categories()
        seen = {c.label.lower() for c in categories}
        for row in rows:
            key = row.label.strip().lower()
            if key in seen:
                continue
            seen.add(key)
            categories.append(_row_to_category(row))
        logger.info('[categories] %d categories for user %s', len(categories), user_id or 'public')
        return categories

    def add_category(self, label, value, user_id):
        """Insert a user category; ``None`` means it was not added."""
        label = (label or '').strip()
        if not label or not user_id:
            return None
        key = label.lower()
        if any(c.label.lower() == key for c in DEFAULT_CATEGORIES):
            return None
        try:
            for row in self._scoped_query(user_id):
                if row.label.strip().lower() == key:
                    return None
            row = CategoryRow(label=label, value=value or label, user_id=user_id)
            self.session.add(row)
            self.session.commit()
        except SQLAlchemyError as e:
            self._rollback('add_category', e)
            return None
        return _row_to_category(row)

    def delete_category(self, category_id, user_id):
        if not category_id or not user_id:
            return False
        try:
            deleted = (
                self.session.query(CategoryRow)
                .filter_by(id=category_id, user_id=user_id)
                .delete()
            )
            self.session.commit()
        except SQLAlchemyError as e:
            self._rollback('delete_category', e)
            return False
        return deleted > 0

    def seed_categories(self):
        """Store the defaults as global rows when the table is empty."""
        try:
            if self.session.query(CategoryRow).count() > 0:
                return 0
            for category in DEFAULT_CATEGORIES:
                self.session.add(CategoryRow(label=category.label, value=category.value))
            self.session.commit()
        except SQLAlchemyError as e:
            self._rollback('seed_categories', e)
            return 0
        return len(DEFAULT_CATEGORIES)
