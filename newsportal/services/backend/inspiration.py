import random

from sqlalchemy.exc import SQLAlchemyError

from newsportal.domain import Deed, Quote
from newsportal.models import Deed as DeedRow, Quote as QuoteRow
from .base import Store


class InspirationStore(Store):
    """Append-only pools of quotes and good deeds for the daily widgets."""

    def __init__(self, session, pool_limit=100, rng=None):
        super().__init__(session)
        self.pool_limit = pool_limit
        self.rng = rng or random.Random()

    def _random_row(self, model):
        try:
            count = self.session.query(model).count()
            if not count:
                return None
            return (
                self.session.query(model)
                .order_by(model.created_at.asc(), model.id.asc())
                .offset(self.rng.randrange(count))
                .limit(1)
                .first()
            )
        except SQLAlchemyError as e:
            self._rollback('random %s' % model.__tablename__, e)
            return None

    def _trim(self, model):
        """Keep only the newest ``pool_limit`` rows."""
        overflow = self.session.query(model).count() - self.pool_limit
        if overflow <= 0:
            return
        stale = (
            self.session.query(model.id)
            .order_by(model.created_at.asc(), model.id.asc())
            .limit(overflow)
            .all()
        )
        self.session.query(model).filter(
            model.id.in_([row_id for (row_id,) in stale])
        ).delete(synchronize_session=False)

    def _save(self, model, text, **extra):
        text = (text or '').strip()
        if not text:
            return False
        try:
            if self.session.query(model.id).filter_by(text=text).first() is not None:
                return False
            self.session.add(model(text=text, **extra))
            self.session.flush()
            self._trim(model)
            self.session.commit()
        except SQLAlchemyError as e:
            self._rollback('save %s' % model.__tablename__, e)
            return False
        return True

    def get_random_quote(self):
        row = self._random_row(QuoteRow)
        if row is None:
            return None
        return Quote(id=row.id, text=row.text, author=row.author or '')

    def save_quote(self, quote):
        return self._save(QuoteRow, quote.text, author=quote.author or None)

    def get_random_deed(self):
        row = self._random_row(DeedRow)
        if row is None:
            return None
        return Deed(id=row.id, text=row.text)

    def save_deed(self, text):
        return self._save(DeedRow, text)
