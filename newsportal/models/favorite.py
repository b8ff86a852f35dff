import uuid
from datetime import datetime, timezone
from newsportal.extensions import db


class Favorite(db.Model):
    __tablename__ = 'favorites'

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = db.Column(db.String(36), db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    article_id = db.Column(db.String(36), db.ForeignKey('articles.id', ondelete='CASCADE'), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))

    article = db.relationship('Article')

    __table_args__ = (
        db.UniqueConstraint('user_id', 'article_id', name='uq_favorite_user_article'),
    )
