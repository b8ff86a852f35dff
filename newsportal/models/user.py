from datetime import datetime, timezone
from newsportal.extensions import db


class User(db.Model):
    __tablename__ = 'users'

    id = db.Column(db.String(36), primary_key=True)  # Supabase auth.users UUID
    username = db.Column(db.String(100), nullable=False)
    avatar = db.Column(db.String(500), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(db.DateTime, nullable=False, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    categories = db.relationship('Category', backref='user', lazy='dynamic', passive_deletes=True)
    favorites = db.relationship('Favorite', backref='user', lazy='dynamic', passive_deletes=True)
