import uuid
from datetime import datetime, timezone
from newsportal.extensions import db


class Article(db.Model):
    __tablename__ = 'articles'

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    url = db.Column(db.String(2000), nullable=False, unique=True)
    category = db.Column(db.String(200), nullable=False)
    title = db.Column(db.String(500), nullable=False)
    summary = db.Column(db.Text, nullable=True)
    source = db.Column(db.String(200), nullable=True)
    published_date = db.Column(db.String(40), nullable=True)
    sentiment_score = db.Column(db.Float, default=0.8)
    image_url = db.Column(db.Text, nullable=True)
    audio_base64 = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        db.Index('ix_articles_category_created', 'category', created_at.desc()),
    )
