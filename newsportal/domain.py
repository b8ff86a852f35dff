"""Transient value types shared by the backend, generator and controller.

Rows live in ``newsportal.models``; these are the copies handed around
between layers and serialized to clients.
"""

import re
from dataclasses import asdict, dataclass, field, replace
from typing import Optional, Union

_STABLE_ID_RE = re.compile(
    r'^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$',
    re.IGNORECASE,
)


def is_stable_id(value) -> bool:
    """True if ``value`` is a store-assigned identifier (canonical UUID)."""
    return isinstance(value, str) and bool(_STABLE_ID_RE.match(value))


@dataclass
class User:
    id: str
    username: str
    avatar: str = ''

    def to_dict(self):
        return asdict(self)


@dataclass
class Article:
    title: str
    summary: str
    source: str
    url: str
    date: str
    category: str
    id: Optional[str] = None
    image_url: str = ''
    audio_base64: str = ''
    sentiment_score: float = 0.8
    like_count: int = 0
    dislike_count: int = 0
    is_new: bool = False

    def to_dict(self, include_audio=False):
        data = asdict(self)
        if not include_audio:
            data.pop('audio_base64')
            data['has_audio'] = bool(self.audio_base64)
        return data

    @classmethod
    def from_dict(cls, data):
        """Build an article from a client payload, ignoring unknown keys."""
        return cls(
            id=data.get('id') or None,
            title=data.get('title') or '',
            summary=data.get('summary') or '',
            source=data.get('source') or '',
            url=data.get('url') or '',
            date=data.get('date') or '',
            category=data.get('category') or '',
            image_url=data.get('image_url') or '',
            audio_base64=data.get('audio_base64') or '',
            sentiment_score=float(data.get('sentiment_score') or 0.8),
            like_count=int(data.get('like_count') or 0),
            dislike_count=int(data.get('dislike_count') or 0),
            is_new=bool(data.get('is_new', False)),
        )

    def with_id(self, article_id):
        return replace(self, id=article_id)


@dataclass(frozen=True)
class Volatile:
    """Article produced by generation and not yet written to the store."""
    article: Article


@dataclass(frozen=True)
class Persisted:
    """Article with a store-assigned identifier."""
    id: str
    article: Article


PersistenceStatus = Union[Volatile, Persisted]


def classify(article: Article) -> PersistenceStatus:
    if is_stable_id(article.id):
        return Persisted(id=article.id, article=article)
    return Volatile(article=article)


@dataclass
class Category:
    id: str
    label: str
    value: str
    user_id: Optional[str] = None

    def to_dict(self):
        return asdict(self)


@dataclass
class Comment:
    id: str
    article_id: str
    user_id: str
    username: str
    text: str
    timestamp: int

    def to_dict(self):
        return asdict(self)


@dataclass
class Quote:
    text: str
    author: str = ''
    id: str = ''

    def to_dict(self):
        return asdict(self)


@dataclass
class Deed:
    text: str
    id: str = ''

    def to_dict(self):
        return asdict(self)


DEFAULT_CATEGORIES = [
    Category('tech', 'Tecnologia',
             'tecnologia digitale, intelligenza artificiale, hardware, software, '
             'robotica, spazio, ingegneria, startup tech'),
    Category('med', 'Medicina',
             'medicina, salute, cure mediche, ospedali, biologia, benessere fisico, '
             'scoperte farmaceutiche'),
    Category('pol', 'Politica',
             'politica, cooperazione internazionale, trattati di pace, diritti civili, '
             'diplomazia, buone notizie istituzionali'),
    Category('env', 'Ambiente',
             'ambiente, natura, ecologia, riforestazione, energie rinnovabili, '
             'pulizia oceani, salvaguardia animali'),
    Category('soc', 'Società',
             'società, solidarietà, inclusione, volontariato, atti di gentilezza, '
             'storie di comunità, educazione'),
]


def default_categories():
    """Fresh copies of the hardcoded categories."""
    return [replace(c) for c in DEFAULT_CATEGORIES]


@dataclass
class AuthResult:
    data: dict = field(default_factory=dict)
    error: Optional[str] = None
