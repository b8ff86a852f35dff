from newsportal.models.user import User
from newsportal.models.article import Article
from newsportal.models.category import Category
from newsportal.models.favorite import Favorite
from newsportal.models.comment import Comment
from newsportal.models.reaction import Like, Dislike
from newsportal.models.inspiration import Quote, Deed

__all__ = [
    'User', 'Article', 'Category', 'Favorite', 'Comment',
    'Like', 'Dislike', 'Quote', 'Deed',
]
