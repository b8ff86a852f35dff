import json

from newsportal.domain import User
from newsportal.models import Article as ArticleRow, Comment as CommentRow, Like, Dislike
from tests.conftest import TEST_USER_ID, OTHER_USER_ID, make_article


def _saved_id(backend, n=1):
    return backend.articles.save_articles('Tecnologia', [make_article(n)])[0].id


class TestLikeDislikeStore:

    def test_like_then_dislike_leaves_only_dislike(self, backend):
        article_id = _saved_id(backend)
        interactions = backend.interactions

        assert interactions.toggle_like(article_id, TEST_USER_ID) is True
        assert interactions.toggle_dislike(article_id, TEST_USER_ID) is True

        assert Like.query.count() == 0
        assert Dislike.query.count() == 1

    def test_dislike_then_like_leaves_only_like(self, backend):
        article_id = _saved_id(backend)
        interactions = backend.interactions

        interactions.toggle_dislike(article_id, TEST_USER_ID)
        interactions.toggle_like(article_id, TEST_USER_ID)

        assert interactions.has_user_liked(article_id, TEST_USER_ID) is True
        assert interactions.has_user_disliked(article_id, TEST_USER_ID) is False

    def test_toggle_like_twice_removes_it(self, backend):
        article_id = _saved_id(backend)
        assert backend.interactions.toggle_like(article_id, TEST_USER_ID) is True
        assert backend.interactions.toggle_like(article_id, TEST_USER_ID) is False
        assert backend.interactions.get_like_count(article_id) == 0

    def test_counts_across_users(self, backend):
        article_id = _saved_id(backend)
        backend.interactions.toggle_like(article_id, TEST_USER_ID)
        backend.interactions.toggle_like(article_id, OTHER_USER_ID)
        assert backend.interactions.get_like_count(article_id) == 2
        assert backend.interactions.get_dislike_count(article_id) == 0

    def test_malformed_id_is_a_noop(self, backend):
        assert backend.interactions.toggle_like('not-a-uuid', TEST_USER_ID) is False
        assert backend.interactions.toggle_dislike('', TEST_USER_ID) is False
        assert Like.query.count() == 0
        assert Dislike.query.count() == 0


class TestCommentStore:

    def test_add_and_list_newest_first(self, backend):
        article_id = _saved_id(backend)
        user = User(id=TEST_USER_ID, username='Test User')

        backend.interactions.add_comment(article_id, user, 'Primo')
        backend.interactions.add_comment(article_id, user, 'Secondo')

        comments = backend.interactions.get_comments(article_id)
        assert len(comments) == 2
        assert {c.text for c in comments} == {'Primo', 'Secondo'}
        assert comments[0].username == 'Test User'

    def test_add_comment_creates_user_row(self, backend):
        article_id = _saved_id(backend)
        user = User(id=OTHER_USER_ID, username='Altro', avatar='https://img.example/a.png')

        comment = backend.interactions.add_comment(article_id, user, 'Ciao')

        assert comment is not None
        assert backend.auth.get_user(OTHER_USER_ID).username == 'Altro'

    def test_malformed_id_rejected_without_write(self, backend):
        user = User(id=TEST_USER_ID, username='Test User')
        assert backend.interactions.add_comment('volatile', user, 'Ciao') is None
        assert CommentRow.query.count() == 0

    def test_only_author_can_delete(self, backend):
        article_id = _saved_id(backend)
        user = User(id=TEST_USER_ID, username='Test User')
        comment = backend.interactions.add_comment(article_id, user, 'Mio')

        assert backend.interactions.delete_comment(comment.id, OTHER_USER_ID) is False
        assert backend.interactions.delete_comment(comment.id, TEST_USER_ID) is True
        assert backend.interactions.get_comments(article_id) == []


class TestInteractionEndpoints:

    def test_like_endpoint_returns_counts(self, client, backend):
        article_id = _saved_id(backend)
        resp = client.post(f'/api/articles/{article_id}/like')
        assert resp.status_code == 200
        data = resp.get_json()
        assert data['active'] is True
        assert data['liked'] is True
        assert data['like_count'] == 1

    def test_dislike_clears_like(self, client, backend):
        article_id = _saved_id(backend)
        client.post(f'/api/articles/{article_id}/like')
        data = client.post(f'/api/articles/{article_id}/dislike').get_json()
        assert data['liked'] is False
        assert data['disliked'] is True
        assert data['like_count'] == 0
        assert data['dislike_count'] == 1

    def test_like_volatile_article_persists_first(self, client):
        payload = {'article': make_article(7).to_dict()}
        resp = client.post(
            '/api/articles/volatile/like',
            data=json.dumps(payload),
            content_type='application/json',
        )
        assert resp.status_code == 200
        row = ArticleRow.query.filter_by(url=payload['article']['url']).one()
        assert resp.get_json()['article_id'] == row.id
        assert Like.query.filter_by(article_id=row.id).count() == 1

    def test_like_unknown_volatile_without_payload_404(self, client):
        resp = client.post('/api/articles/volatile/like')
        assert resp.status_code == 404
        assert Like.query.count() == 0

    def test_comment_roundtrip(self, client, backend):
        article_id = _saved_id(backend)
        resp = client.post(
            f'/api/articles/{article_id}/comments',
            data=json.dumps({'text': 'Che bella notizia'}),
            content_type='application/json',
        )
        assert resp.status_code == 201
        comment_id = resp.get_json()['comment']['id']

        comments = client.get(f'/api/articles/{article_id}/comments').get_json()['comments']
        assert [c['text'] for c in comments] == ['Che bella notizia']

        assert client.delete(f'/api/comments/{comment_id}').status_code == 200
        assert client.delete(f'/api/comments/{comment_id}').status_code == 404

    def test_comment_requires_text(self, client, backend):
        article_id = _saved_id(backend)
        resp = client.post(
            f'/api/articles/{article_id}/comments',
            data=json.dumps({'text': '   '}),
            content_type='application/json',
        )
        assert resp.status_code == 400

    def test_reactions_for_malformed_id_404(self, client):
        assert client.get('/api/articles/tech/reactions').status_code == 404
