import json

from newsportal.models import Article as ArticleRow, Favorite
from tests.conftest import TEST_USER_ID, make_article


def _toggle(client, payload):
    return client.post(
        '/api/favorites/toggle',
        data=json.dumps(payload),
        content_type='application/json',
    )


class TestFavoriteStore:

    def test_add_is_idempotent(self, backend):
        article_id = backend.articles.save_articles('Tecnologia', [make_article(1)])[0].id
        assert backend.favorites.add_favorite(article_id, TEST_USER_ID) is True
        assert backend.favorites.add_favorite(article_id, TEST_USER_ID) is True
        assert Favorite.query.count() == 1

    def test_malformed_id_never_written(self, backend):
        assert backend.favorites.add_favorite('abc', TEST_USER_ID) is False
        assert backend.favorites.is_favorite('abc', TEST_USER_ID) is False
        assert Favorite.query.count() == 0

    def test_favorite_articles_and_ids(self, backend):
        saved = backend.articles.save_articles('Tecnologia', [make_article(1), make_article(2)])
        backend.favorites.add_favorite(saved[1].id, TEST_USER_ID)

        articles = backend.favorites.get_user_favorite_articles(TEST_USER_ID)
        assert [a.id for a in articles] == [saved[1].id]
        assert backend.favorites.get_user_favorite_ids(TEST_USER_ID) == {saved[1].id}

    def test_remove(self, backend):
        article_id = backend.articles.save_articles('Tecnologia', [make_article(1)])[0].id
        backend.favorites.add_favorite(article_id, TEST_USER_ID)
        assert backend.favorites.remove_favorite(article_id, TEST_USER_ID) is True
        assert backend.favorites.get_user_favorite_ids(TEST_USER_ID) == set()


class TestFavoriteEndpoints:

    def test_toggle_volatile_article_persists_then_favorites(self, client):
        article = make_article(3)
        resp = _toggle(client, {'article': article.to_dict()})

        assert resp.status_code == 200
        data = resp.get_json()
        row = ArticleRow.query.filter_by(url=article.url).one()
        assert data == {'article_id': row.id, 'favorite': True}

    def test_toggle_twice_unfavorites(self, client, backend):
        article_id = backend.articles.save_articles('Tecnologia', [make_article(1)])[0].id
        assert _toggle(client, {'article_id': article_id}).get_json()['favorite'] is True
        assert _toggle(client, {'article_id': article_id}).get_json()['favorite'] is False
        assert Favorite.query.count() == 0

    def test_toggle_malformed_id_without_article_404(self, client):
        assert _toggle(client, {'article_id': 'tech'}).status_code == 404
        assert Favorite.query.count() == 0

    def test_list_and_ids(self, client, backend):
        article_id = backend.articles.save_articles('Tecnologia', [make_article(1)])[0].id
        _toggle(client, {'article_id': article_id})

        articles = client.get('/api/favorites').get_json()['articles']
        assert [a['id'] for a in articles] == [article_id]
        assert client.get('/api/favorites/ids').get_json()['ids'] == [article_id]

    def test_profile_includes_favorite_ids(self, client, backend):
        article_id = backend.articles.save_articles('Tecnologia', [make_article(1)])[0].id
        _toggle(client, {'article_id': article_id})

        data = client.get('/api/user/profile').get_json()
        assert data['profile']['id'] == TEST_USER_ID
        assert data['favorite_ids'] == [article_id]
