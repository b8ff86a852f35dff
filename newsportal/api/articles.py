from flask import Blueprint, request, jsonify, Response
from newsportal.domain import Article
from newsportal.middleware.auth import optional_auth, require_auth
from newsportal.services.backend import get_backend
from newsportal.services.genai import get_generator
from newsportal.services.genai.audio import pcm_to_wav
from newsportal.services.news_app import persist_article

bp = Blueprint('articles', __name__, url_prefix='/api/articles')


def _load_article(article_id):
    article = get_backend().articles.get_article(article_id)
    if article is None:
        return None, (jsonify({'error': 'Article not found'}), 404)
    return article, None


@bp.route('', methods=['POST'])
@require_auth
def save_article():
    """Persist a volatile (generated) article and return it with its id.

    Articles that already carry a stable id are returned unchanged.
    """
    data = request.get_json(silent=True)
    if not data:
        return jsonify({'error': 'Request body is required'}), 400
    if not data.get('url') or not data.get('title'):
        return jsonify({'error': 'url and title are required'}), 400

    persisted = persist_article(get_backend(), Article.from_dict(data))
    if persisted is None:
        return jsonify({'error': 'Article could not be saved'}), 503
    return jsonify({'article': persisted.article.to_dict()}), 201


@bp.route('/<article_id>', methods=['GET'])
@optional_auth
def get_article(article_id):
    article, error = _load_article(article_id)
    if error:
        return error
    return jsonify({'article': article.to_dict()})


@bp.route('/<article_id>/image', methods=['POST'])
@require_auth
def generate_image(article_id):
    """Generate (or return the existing) illustration for an article."""
    article, error = _load_article(article_id)
    if error:
        return error
    if article.image_url:
        return jsonify({'image_url': article.image_url})

    image = get_generator().generate_article_image(article.title)
    if not image:
        return jsonify({'error': 'Image generation failed'}), 502
    get_backend().articles.update_article_image(article.url, image)
    return jsonify({'image_url': image}), 201


@bp.route('/<article_id>/audio', methods=['POST'])
@require_auth
def generate_audio(article_id):
    """Narrate title and summary; the result is cached on the article."""
    article, error = _load_article(article_id)
    if error:
        return error
    if article.audio_base64:
        return jsonify({'audio_base64': article.audio_base64})

    audio = get_generator().generate_audio('%s. %s' % (article.title, article.summary))
    if not audio:
        return jsonify({'error': 'Audio generation failed'}), 502
    get_backend().articles.update_article_audio(article.url, audio)
    return jsonify({'audio_base64': audio}), 201


@bp.route('/<article_id>/audio.wav', methods=['GET'])
@optional_auth
def get_audio_wav(article_id):
    """Cached narration as a playable WAV (PCM s16le, 24 kHz, mono)."""
    article, error = _load_article(article_id)
    if error:
        return error
    if not article.audio_base64:
        return jsonify({'error': 'Audio not generated'}), 404
    return Response(pcm_to_wav(article.audio_base64), mimetype='audio/wav')
