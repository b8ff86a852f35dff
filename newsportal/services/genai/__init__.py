"""Generative-content facade: news search, images, speech, inspiration."""

import functools
import logging
import time

from flask import current_app

from . import audio, images, inspiration, news
from .client import GenerationError, get_client
from .retry import is_rate_limit_error, with_retry

EXTENSION_KEY = 'newsportal.generator'

logger = logging.getLogger(__name__)


class Generator:
    """Binds the provider functions to one key, model set and retry policy."""

    def __init__(self, api_key, news_model, image_model, tts_model, text_model,
                 voice='Aoede', retries=5, delay_ms=5000, factor=1.5,
                 sleep=time.sleep, client_factory=get_client):
        self.api_key = api_key
        self.news_model = news_model
        self.image_model = image_model
        self.tts_model = tts_model
        self.text_model = text_model
        self.voice = voice
        self.client_factory = client_factory
        self.retry = functools.partial(
            with_retry, retries=retries, delay_ms=delay_ms, factor=factor, sleep=sleep,
        )

    @classmethod
    def from_config(cls, config):
        return cls(
            api_key=config.get('GEMINI_API_KEY', ''),
            news_model=config['NEWS_MODEL'],
            image_model=config['IMAGE_MODEL'],
            tts_model=config['TTS_MODEL'],
            text_model=config['TEXT_MODEL'],
            voice=config.get('TTS_VOICE', 'Aoede'),
            retries=config.get('GENAI_MAX_RETRIES', 5),
            delay_ms=config.get('GENAI_RETRY_DELAY_MS', 5000),
            factor=config.get('GENAI_RETRY_FACTOR', 1.5),
        )

    def _client(self):
        try:
            return self.client_factory(self.api_key)
        except GenerationError:
            raise
        except Exception as e:
            raise GenerationError(str(e)) from e

    def fetch_positive_news(self, query, label):
        return news.fetch_positive_news(
            self._client(), query, label, self.news_model, call=self.retry,
        )

    def generate_article_image(self, title):
        try:
            client = self._client()
        except GenerationError as e:
            logger.warning('Image generation unavailable: %s', e)
            return None
        return images.generate_article_image(client, title, self.image_model)

    def generate_audio(self, text):
        try:
            client = self._client()
        except GenerationError as e:
            logger.warning('Audio generation unavailable: %s', e)
            return None
        return audio.generate_audio(client, text, self.tts_model, self.voice, call=self.retry)

    def generate_inspirational_quote(self):
        try:
            client = self._client()
        except GenerationError:
            return None
        return inspiration.generate_inspirational_quote(client, self.text_model, call=self.retry)

    def generate_good_deed(self):
        try:
            client = self._client()
        except GenerationError:
            return None
        return inspiration.generate_good_deed(client, self.text_model, call=self.retry)


def get_generator():
    return current_app.extensions[EXTENSION_KEY]


__all__ = [
    'Generator', 'GenerationError', 'get_generator', 'is_rate_limit_error',
    'with_retry', 'EXTENSION_KEY',
]
