"""Grounded web search for positive news, parsed defensively."""

import json
import logging
from datetime import date
from urllib.parse import quote

from bs4 import BeautifulSoup
from google.genai import types

from newsportal.domain import Article
from .client import GenerationError
from .retry import is_rate_limit_error

logger = logging.getLogger(__name__)

SEARCH_URL = 'https://www.google.com/search?q={query}'
# Matches encodeURIComponent
URL_SAFE = "!~*'()"
DEFAULT_SENTIMENT = 0.8

PROMPT = '''
Agisci come un giornalista specializzato in "Solutions Journalism".
Cerca sul web 3 notizie RECENTI (ultima settimana) e POSITIVE riguardanti: "{query}".
Focus su: successi, innovazioni, atti di gentilezza o progressi scientifici.

Requisiti:
1. Sentiment decisamente positivo (> 0.7).
2. Formatta ESCLUSIVAMENTE come array JSON valido. Non aggiungere commenti o testo extra.

Esempio struttura:
[
  {{
    "title": "Titolo Notizia",
    "summary": "Riassunto breve",
    "source": "Fonte Ufficiale",
    "date": "2024-05-20",
    "sentimentScore": 0.95
  }}
]
'''


def extract_json_array(text):
    """Parse the JSON array between the first '[' and the last ']'.

    Surrounding prose or markdown fences are ignored. Returns ``[]`` when
    no well-formed array can be found.
    """
    if not text:
        return []
    start = text.find('[')
    end = text.rfind(']')
    if start == -1 or end <= start:
        return []
    try:
        data = json.loads(text[start:end + 1])
    except ValueError:
        logger.warning('Could not parse news JSON: %.200s', text)
        return []
    if not isinstance(data, list):
        return []
    return [item for item in data if isinstance(item, dict)]


def _plain(value):
    if value is None:
        return ''
    return BeautifulSoup(str(value), 'html.parser').get_text(' ', strip=True)


def _score(value):
    try:
        score = float(value)
    except (TypeError, ValueError):
        return DEFAULT_SENTIMENT
    return score or DEFAULT_SENTIMENT


def item_to_article(item, label, today=None):
    title = _plain(item.get('title')) or 'Notizia Positiva'
    source = _plain(item.get('source')) or 'Web'
    today = today or date.today()
    return Article(
        title=title,
        summary=_plain(item.get('summary')) or 'Contenuto non disponibile',
        source=source,
        url=SEARCH_URL.format(query=quote('%s news %s' % (title, source), safe=URL_SAFE)),
        date=_plain(item.get('date')) or today.isoformat(),
        category=label,
        sentiment_score=_score(item.get('sentimentScore')),
    )


def fetch_positive_news(client, query, label, model, call=None):
    """Ask the model for three recent positive stories about ``query``.

    ``call`` wraps the provider request (the retry policy). Malformed output
    yields ``[]``; provider failures raise ``GenerationError``.
    """
    logger.info('[news] searching "%s" (prompt: %s)', label, query)
    config = types.GenerateContentConfig(
        tools=[types.Tool(google_search=types.GoogleSearch())],
    )
    request = client.models.generate_content
    try:
        if call is None:
            response = request(model=model, contents=PROMPT.format(query=query), config=config)
        else:
            response = call(request, model=model, contents=PROMPT.format(query=query), config=config)
    except Exception as e:
        logger.error('[news] generation failed for "%s": %s', label, e)
        raise GenerationError(str(e), rate_limited=is_rate_limit_error(e)) from e

    items = extract_json_array(response.text or '')
    logger.info('[news] %d items parsed for "%s"', len(items), label)
    return [item_to_article(item, label) for item in items]
