import json
import logging

from newsportal.domain import Quote

logger = logging.getLogger(__name__)

QUOTE_PROMPT = (
    'Genera una citazione famosa, positiva e ispirante.\n'
    'Restituisci SOLO un oggetto JSON in questo formato: '
    '{ "text": "testo della citazione", "author": "autore" }'
)
DEED_PROMPT = (
    'Suggerisci una piccola "Buona Azione" o gesto di gentilezza che una persona '
    'può fare oggi stesso (max 10 parole).\n'
    'Restituisci SOLO un oggetto JSON: { "text": "..." }'
)


def parse_json_object(text):
    """Parse a JSON object, tolerating markdown fences. {} on failure."""
    text = (text or '').replace('```json', '').replace('```', '').strip()
    start, end = text.find('{'), text.rfind('}')
    if start == -1 or end <= start:
        return {}
    try:
        data = json.loads(text[start:end + 1])
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def _generate_text(client, model, prompt, call):
    request = client.models.generate_content
    if call is None:
        response = request(model=model, contents=prompt)
    else:
        response = call(request, model=model, contents=prompt)
    return response.text or ''


def generate_inspirational_quote(client, model, call=None):
    try:
        data = parse_json_object(_generate_text(client, model, QUOTE_PROMPT, call))
    except Exception as e:
        logger.error('Quote generation failed: %s', e)
        return None
    text, author = data.get('text'), data.get('author')
    if not text or not author:
        return None
    return Quote(text=str(text).strip(), author=str(author).strip())


def generate_good_deed(client, model, call=None):
    try:
        data = parse_json_object(_generate_text(client, model, DEED_PROMPT, call))
    except Exception as e:
        logger.error('Deed generation failed: %s', e)
        return None
    text = data.get('text')
    return str(text).strip() if text else None
