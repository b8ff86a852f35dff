import base64
import logging

logger = logging.getLogger(__name__)

PROMPT = (
    "Crea un'immagine in stile 'flat vector art', moderna, solare e colorata, "
    "senza testo, che rappresenti questo concetto: \"{title}\". "
    "Colori vivaci, atmosfera felice."
)


def _inline_parts(response):
    for candidate in response.candidates or []:
        content = candidate.content
        for part in (content.parts if content else None) or []:
            if part.inline_data is not None and part.inline_data.data:
                yield part.inline_data


def generate_article_image(client, title, model):
    """Single attempt, no retry. Returns a PNG data URI or None."""
    try:
        response = client.models.generate_content(
            model=model,
            contents=PROMPT.format(title=title),
        )
    except Exception as e:
        logger.error('Image generation failed for "%s": %s', title, e)
        return None

    for blob in _inline_parts(response):
        data = blob.data
        if isinstance(data, bytes):
            data = base64.b64encode(data).decode('ascii')
        mime_type = blob.mime_type or 'image/png'
        return 'data:%s;base64,%s' % (mime_type, data)
    logger.info('Image response for "%s" had no inline data', title)
    return None
