from flask import Blueprint, jsonify, current_app
from newsportal.domain import Deed, Quote
from newsportal.services.backend import get_backend
from newsportal.services.genai import get_generator

bp = Blueprint('inspiration', __name__, url_prefix='/api/inspiration')

FALLBACK_QUOTE = Quote(
    id='fallback',
    text='Il modo migliore per prevedere il futuro è crearlo.',
    author='Peter Drucker',
)
FALLBACK_DEED = Deed(id='fallback', text='Fai un sorriso a chi incontri oggi.')


@bp.route('/quote', methods=['GET'])
def get_quote():
    """Random stored quote; generates (and stores) one when the pool is empty."""
    backend = get_backend()
    quote = backend.inspiration.get_random_quote()
    source = 'store'
    if quote is None:
        quote = get_generator().generate_inspirational_quote()
        source = 'generated'
        if quote is not None:
            backend.inspiration.save_quote(quote)
        else:
            current_app.logger.warning('No quote available, using fallback')
            quote, source = FALLBACK_QUOTE, 'fallback'
    return jsonify({'quote': quote.to_dict(), 'source': source})


@bp.route('/deed', methods=['GET'])
def get_deed():
    """Random stored good deed, else a generated one, else a fixed one."""
    backend = get_backend()
    deed = backend.inspiration.get_random_deed()
    source = 'store'
    if deed is None:
        text = get_generator().generate_good_deed()
        source = 'generated'
        if text:
            backend.inspiration.save_deed(text)
            deed = Deed(id='generated', text=text)
        else:
            current_app.logger.warning('No deed available, using fallback')
            deed, source = FALLBACK_DEED, 'fallback'
    return jsonify({'deed': deed.to_dict(), 'source': source})
