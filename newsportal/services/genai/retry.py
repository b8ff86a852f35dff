"""Retry-with-backoff for rate-limited generative calls."""

import logging
import time

logger = logging.getLogger(__name__)

MAX_RETRIES = 5
INITIAL_DELAY_MS = 5000
BACKOFF_FACTOR = 1.5

# Heuristic: provider wording may change, the status code is the reliable part
_RATE_LIMIT_MARKERS = ('429', 'resource_exhausted', 'quota', 'rate limit', 'too many requests')


def is_rate_limit_error(exc) -> bool:
    for attr in ('code', 'status_code'):
        if getattr(exc, attr, None) == 429:
            return True
    status = getattr(exc, 'status', None)
    if isinstance(status, str) and status.upper() == 'RESOURCE_EXHAUSTED':
        return True
    message = str(exc).lower()
    return any(marker in message for marker in _RATE_LIMIT_MARKERS)


def with_retry(fn, *args, retries=MAX_RETRIES, delay_ms=INITIAL_DELAY_MS,
               factor=BACKOFF_FACTOR, sleep=time.sleep, **kwargs):
    """Call ``fn``, retrying only on rate-limit errors.

    Waits ``delay_ms`` before the first retry and multiplies the wait by
    ``factor`` each time. Other errors, and the last rate-limit error once
    ``retries`` are used up, propagate unchanged.
    """
    delay = delay_ms
    attempt = 0
    while True:
        try:
            return fn(*args, **kwargs)
        except Exception as e:
            if not is_rate_limit_error(e) or attempt >= retries:
                raise
            attempt += 1
            logger.warning('Rate limited (attempt %d/%d), retrying in %.0f ms',
                           attempt, retries, delay)
            sleep(delay / 1000.0)
            delay *= factor
