from google import genai


class GenerationError(Exception):
    """Provider call failed after the retry policy gave up."""

    def __init__(self, detail, rate_limited=False):
        self.detail = detail
        self.rate_limited = rate_limited
        super().__init__(detail)


def get_client(api_key):
    """New client per call so a rotated key is always picked up."""
    if not api_key:
        raise GenerationError('Gemini API key is not configured')
    return genai.Client(api_key=api_key)
