import os
from dotenv import load_dotenv

load_dotenv()

# Build-time names the key has been published under, in priority order
GEMINI_KEY_NAMES = ('GEMINI_API_KEY', 'VITE_GEMINI_API_KEY', 'API_KEY')


def _fix_db_url(url):
    """Fix common DATABASE_URL issues for SQLAlchemy compatibility."""
    if not url:
        return 'sqlite:///newsportal.db'
    # Supabase/Heroku use postgres:// but SQLAlchemy requires postgresql://
    if url.startswith('postgres://'):
        url = url.replace('postgres://', 'postgresql://', 1)
    return url


def resolve_gemini_key(environ=None):
    """Return the first non-empty Gemini key found in the environment."""
    environ = os.environ if environ is None else environ
    for name in GEMINI_KEY_NAMES:
        value = environ.get(name, '').strip()
        if value:
            return value
    return ''


class Config:
    SQLALCHEMY_DATABASE_URI = _fix_db_url(os.environ.get('DATABASE_URL', ''))
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SUPABASE_URL = os.environ.get('SUPABASE_URL', '')
    SUPABASE_PUBLISHABLE_KEY = os.environ.get('SUPABASE_PUBLISHABLE_KEY', '')
    SUPABASE_TIMEOUT = int(os.environ.get('SUPABASE_TIMEOUT', '10'))

    GEMINI_API_KEY = resolve_gemini_key()
    NEWS_MODEL = os.environ.get('NEWS_MODEL', 'gemini-3-flash-preview')
    IMAGE_MODEL = os.environ.get('IMAGE_MODEL', 'gemini-2.5-flash-image')
    TTS_MODEL = os.environ.get('TTS_MODEL', 'gemini-2.5-flash-preview-tts')
    TEXT_MODEL = os.environ.get('TEXT_MODEL', 'gemini-2.5-flash')
    TTS_VOICE = os.environ.get('TTS_VOICE', 'Aoede')

    # Rate-limit retry policy for generative calls
    GENAI_MAX_RETRIES = int(os.environ.get('GENAI_MAX_RETRIES', '5'))
    GENAI_RETRY_DELAY_MS = int(os.environ.get('GENAI_RETRY_DELAY_MS', '5000'))
    GENAI_RETRY_FACTOR = float(os.environ.get('GENAI_RETRY_FACTOR', '1.5'))

    CACHED_ARTICLES_LIMIT = int(os.environ.get('CACHED_ARTICLES_LIMIT', '20'))
    INSPIRATION_POOL_LIMIT = int(os.environ.get('INSPIRATION_POOL_LIMIT', '100'))

    # Background image prefetch
    PREFETCH_ENABLED = os.environ.get('PREFETCH_ENABLED', '1') == '1'
    PREFETCH_IDLE_DELAY = float(os.environ.get('PREFETCH_IDLE_DELAY', '2.0'))
    PREFETCH_INTERVAL = float(os.environ.get('PREFETCH_INTERVAL', '6.0'))


class DevConfig(Config):
    DEBUG = True


class ProdConfig(Config):
    DEBUG = False


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    GEMINI_API_KEY = 'test-key'
    PREFETCH_ENABLED = False
    GENAI_RETRY_DELAY_MS = 0
