"""Speech synthesis and the PCM format it produces.

The provider returns raw 16-bit little-endian PCM, mono, 24 kHz. Anything
that plays the audio back has to decode it with exactly that format.
"""

import base64
import io
import logging
import re
import wave

from google.genai import types

logger = logging.getLogger(__name__)

SAMPLE_RATE = 24000
SAMPLE_WIDTH = 2
CHANNELS = 1
MIN_TEXT_LENGTH = 5

_MARKDOWN_RE = re.compile(r'[*_`]')
_SPACE_RE = re.compile(r'\s+')


def clean_speech_text(text):
    text = _MARKDOWN_RE.sub('', text or '')
    return _SPACE_RE.sub(' ', text).strip()


def generate_audio(client, text, model, voice='Aoede', call=None):
    """Return base64 PCM for ``text`` or None."""
    safe_text = clean_speech_text(text)
    if len(safe_text) < MIN_TEXT_LENGTH:
        return None

    config = types.GenerateContentConfig(
        response_modalities=['AUDIO'],
        speech_config=types.SpeechConfig(
            voice_config=types.VoiceConfig(
                prebuilt_voice_config=types.PrebuiltVoiceConfig(voice_name=voice),
            ),
        ),
    )
    request = client.models.generate_content
    try:
        if call is None:
            response = request(model=model, contents=safe_text, config=config)
        else:
            response = call(request, model=model, contents=safe_text, config=config)
        data = response.candidates[0].content.parts[0].inline_data.data
    except Exception as e:
        logger.error('Audio generation failed: %s', e)
        return None

    if not data:
        return None
    if isinstance(data, bytes):
        return base64.b64encode(data).decode('ascii')
    return data


def pcm_to_wav(audio_base64):
    """Wrap base64 PCM samples in a WAV container."""
    pcm = base64.b64decode(audio_base64)
    buf = io.BytesIO()
    with wave.open(buf, 'wb') as wav:
        wav.setnchannels(CHANNELS)
        wav.setsampwidth(SAMPLE_WIDTH)
        wav.setframerate(SAMPLE_RATE)
        wav.writeframes(pcm)
    return buf.getvalue()
