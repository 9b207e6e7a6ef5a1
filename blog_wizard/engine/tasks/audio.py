import logging

from google.genai import types

from ..providers import ai_factory
from ..schemas import SpeechAudio
from blog_wizard.core.config import settings
from blog_wizard.core.exceptions import EmptyResponseError
from blog_wizard.utils.audio import export_wav, pcm_to_segment

logger = logging.getLogger(__name__)


def extract_audio_pcm(response) -> bytes:
    candidates = getattr(response, 'candidates', None) or []
    content = getattr(candidates[0], 'content', None) if candidates else None
    parts = getattr(content, 'parts', None) or []
    inline_data = getattr(parts[0], 'inline_data', None) if parts else None
    if not inline_data or not inline_data.data:
        raise EmptyResponseError("Speech generation returned no audio payload.")
    return inline_data.data


async def generate_speech_task(text: str) -> SpeechAudio:
    """Gemini TTS narration of a short text, decoded to a playable WAV buffer"""
    client = ai_factory.get_client()

    try:
        response = await client.aio.models.generate_content(
            model=settings.GOOGLE_TTS_MODEL,
            contents=text,
            config=types.GenerateContentConfig(
                response_modalities=["AUDIO"],
                speech_config=types.SpeechConfig(
                    voice_config=types.VoiceConfig(
                        prebuilt_voice_config=types.PrebuiltVoiceConfig(
                            voice_name=settings.GOOGLE_TTS_VOICE
                        )
                    )
                )
            )
        )
    except Exception as e:
        logger.error(f"[GenerateSpeechTask] Error generating speech: {e}")
        raise

    raw_pcm = extract_audio_pcm(response)
    audio = pcm_to_segment(raw_pcm, frame_rate=settings.TTS_SAMPLE_RATE)
    wav_bytes = export_wav(audio)
    duration = round(audio.duration_seconds, 3)

    logger.info(f"[GenerateSpeechTask] Speech generated. Duration: {duration}s")
    return SpeechAudio(
        data=wav_bytes,
        sample_rate=settings.TTS_SAMPLE_RATE,
        duration_seconds=duration,
    )
