from pydub import AudioSegment

def pcm_to_segment(pcm_data: bytes, frame_rate: int = 24000) -> AudioSegment:
    """Wrap raw 16-bit mono PCM from the TTS model into an AudioSegment"""
    return AudioSegment(data=pcm_data, sample_width=2, frame_rate=frame_rate, channels=1)

def export_wav(audio: AudioSegment) -> bytes:
    return audio.export(format="wav").read()
