from typing import Optional
from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    PROJECT_NAME: str = "SEO Blog Wizard"

    # AI Models
    GOOGLE_CHAT_MODEL: str = "gemini-3-flash-preview"
    GOOGLE_IMAGE_MODEL: str = "gemini-2.5-flash-image"
    GOOGLE_VIDEO_MODEL: str = "veo-3.1-fast-generate-preview"
    GOOGLE_TTS_MODEL: str = "gemini-2.5-flash-preview-tts"

    # API Keys
    API_KEY: str
    GOOGLE_API_KEY: Optional[str] = None
    GOOGLE_VIDEO_API_KEY: Optional[str] = None
    VIDEO_REQUIRES_DEDICATED_KEY: bool = False

    # Article Settings
    ARTICLE_LANGUAGE: str = "Português do Brasil (pt-BR)"
    ARTICLE_LOCALE: str = "pt-BR"
    DEFAULT_TARGET_AUDIENCE: str = "General audience"
    ARTICLE_USE_RESPONSE_SCHEMA: bool = False

    # Image Settings
    GOOGLE_IMAGE_ASPECT_RATIO: str = "16:9"
    DEFAULT_IMAGE_MIME_TYPE: str = "image/png"

    # Video Settings
    GOOGLE_VIDEO_RESOLUTION: str = "720p"
    GOOGLE_VIDEO_ASPECT_RATIO: str = "16:9"
    VIDEO_POLL_INTERVAL_SECONDS: float = 10.0
    VIDEO_TIMEOUT_SECONDS: float = 600.0
    VIDEO_DOWNLOAD_TIMEOUT_SECONDS: float = 60.0

    # TTS Settings
    GOOGLE_TTS_VOICE: str = "Kore"
    TTS_SAMPLE_RATE: int = 24000

    # Session Settings
    SESSION_TTL_SECONDS: float = 3600.0
    STATUS_HISTORY_LIMIT: int = 20

    @model_validator(mode='after')
    def check_video_settings(self) -> 'Settings':
        if self.VIDEO_POLL_INTERVAL_SECONDS < 0:
            raise ValueError("VIDEO_POLL_INTERVAL_SECONDS must not be negative.")
        if self.VIDEO_TIMEOUT_SECONDS <= self.VIDEO_POLL_INTERVAL_SECONDS:
            raise ValueError("VIDEO_TIMEOUT_SECONDS must be greater than VIDEO_POLL_INTERVAL_SECONDS.")
        return self

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

settings = Settings()


def get_settings() -> Settings:
    """Fresh read of the environment and .env, for values that may change at runtime (API keys)"""
    return Settings()
