from google import genai
from blog_wizard.core.config import get_settings
from blog_wizard.core.exceptions import VideoKeyRequiredError

class AIProviderFactory:
    """
    Builds a fresh Gemini client for every call. Keys are re-read from the
    environment on each call, so a rotated or newly selected key is used by
    the next request without a restart.
    """

    def get_api_key(self) -> str:
        api_key = get_settings().GOOGLE_API_KEY
        if not api_key:
            raise RuntimeError("GOOGLE_API_KEY is not configured.")
        return api_key

    def get_video_api_key(self) -> str:
        """Key used for video generation, which may require a separate paid key"""
        current = get_settings()
        if current.GOOGLE_VIDEO_API_KEY:
            return current.GOOGLE_VIDEO_API_KEY
        if current.VIDEO_REQUIRES_DEDICATED_KEY:
            raise VideoKeyRequiredError(
                "Video generation requires GOOGLE_VIDEO_API_KEY (a paid key) to be configured."
            )
        return self.get_api_key()

    def get_client(self) -> genai.Client:
        return genai.Client(api_key=self.get_api_key())

    def get_video_client(self) -> genai.Client:
        return genai.Client(api_key=self.get_video_api_key())

# shared instance
ai_factory = AIProviderFactory()
