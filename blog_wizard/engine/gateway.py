from typing import Optional

from .providers import ai_factory
from .schemas import Article, GeneratedImage, GenerationOptions, SpeechAudio, VideoResult
from .tasks.article import generate_article_task
from .tasks.audio import generate_speech_task
from .tasks.image import edit_image_task, generate_image_task
from .tasks.video import generate_video_task


class ModelGateway:
    """
    Stateless facade over the five Gemini operations.

    Each call builds its own client and performs one round trip (or one
    poll loop for video). Nothing here retries; callers decide.
    """

    def check_video_access(self) -> None:
        """Raise VideoKeyRequiredError when the video key gate is closed"""
        ai_factory.get_video_api_key()

    async def generate_article(self, topic: str, options: GenerationOptions, reference_url: Optional[str] = None) -> Article:
        return await generate_article_task(topic, options, reference_url)

    async def generate_image(self, prompt: str) -> GeneratedImage:
        return await generate_image_task(prompt)

    async def edit_image(self, image: GeneratedImage, instruction: str) -> GeneratedImage:
        return await edit_image_task(image, instruction)

    async def generate_video(self, image: GeneratedImage) -> VideoResult:
        return await generate_video_task(image)

    async def generate_speech(self, text: str) -> SpeechAudio:
        return await generate_speech_task(text)


model_gateway = ModelGateway()
