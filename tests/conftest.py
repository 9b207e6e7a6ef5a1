import io
import os
import asyncio
from types import SimpleNamespace

os.environ.setdefault("API_KEY", "test-api-key")
os.environ.setdefault("GOOGLE_API_KEY", "test-google-key")

import pytest
from PIL import Image

from blog_wizard.engine.schemas import Article, GeneratedImage, SpeechAudio, VideoResult
from blog_wizard.services.generation_service import GenerationService
from blog_wizard.services.session_store import SessionStore

FEATURED_PROMPT = "A cozy cafe counter with a steaming espresso"
INLINE_PROMPT = "Hands pouring latte art into a ceramic cup"


def make_png(color=(200, 30, 30), size=(16, 9)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


def article_payload(**overrides) -> dict:
    payload = {
        "title": "Café: o guia completo",
        "slug": "cafe-guia-completo",
        "metaDescription": "Tudo sobre café, da origem ao preparo.",
        "keywords": ["café", "espresso", "grãos"],
        "tags": ["bebidas", "guia"],
        "summary": "Um resumo curto sobre café.",
        "content": (
            "## Origem\nO **café** nasceu na Etiópia.\n"
            "[[INLINE_IMAGE_PLACEHOLDER]]\n"
            "### Preparo\nUse água a 92 graus."
        ),
        "imagePrompts": {"featured": FEATURED_PROMPT, "inline": INLINE_PROMPT},
    }
    payload.update(overrides)
    return payload


def make_article(**overrides) -> Article:
    return Article.model_validate(article_payload(**overrides))


def content_response(parts):
    """Minimal stand-in for a GenerateContentResponse"""
    return SimpleNamespace(
        candidates=[SimpleNamespace(content=SimpleNamespace(parts=parts), finish_reason=None)],
        prompt_feedback=None,
    )


def inline_part(data: bytes, mime_type="image/png"):
    return SimpleNamespace(text=None, inline_data=SimpleNamespace(data=data, mime_type=mime_type))


def text_part(text: str):
    return SimpleNamespace(text=text, inline_data=None)


class FakeModels:
    def __init__(self):
        self.calls = []
        self.response = None
        self.error = None
        self.video_operation = None

    async def generate_content(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        return self.response

    async def generate_videos(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        return self.video_operation


class FakeOperations:
    """Returns the queued operation states one by one, repeating the last one"""

    def __init__(self, states=()):
        self.states = list(states)
        self.calls = 0

    async def get(self, operation):
        self.calls += 1
        if len(self.states) > 1:
            return self.states.pop(0)
        return self.states[0] if self.states else operation


class FakeGenaiClient:
    def __init__(self):
        self.models = FakeModels()
        self.operations = FakeOperations()
        self.aio = SimpleNamespace(models=self.models, operations=self.operations)


@pytest.fixture
def genai_client(monkeypatch):
    from blog_wizard.engine.providers import ai_factory

    client = FakeGenaiClient()
    monkeypatch.setattr(ai_factory, "get_client", lambda: client)
    monkeypatch.setattr(ai_factory, "get_video_client", lambda: client)
    return client


class FakeGateway:
    """
    In-memory ModelGateway.

    `results` maps an operation (or an image prompt) to a value or an
    exception; `blocks` maps an operation to an asyncio.Event the call waits
    on before answering.
    """

    def __init__(self):
        self.calls = []
        self.blocks = {}
        self.observers = {}
        self.results = {
            "generate_article": make_article(),
            FEATURED_PROMPT: GeneratedImage(data=make_png((200, 30, 30)), mime_type="image/png"),
            INLINE_PROMPT: GeneratedImage(data=make_png((30, 200, 30)), mime_type="image/png"),
            "edit_image": GeneratedImage(data=make_png((30, 30, 200), (32, 18)), mime_type="image/png"),
            "generate_video": VideoResult(data=b"fake-mp4", source_uri="https://example.test/video"),
            "generate_speech": SpeechAudio(data=b"RIFF....WAVE", sample_rate=24000, duration_seconds=1.5),
        }
        self.video_key_error = None

    async def _answer(self, key, operation=None):
        operation = operation or key
        self.calls.append(operation)
        observer = self.observers.get(operation)
        if observer:
            observer()
        if operation in self.blocks:
            await self.blocks[operation].wait()
        result = self.results[key]
        if isinstance(result, BaseException):
            raise result
        return result

    def check_video_access(self):
        if self.video_key_error:
            raise self.video_key_error

    async def generate_article(self, topic, options, reference_url=None):
        self.last_article_args = (topic, options, reference_url)
        return await self._answer("generate_article")

    async def generate_image(self, prompt):
        return await self._answer(prompt, "generate_image")

    async def edit_image(self, image, instruction):
        self.last_edit_args = (image, instruction)
        return await self._answer("edit_image")

    async def generate_video(self, image):
        self.last_video_image = image
        return await self._answer("generate_video")

    async def generate_speech(self, text):
        self.last_speech_text = text
        return await self._answer("generate_speech")


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def service(gateway):
    return GenerationService(gateway=gateway)


@pytest.fixture
def store():
    return SessionStore()


@pytest.fixture
def session(store):
    return store.create()


async def wait_until(predicate, attempts=200):
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0.005)
    raise AssertionError("condition was never reached")
