from enum import Enum
from typing import TypedDict, List, Optional, Any

from .schemas import Article, GenerationOptions


class GenerationStatus(str, Enum):
    IDLE = "idle"
    GENERATING_TEXT = "generating_text"
    GENERATING_IMAGES = "generating_images"
    GENERATING_VIDEO = "generating_video"
    GENERATING_AUDIO = "generating_audio"
    EDITING_IMAGE = "editing_image"
    COMPLETE = "complete"
    ERROR = "error"


SETTLED_STATUSES = frozenset({
    GenerationStatus.IDLE,
    GenerationStatus.COMPLETE,
    GenerationStatus.ERROR,
})

STATUS_MESSAGES = {
    GenerationStatus.GENERATING_TEXT: "Writing the optimized article and researching data...",
    GenerationStatus.GENERATING_IMAGES: "Creating exclusive AI images...",
    GenerationStatus.GENERATING_VIDEO: "Rendering the video (this can take a minute)...",
    GenerationStatus.GENERATING_AUDIO: "Synthesizing natural audio...",
    GenerationStatus.EDITING_IMAGE: "Applying edits to the image...",
}


def is_busy(status: GenerationStatus) -> bool:
    """True while an operation is in flight; gates the blocking overlay and resubmission"""
    return status not in SETTLED_STATUSES


def status_message(status: GenerationStatus) -> str:
    return STATUS_MESSAGES.get(status, "")


class ArticleState(TypedDict):
    # injected
    session: Any  # blog_wizard.services.session_store.Session
    gateway: Any  # blog_wizard.engine.gateway.ModelGateway
    epoch: int

    # input
    topic: str
    reference_url: Optional[str]
    options: GenerationOptions

    # output
    article: Optional[Article]
    failed_images: List[str]
