from datetime import datetime
from pydantic import BaseModel, Field, model_validator
from typing import List, Optional

from blog_wizard.engine.schemas import Article, ArticleLength, GenerationOptions, Tone
from blog_wizard.engine.state import GenerationStatus


class GenerateArticleRequest(BaseModel):
    topic: str = Field(default="", description="Main topic of the article")
    reference_url: str = Field(default="", description="Optional reference page used as inspiration")
    tone: Tone = Field(default=Tone.PROFESSIONAL, description="Tone of voice")
    length: ArticleLength = Field(default=ArticleLength.MEDIUM, description="Length band of the article")
    target_audience: str = Field(default="", description="Target audience; blank means the default audience")

    @model_validator(mode='after')
    def check_topic_or_url(self) -> 'GenerateArticleRequest':
        if not self.topic.strip() and not self.reference_url.strip():
            raise ValueError("Provide a topic or a reference URL.")
        return self

    def to_options(self) -> GenerationOptions:
        return GenerationOptions(
            tone=self.tone,
            length=self.length,
            target_audience=self.target_audience,
        )


class EditImageRequest(BaseModel):
    instruction: str = Field(..., min_length=1, description="Natural-language edit, e.g. 'add a vintage filter'")


class GenerationStatusResponse(BaseModel):
    status: str
    message: str
    session_id: str


class ImageInfo(BaseModel):
    slot: str
    mime_type: str
    size_bytes: int
    width: Optional[int] = None
    height: Optional[int] = None
    download_url: str


class VideoInfo(BaseModel):
    mime_type: str
    size_bytes: int
    url: str


class SessionSnapshot(BaseModel):
    """Everything the UI needs to render one session"""
    session_id: str
    created_at: datetime
    status: GenerationStatus
    status_message: str
    status_history: List[GenerationStatus] = Field(default_factory=list, description="Recent status transitions, oldest first")
    is_busy: bool
    alert: Optional[str] = None
    article: Optional[Article] = None
    featured_image: Optional[ImageInfo] = None
    inline_image: Optional[ImageInfo] = None
    video: Optional[VideoInfo] = None


class SeoMetadata(BaseModel):
    slug: str
    meta_description: str
    meta_description_length: int
    primary_keyword: Optional[str] = None
    keywords: List[str]
    tags: List[str]
    summary: str
