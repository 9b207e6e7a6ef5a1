from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from blog_wizard.core.config import settings

INLINE_IMAGE_PLACEHOLDER = "[[INLINE_IMAGE_PLACEHOLDER]]"


class ImagePrompts(BaseModel):
    """Image generation prompts produced together with the article"""
    model_config = ConfigDict(frozen=True)

    featured: str = Field(default="", description="Detailed English prompt for a high-quality featured image about the theme")
    inline: str = Field(default="", description="Detailed English prompt for a contextual image for the post body")


class Article(BaseModel):
    """SEO blog article returned by the text generation step"""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    title: str = Field(description="Catchy title (H1)")
    slug: str = Field(description="URL-friendly slug of the post")
    meta_description: str = Field(alias="metaDescription", description="Search engine description (max 160 chars)")
    keywords: List[str] = Field(description="SEO keywords, primary keyword first")
    tags: List[str] = Field(description="Post tags")
    summary: str = Field(description="Short summary used as the post excerpt")
    content: str = Field(
        description=(
            "Article body using '## ' and '### ' headings, '**bold**' for key terms, "
            f"and exactly one '{INLINE_IMAGE_PLACEHOLDER}' token where the inline image belongs"
        )
    )
    image_prompts: ImagePrompts = Field(alias="imagePrompts")

    @property
    def primary_keyword(self) -> Optional[str]:
        return self.keywords[0] if self.keywords else None


class ImageSlot(str, Enum):
    FEATURED = "featured"
    INLINE = "inline"


class GeneratedImage(BaseModel):
    model_config = ConfigDict(frozen=True)

    data: bytes
    mime_type: str = settings.DEFAULT_IMAGE_MIME_TYPE


class VideoResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    data: bytes
    mime_type: str = "video/mp4"
    source_uri: str


class SpeechAudio(BaseModel):
    model_config = ConfigDict(frozen=True)

    data: bytes
    mime_type: str = "audio/wav"
    sample_rate: int
    duration_seconds: float


class Tone(str, Enum):
    PROFESSIONAL = "professional"
    CASUAL = "casual"
    PERSUASIVE = "persuasive"
    INFORMATIVE = "informative"
    HUMOROUS = "humorous"


class ArticleLength(str, Enum):
    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"


class GenerationOptions(BaseModel):
    """Writing directives passed through to the article prompt"""
    model_config = ConfigDict(frozen=True)

    tone: Tone = Tone.PROFESSIONAL
    length: ArticleLength = ArticleLength.MEDIUM
    target_audience: str = settings.DEFAULT_TARGET_AUDIENCE

    @field_validator("target_audience", mode="before")
    @classmethod
    def default_blank_audience(cls, value: Optional[str]) -> str:
        if value is None or not str(value).strip():
            return settings.DEFAULT_TARGET_AUDIENCE
        return str(value).strip()
