from typing import Optional
from langchain_core.prompts import PromptTemplate

from .schemas import INLINE_IMAGE_PLACEHOLDER, ArticleLength, GenerationOptions, Tone

# ============================================================================
# SEO article prompt
# ============================================================================

TONE_DIRECTIVES = {
    Tone.PROFESSIONAL: "Professional and authoritative, precise vocabulary, no slang.",
    Tone.CASUAL: "Casual and friendly, as if talking to a friend, short sentences.",
    Tone.PERSUASIVE: "Persuasive, benefit-driven, with clear calls to action.",
    Tone.INFORMATIVE: "Neutral and informative, focused on facts and explanations.",
    Tone.HUMOROUS: "Light and humorous without losing accuracy.",
}

LENGTH_DIRECTIVES = {
    ArticleLength.SHORT: "Short: about 500 to 700 words.",
    ArticleLength.MEDIUM: "Medium: about 1000 to 1300 words.",
    ArticleLength.LONG: "Long: about 1800 to 2200 words, covering the topic in depth.",
}

ARTICLE_TEMPLATE = PromptTemplate.from_template("""You are a world-class SEO and copywriting specialist.
Your task is to write a blog article highly optimized for WordPress.

Main topic: "{topic}"
{reference_line}
Writing settings:
- Tone of voice: {tone}
- Text length: {length}
- Target audience: {audience}

Formatting requirements:
1. The content must be rich and informative. Search the web to ground facts and figures.
2. Structure the body with H2 ("## ") and H3 ("### ") headings.
3. Language: {language}. Every text field must be written in this language, except the image prompts.
4. IMPORTANT: use bold (**text**) ONLY for extremely important terms or keywords. Do not overuse bold.
5. In the middle of the text, where an illustration makes sense, insert exactly the string: "{placeholder}". Use it once.
6. The text must read fluently and naturally, focusing on readability.

Return ONLY a valid JSON object strictly following this structure:
{{
  "title": "Catchy title (H1)",
  "slug": "url-friendly-post-slug",
  "metaDescription": "Description for Google (max 160 chars)",
  "keywords": ["primary keyword", "keyword2"],
  "tags": ["tag1", "tag2"],
  "summary": "A short summary for the WordPress excerpt",
  "content": "The article body in Markdown",
  "imagePrompts": {{
    "featured": "A detailed descriptive prompt in English for a high-quality featured image about the theme",
    "inline": "A detailed descriptive prompt in English for a high-quality contextual image for the post body"
  }}
}}""")


def create_article_prompt(
    topic: str,
    options: GenerationOptions,
    language: str,
    reference_url: Optional[str] = None,
) -> str:
    """
    Build the article generation prompt.

    Args:
        topic: main topic of the article (may be blank when a reference URL is given)
        options: tone, length and audience directives
        language: target language/locale of the article
        reference_url: optional page used as inspiration

    Returns:
        The final prompt text
    """
    reference_line = f"Reference URL for inspiration: {reference_url}\n" if reference_url else ""
    return ARTICLE_TEMPLATE.format(
        topic=topic or "(derive the topic from the reference URL)",
        reference_line=reference_line,
        tone=TONE_DIRECTIVES[options.tone],
        length=LENGTH_DIRECTIVES[options.length],
        audience=options.target_audience,
        language=language,
        placeholder=INLINE_IMAGE_PLACEHOLDER,
    )


# ============================================================================
# Image prompts
# ============================================================================

IMAGE_STYLE = (
    "High-quality editorial blog illustration, clean composition, natural lighting, "
    "no text, no watermarks, no logos."
)


def create_image_prompt(prompt: str) -> str:
    """Combine the article's image prompt with the house style"""
    return f"{prompt.strip()}. {IMAGE_STYLE}"


def create_image_edit_prompt(instruction: str) -> str:
    """Wrap a free-text edit instruction so the model keeps the rest of the image intact"""
    return (
        f"Edit the provided image: {instruction.strip()}. "
        "Keep the overall composition, subject and aspect ratio unless the instruction says otherwise."
    )
