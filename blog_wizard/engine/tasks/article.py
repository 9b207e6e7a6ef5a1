import re
import json
import logging
from typing import Optional

from google.genai import types
from pydantic import ValidationError

from ..providers import ai_factory
from ..prompts import create_article_prompt
from ..schemas import Article, GenerationOptions
from blog_wizard.core.config import settings
from blog_wizard.core.exceptions import (
    EmptyResponseError,
    IncompleteArticleError,
    InvalidSubmissionError,
    MalformedResponseError,
)

logger = logging.getLogger(__name__)

_CODE_FENCE_OPEN = re.compile(r"^```(?:json)?\s*\n?", re.IGNORECASE)
_CODE_FENCE_CLOSE = re.compile(r"\n?```$")


def strip_code_fence(text: str) -> str:
    """Remove an optional ```json ... ``` wrapper around the model output"""
    text = text.strip()
    if text.startswith("```"):
        text = _CODE_FENCE_OPEN.sub("", text, count=1)
        text = _CODE_FENCE_CLOSE.sub("", text, count=1)
    return text.strip()


def parse_article_payload(text: Optional[str]) -> Article:
    """
    Turn the raw model output into an Article.

    Raises:
        EmptyResponseError: no text at all
        MalformedResponseError: text is not a JSON object
        IncompleteArticleError: JSON object lacks required fields or has the wrong types
    """
    if not text or not text.strip():
        raise EmptyResponseError("Article generation returned an empty response.")

    json_string = strip_code_fence(text)
    try:
        payload = json.loads(json_string)
    except json.JSONDecodeError as e:
        logger.error(f"[ParseArticle] JSON parse error: {e}")
        raise MalformedResponseError(f"Could not parse the article JSON: {e}", raw_text=text) from e

    if not isinstance(payload, dict):
        raise MalformedResponseError(
            f"Article JSON must be an object, got {type(payload).__name__}.", raw_text=text
        )

    try:
        return Article.model_validate(payload)
    except ValidationError as e:
        fields = [".".join(str(loc) for loc in err["loc"]) for err in e.errors()]
        raise IncompleteArticleError(fields) from e


async def generate_article_task(
    topic: str,
    options: GenerationOptions,
    reference_url: Optional[str] = None,
) -> Article:
    """Grounded SEO article generation (single request, no retry)"""
    topic = (topic or "").strip()
    reference_url = (reference_url or "").strip() or None
    if not topic and not reference_url:
        raise InvalidSubmissionError("A topic or a reference URL is required.")

    client = ai_factory.get_client()
    prompt = create_article_prompt(
        topic=topic,
        options=options,
        language=settings.ARTICLE_LANGUAGE,
        reference_url=reference_url,
    )

    config_params = {
        "tools": [types.Tool(google_search=types.GoogleSearch())],
        "response_mime_type": "application/json",
    }
    if settings.ARTICLE_USE_RESPONSE_SCHEMA:
        config_params["response_schema"] = Article

    try:
        response = await client.aio.models.generate_content(
            model=settings.GOOGLE_CHAT_MODEL,
            contents=prompt,
            config=types.GenerateContentConfig(**config_params),
        )
    except Exception as e:
        logger.error(f"[GenerateArticleTask] Error generating article: {e}")
        raise

    article = parse_article_payload(response.text)
    logger.info(f"[GenerateArticleTask] Article generated: '{article.title}' ({len(article.content)} chars)")
    return article
