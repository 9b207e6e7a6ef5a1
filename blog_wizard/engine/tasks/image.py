import logging
from google.genai import types

from ..providers import ai_factory
from ..prompts import create_image_prompt, create_image_edit_prompt
from ..schemas import GeneratedImage
from blog_wizard.core.config import settings
from blog_wizard.core.exceptions import EmptyResponseError

logger = logging.getLogger(__name__)


def _describe_empty_response(response) -> str:
    """Best-effort reason why the service returned no image"""
    reason = "UNKNOWN"

    # Check if it was blocked at the prompt level
    prompt_feedback = getattr(response, 'prompt_feedback', None)
    if prompt_feedback and getattr(prompt_feedback, 'block_reason', None):
        block_reason = prompt_feedback.block_reason
        reason = f"PROMPT_BLOCKED ({getattr(block_reason, 'name', str(block_reason))})"
        message = getattr(prompt_feedback, 'block_reason_message', None)
        if message:
            reason += f" - {message}"

    # Check if it was blocked at the candidate level
    elif getattr(response, 'candidates', None):
        candidate = response.candidates[0]
        finish_reason = getattr(candidate, 'finish_reason', None)
        if finish_reason:
            reason = getattr(finish_reason, 'name', str(finish_reason))
            finish_message = getattr(candidate, 'finish_message', None)
            if finish_message:
                reason += f" - {finish_message}"

    return reason


def extract_inline_image(response, label: str) -> GeneratedImage:
    """Return the first inline binary payload found in the first candidate's parts"""
    candidates = getattr(response, 'candidates', None) or []
    content = getattr(candidates[0], 'content', None) if candidates else None
    parts = getattr(content, 'parts', None) or []

    for part in parts:
        inline_data = getattr(part, 'inline_data', None)
        if inline_data and inline_data.data:
            return GeneratedImage(
                data=inline_data.data,
                mime_type=inline_data.mime_type or settings.DEFAULT_IMAGE_MIME_TYPE,
            )

    raise EmptyResponseError(
        f"No image payload in the response for {label}. Reason: {_describe_empty_response(response)}"
    )


async def generate_image_task(prompt: str) -> GeneratedImage:
    """Single 16:9 image generation from a descriptive prompt"""
    client = ai_factory.get_client()

    try:
        response = await client.aio.models.generate_content(
            model=settings.GOOGLE_IMAGE_MODEL,
            contents=create_image_prompt(prompt),
            config=types.GenerateContentConfig(
                response_modalities=['IMAGE'],
                image_config=types.ImageConfig(aspect_ratio=settings.GOOGLE_IMAGE_ASPECT_RATIO)
            )
        )
    except Exception as e:
        logger.error(f"[GenerateImageTask] Error generating image: {e}")
        raise

    return extract_inline_image(response, "generated image")


async def edit_image_task(image: GeneratedImage, instruction: str) -> GeneratedImage:
    """Apply a free-text edit instruction to an existing image"""
    client = ai_factory.get_client()

    contents = [
        types.Part.from_bytes(data=image.data, mime_type=image.mime_type or settings.DEFAULT_IMAGE_MIME_TYPE),
        create_image_edit_prompt(instruction),
    ]

    try:
        response = await client.aio.models.generate_content(
            model=settings.GOOGLE_IMAGE_MODEL,
            contents=contents,
            config=types.GenerateContentConfig(response_modalities=['IMAGE'])
        )
    except Exception as e:
        logger.error(f"[EditImageTask] Error editing image: {e}")
        raise

    return extract_inline_image(response, "edited image")
