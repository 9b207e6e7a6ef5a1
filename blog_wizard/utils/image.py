import io
import base64
import logging
import mimetypes
from typing import Optional, Tuple
from PIL import Image, UnidentifiedImageError

from blog_wizard.engine.schemas import GeneratedImage

logger = logging.getLogger(__name__)


def image_to_data_url(image: GeneratedImage) -> str:
    """Inline data URL for embedding the image in exported HTML"""
    b64_str = base64.b64encode(image.data).decode("utf-8")
    return f"data:{image.mime_type};base64,{b64_str}"


def inspect_image(image: GeneratedImage) -> Optional[Tuple[int, int, str]]:
    """(width, height, format) of the encoded image, or None when Pillow cannot read it"""
    try:
        with Image.open(io.BytesIO(image.data)) as img:
            return img.width, img.height, img.format or ""
    except (UnidentifiedImageError, OSError) as e:
        logger.warning(f"[inspect_image] Could not read image ({image.mime_type}): {e}")
        return None


def media_filename(stem: str, mime_type: str) -> str:
    extension = mimetypes.guess_extension(mime_type) or ".png"
    if extension == ".jpe":
        extension = ".jpg"
    return f"{stem}{extension}"
