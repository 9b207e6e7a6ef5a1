import asyncio
import logging
from typing import Optional

import httpx
from google.genai import types
from tenacity import AsyncRetrying, RetryError, retry_if_result, stop_after_delay, wait_fixed

from ..providers import ai_factory
from ..schemas import GeneratedImage, VideoResult
from blog_wizard.core.config import settings
from blog_wizard.core.exceptions import MissingResultError, VideoGenerationError, VideoTimeoutError

logger = logging.getLogger(__name__)


async def wait_for_operation(client, operation, poll_interval: float, timeout: float):
    """
    Poll a long-running video operation at a fixed interval until it is done.

    Args:
        client: genai client that submitted the operation
        operation: operation handle returned by generate_videos
        poll_interval: seconds between status checks
        timeout: overall budget in seconds

    Returns:
        The finished operation

    Raises:
        VideoTimeoutError: the operation is still pending after `timeout` seconds
    """
    if operation.done:
        return operation

    current = operation

    async def refresh():
        nonlocal current
        current = await client.aio.operations.get(current)
        return current

    await asyncio.sleep(poll_interval)
    retrying = AsyncRetrying(
        stop=stop_after_delay(timeout),
        wait=wait_fixed(poll_interval),
        retry=retry_if_result(lambda op: not op.done),
    )
    try:
        return await retrying(refresh)
    except RetryError as e:
        raise VideoTimeoutError(f"Video generation did not finish within {timeout:.0f}s.") from e


def extract_video_uri(operation) -> str:
    error = getattr(operation, 'error', None)
    if error:
        raise VideoGenerationError(f"Video generation failed: {error}")

    response = getattr(operation, 'response', None)
    videos = getattr(response, 'generated_videos', None) or []
    video = getattr(videos[0], 'video', None) if videos else None
    uri = getattr(video, 'uri', None)
    if not uri:
        raise MissingResultError("Video generation finished without a result URI.")
    return uri


async def _fetch_video(client: httpx.AsyncClient, uri: str, api_key: str) -> VideoResult:
    resp = await client.get(uri, headers={"x-goog-api-key": api_key}, follow_redirects=True)
    resp.raise_for_status()
    mime_type = resp.headers.get("content-type", "").split(";")[0].strip() or "video/mp4"
    if not mime_type.startswith("video/"):
        mime_type = "video/mp4"
    return VideoResult(data=resp.content, mime_type=mime_type, source_uri=uri)


async def download_video(uri: str, api_key: str, http_client: Optional[httpx.AsyncClient] = None) -> VideoResult:
    """Authenticated download of the rendered video"""
    if http_client is not None:
        return await _fetch_video(http_client, uri, api_key)
    async with httpx.AsyncClient(timeout=settings.VIDEO_DOWNLOAD_TIMEOUT_SECONDS) as client:
        return await _fetch_video(client, uri, api_key)


async def generate_video_task(
    image: GeneratedImage,
    poll_interval: Optional[float] = None,
    timeout: Optional[float] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> VideoResult:
    """Animate an image into a short video (submit, poll, download)"""
    api_key = ai_factory.get_video_api_key()
    client = ai_factory.get_video_client()
    poll_interval = settings.VIDEO_POLL_INTERVAL_SECONDS if poll_interval is None else poll_interval
    timeout = settings.VIDEO_TIMEOUT_SECONDS if timeout is None else timeout

    try:
        operation = await client.aio.models.generate_videos(
            model=settings.GOOGLE_VIDEO_MODEL,
            image=types.Image(
                image_bytes=image.data,
                mime_type=image.mime_type or settings.DEFAULT_IMAGE_MIME_TYPE,
            ),
            config=types.GenerateVideosConfig(
                number_of_videos=1,
                resolution=settings.GOOGLE_VIDEO_RESOLUTION,
                aspect_ratio=settings.GOOGLE_VIDEO_ASPECT_RATIO,
            )
        )
    except Exception as e:
        logger.error(f"[GenerateVideoTask] Error submitting video job: {e}")
        raise

    logger.info(f"[GenerateVideoTask] Video job submitted: {getattr(operation, 'name', '?')}")
    operation = await wait_for_operation(client, operation, poll_interval, timeout)
    uri = extract_video_uri(operation)

    video = await download_video(uri, api_key, http_client=http_client)
    logger.info(f"[GenerateVideoTask] Video downloaded ({len(video.data)} bytes)")
    return video
