from typing import Optional
import httpx
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Response, status
from fastapi.responses import HTMLResponse, PlainTextResponse
from google.genai import errors as genai_errors

from blog_wizard.core.exceptions import (
    GatewayError,
    InvalidSubmissionError,
    MissingArtifactError,
    SessionBusyError,
    SessionNotFoundError,
    StaleResultError,
    VideoKeyRequiredError,
)
from blog_wizard.engine.schemas import GeneratedImage, ImageSlot
from blog_wizard.engine.state import status_message
from blog_wizard.schemas.generation import (
    EditImageRequest,
    GenerateArticleRequest,
    GenerationStatusResponse,
    ImageInfo,
    SeoMetadata,
    SessionSnapshot,
    VideoInfo,
)
from blog_wizard.services.generation_service import GenerationService, generation_service
from blog_wizard.services.session_store import Session, SessionStore, session_store
from blog_wizard.utils.image import media_filename, inspect_image
from blog_wizard.utils.markup import render_article_html, render_preview_page

router = APIRouter(prefix="/sessions", tags=["Sessions"])

# transport and SDK failures of the generative service
UPSTREAM_ERRORS = (genai_errors.APIError, httpx.HTTPError)


def get_session_store() -> SessionStore:
    return session_store


def get_generation_service() -> GenerationService:
    return generation_service


def get_session(session_id: str, store: SessionStore = Depends(get_session_store)) -> Session:
    try:
        return store.get(session_id)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


def _image_info(session: Session, slot: ImageSlot) -> Optional[ImageInfo]:
    image = session.images.get(slot)
    if image is None:
        return None
    dimensions = inspect_image(image)
    return ImageInfo(
        slot=slot.value,
        mime_type=image.mime_type,
        size_bytes=len(image.data),
        width=dimensions[0] if dimensions else None,
        height=dimensions[1] if dimensions else None,
        download_url=f"/sessions/{session.id}/images/{slot.value}",
    )


def build_snapshot(session: Session) -> SessionSnapshot:
    video = session.video
    return SessionSnapshot(
        session_id=session.id,
        created_at=session.created_at,
        status=session.status,
        status_message=status_message(session.status),
        status_history=session.status_history,
        is_busy=session.is_busy,
        alert=session.alert,
        article=session.article,
        featured_image=_image_info(session, ImageSlot.FEATURED),
        inline_image=_image_info(session, ImageSlot.INLINE),
        video=VideoInfo(
            mime_type=video.mime_type,
            size_bytes=len(video.data),
            url=f"/sessions/{session.id}/video",
        ) if video else None,
    )


def _require_article(session: Session):
    if session.article is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No article has been generated yet.")
    return session.article


@router.post("", summary="Create a session", response_model=SessionSnapshot, status_code=status.HTTP_201_CREATED)
async def create_session(store: SessionStore = Depends(get_session_store)):
    return build_snapshot(store.create())


@router.get("/{session_id}", summary="Session state", response_model=SessionSnapshot)
async def read_session(session: Session = Depends(get_session)):
    return build_snapshot(session)


@router.delete("/{session_id}", summary="Close a session", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(session_id: str, store: SessionStore = Depends(get_session_store)):
    try:
        store.delete(session_id)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------------------------------------------------------------------------
# Article pipeline
# ---------------------------------------------------------------------------

@router.post(
    "/{session_id}/article",
    summary="Generate an article",
    description="Generates the article text and then both images in the background. Poll the session for progress.",
    response_model=GenerationStatusResponse,
    status_code=status.HTTP_202_ACCEPTED,
    responses={409: {"description": "Another operation is in progress"}},
)
async def generate_article(
    request: GenerateArticleRequest,
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
    service: GenerationService = Depends(get_generation_service),
):
    try:
        epoch = service.begin_article(session, request.topic, request.reference_url)
    except SessionBusyError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except InvalidSubmissionError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

    background_tasks.add_task(
        service.background_article,
        session,
        epoch,
        request.topic,
        request.reference_url,
        request.to_options(),
    )

    return GenerationStatusResponse(
        status="accepted",
        message="Article generation started in the background.",
        session_id=session.id,
    )


@router.delete("/{session_id}/article", summary="Discard the article and start over", response_model=SessionSnapshot)
async def discard_article(
    session: Session = Depends(get_session),
    service: GenerationService = Depends(get_generation_service),
):
    service.discard(session)
    return build_snapshot(session)


# ---------------------------------------------------------------------------
# Tabs
# ---------------------------------------------------------------------------

@router.get("/{session_id}/preview", summary="Content tab (HTML preview)", response_class=HTMLResponse)
async def preview_article(session: Session = Depends(get_session)):
    article = _require_article(session)
    return HTMLResponse(render_preview_page(article, session.featured_image, session.inline_image))


@router.get("/{session_id}/html", summary="HTML tab (copy into WordPress)", response_class=PlainTextResponse)
async def export_html(session: Session = Depends(get_session)):
    article = _require_article(session)
    return PlainTextResponse(render_article_html(article, session.featured_image, session.inline_image))


@router.get("/{session_id}/seo", summary="SEO metadata tab", response_model=SeoMetadata)
async def seo_metadata(session: Session = Depends(get_session)):
    article = _require_article(session)
    return SeoMetadata(
        slug=article.slug,
        meta_description=article.meta_description,
        meta_description_length=len(article.meta_description),
        primary_keyword=article.primary_keyword,
        keywords=article.keywords,
        tags=article.tags,
        summary=article.summary,
    )


# ---------------------------------------------------------------------------
# Media tab
# ---------------------------------------------------------------------------

def _binary_response(data: bytes, mime_type: str, filename: str) -> Response:
    return Response(
        content=data,
        media_type=mime_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/{session_id}/images/{slot}", summary="Download an image")
async def download_image(slot: ImageSlot, session: Session = Depends(get_session)):
    image: Optional[GeneratedImage] = session.images.get(slot)
    if image is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"No {slot.value} image available.")
    stem = f"{session.article.slug}-{slot.value}" if session.article else f"{slot.value}-image"
    return _binary_response(image.data, image.mime_type, media_filename(stem, image.mime_type))


@router.post("/{session_id}/images/featured/edit", summary="Edit the featured image", response_model=SessionSnapshot)
async def edit_featured_image(
    request: EditImageRequest,
    session: Session = Depends(get_session),
    service: GenerationService = Depends(get_generation_service),
):
    try:
        await service.edit_featured_image(session, request.instruction)
    except InvalidSubmissionError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    except (SessionBusyError, MissingArtifactError, StaleResultError) as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except GatewayError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    except UPSTREAM_ERRORS as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=session.alert or str(e))
    return build_snapshot(session)


@router.post(
    "/{session_id}/video",
    summary="Animate the featured image",
    description="Starts video rendering in the background. Poll the session until the video is available.",
    response_model=GenerationStatusResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def generate_video(
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
    service: GenerationService = Depends(get_generation_service),
):
    try:
        epoch = service.begin_video(session)
    except VideoKeyRequiredError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except (SessionBusyError, MissingArtifactError) as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    background_tasks.add_task(service.background_video, session, epoch)

    return GenerationStatusResponse(
        status="accepted",
        message="Video rendering started in the background.",
        session_id=session.id,
    )


@router.get("/{session_id}/video", summary="Download the rendered video")
async def download_video(session: Session = Depends(get_session)):
    video = session.video
    if video is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No video available.")
    stem = f"{session.article.slug}-video" if session.article else "generated-video"
    return _binary_response(video.data, video.mime_type, media_filename(stem, video.mime_type))


@router.post("/{session_id}/narration", summary="Narrate the article summary (TTS)")
async def narrate_summary(
    session: Session = Depends(get_session),
    service: GenerationService = Depends(get_generation_service),
):
    try:
        audio = await service.narrate_summary(session)
    except (SessionBusyError, MissingArtifactError, StaleResultError) as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except GatewayError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    except UPSTREAM_ERRORS as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=session.alert or str(e))

    return Response(
        content=audio.data,
        media_type=audio.mime_type,
        headers={"X-Audio-Duration": f"{audio.duration_seconds:.3f}"},
    )
