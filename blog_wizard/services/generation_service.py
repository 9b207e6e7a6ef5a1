import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from blog_wizard.core.exceptions import (
    InvalidSubmissionError,
    MissingArtifactError,
    SessionBusyError,
    StaleResultError,
)
from blog_wizard.engine.gateway import ModelGateway, model_gateway
from blog_wizard.engine.graph import create_article_graph
from blog_wizard.engine.schemas import GeneratedImage, GenerationOptions, ImageSlot, SpeechAudio, VideoResult
from blog_wizard.engine.state import GenerationStatus
from blog_wizard.services.session_store import Session

logger = logging.getLogger(__name__)

T = TypeVar("T")

ARTICLE_ALERT = "An error occurred while generating the article. Please try again."
EDIT_ALERT = "Failed to edit the image."
VIDEO_ALERT = "Failed to generate the video. Check that a paid API key is configured for video."
AUDIO_ALERT = "Failed to generate the narration audio."


class GenerationService:
    def __init__(self, gateway: Optional[ModelGateway] = None):
        self.gateway = gateway or model_gateway
        self.graph = create_article_graph()

    @staticmethod
    def _ensure_not_busy(session: Session):
        if session.is_busy:
            raise SessionBusyError(
                f"Session {session.id} is busy ({session.status.value}). Wait for the current operation to finish."
            )

    # ------------------------------------------------------------------
    # main pipeline
    # ------------------------------------------------------------------

    def begin_article(self, session: Session, topic: str, reference_url: Optional[str] = None) -> int:
        """Validate a submission and move the session to GENERATING_TEXT; returns the new epoch"""
        if not (topic or "").strip() and not (reference_url or "").strip():
            raise InvalidSubmissionError("A topic or a reference URL is required.")
        self._ensure_not_busy(session)
        return session.begin_generation()

    async def run_article_pipeline(
        self,
        session: Session,
        epoch: int,
        topic: str,
        reference_url: Optional[str] = None,
        options: Optional[GenerationOptions] = None,
    ) -> bool:
        """
        Text generation followed by parallel image generation.

        Only the text stage is fatal: it leaves the session in ERROR with no
        article. Image failures are logged and the session still reaches
        COMPLETE. Returns True when the pipeline completed for this epoch.
        """
        logger.info(f"[Workflow] Starting article pipeline for session {session.id} (epoch {epoch})")

        initial_state = {
            "session": session,
            "gateway": self.gateway,
            "epoch": epoch,
            "topic": (topic or "").strip(),
            "reference_url": (reference_url or "").strip() or None,
            "options": options or GenerationOptions(),
            "article": None,
            "failed_images": [],
        }

        try:
            final_state = await self.graph.ainvoke(initial_state)
        except asyncio.CancelledError:
            if session.is_current(epoch):
                session.article = None
                session.set_status(GenerationStatus.IDLE)
            raise
        except StaleResultError:
            logger.warning(f"[Workflow] Session {session.id} was restarted; dropping stale article")
            return False
        except Exception as e:
            logger.error(f"[Workflow] Article pipeline failed for session {session.id}: {e}", exc_info=True)
            if session.is_current(epoch):
                session.article = None
                session.set_status(GenerationStatus.ERROR, alert=ARTICLE_ALERT)
            return False

        if not session.is_current(epoch):
            logger.warning(f"[Workflow] Session {session.id} was restarted; not marking complete")
            return False

        session.set_status(GenerationStatus.COMPLETE)
        logger.info(
            f"[Workflow] Finished for session {session.id} "
            f"(failed images: {final_state.get('failed_images') or 'none'})"
        )
        return True

    async def generate_article(
        self,
        session: Session,
        topic: str,
        reference_url: Optional[str] = None,
        options: Optional[GenerationOptions] = None,
    ) -> bool:
        epoch = self.begin_article(session, topic, reference_url)
        return await self.run_article_pipeline(session, epoch, topic, reference_url, options)

    def discard(self, session: Session):
        """User starts over: cancel in-flight work and return to idle"""
        session.reset()
        logger.info(f"[Workflow] Session {session.id} discarded")

    # ------------------------------------------------------------------
    # secondary actions
    # ------------------------------------------------------------------

    def _begin_secondary(self, session: Session, status: GenerationStatus) -> int:
        self._ensure_not_busy(session)
        session.set_status(status)
        return session.epoch

    async def _finish_secondary(
        self,
        session: Session,
        epoch: int,
        status: GenerationStatus,
        alert: str,
        call: Callable[[], Awaitable[T]],
        apply: Optional[Callable[[int, T], None]] = None,
    ) -> T:
        """One gateway call -> apply result -> IDLE; ERROR and re-raise on failure"""
        try:
            result = await call()
        except asyncio.CancelledError:
            if session.is_current(epoch):
                session.set_status(GenerationStatus.IDLE)
            raise
        except Exception as e:
            logger.error(f"[Workflow] {status.value} failed for session {session.id}: {e}")
            if session.is_current(epoch):
                session.set_status(GenerationStatus.ERROR, alert=alert)
            raise

        if not session.is_current(epoch):
            raise StaleResultError(f"Session {session.id} was discarded during {status.value}.")

        if apply is not None:
            apply(epoch, result)
        session.set_status(GenerationStatus.IDLE)
        logger.info(f"[Workflow] {status.value} finished for session {session.id}")
        return result

    async def edit_featured_image(self, session: Session, instruction: str) -> GeneratedImage:
        """Replace the featured image in place with an edited version"""
        if not instruction or not instruction.strip():
            raise InvalidSubmissionError("An edit instruction is required.")
        image = session.featured_image
        if image is None:
            raise MissingArtifactError("No featured image available for editing.")

        epoch = self._begin_secondary(session, GenerationStatus.EDITING_IMAGE)
        return await self._finish_secondary(
            session,
            epoch,
            GenerationStatus.EDITING_IMAGE,
            EDIT_ALERT,
            lambda: self.gateway.edit_image(image, instruction),
            lambda current, edited: session.commit_image(current, ImageSlot.FEATURED, edited),
        )

    def begin_video(self, session: Session) -> int:
        """Check preconditions and the video key gate, then move to GENERATING_VIDEO"""
        if session.featured_image is None:
            raise MissingArtifactError("No featured image available to animate.")
        self._ensure_not_busy(session)
        # a closed key gate refuses the action without touching the status
        self.gateway.check_video_access()
        return self._begin_secondary(session, GenerationStatus.GENERATING_VIDEO)

    async def run_video(self, session: Session, epoch: int) -> VideoResult:
        image = session.featured_image
        if image is None or not session.is_current(epoch):
            raise StaleResultError(f"Session {session.id} was discarded before the video started.")

        return await self._finish_secondary(
            session,
            epoch,
            GenerationStatus.GENERATING_VIDEO,
            VIDEO_ALERT,
            lambda: self.gateway.generate_video(image),
            session.commit_video,
        )

    async def generate_video(self, session: Session) -> VideoResult:
        """Animate the current featured image; the poll may take minutes"""
        epoch = self.begin_video(session)
        return await self.run_video(session, epoch)

    async def narrate_summary(self, session: Session) -> SpeechAudio:
        article = session.article
        if article is None:
            raise MissingArtifactError("No article available to narrate.")

        epoch = self._begin_secondary(session, GenerationStatus.GENERATING_AUDIO)
        return await self._finish_secondary(
            session,
            epoch,
            GenerationStatus.GENERATING_AUDIO,
            AUDIO_ALERT,
            lambda: self.gateway.generate_speech(article.summary),
        )

    # ------------------------------------------------------------------
    # background runners
    # ------------------------------------------------------------------

    async def run_tracked(self, session: Session, coro: Awaitable, label: str):
        """
        Run `coro` as a task that discarding the session cancels.

        Errors are already reflected in the session status and alert, so
        they are logged here rather than raised into the background runner.
        """
        task = asyncio.ensure_future(coro)
        session.track(task)
        try:
            await asyncio.wait({task})
        except asyncio.CancelledError:
            task.cancel()
            raise

        if task.cancelled():
            logger.info(f"[Workflow] {label} cancelled for session {session.id}")
            return None
        error = task.exception()
        if error is not None:
            logger.warning(f"[Workflow] {label} ended with error for session {session.id}: {error}")
            return None
        return task.result()

    async def background_article(self, session: Session, epoch: int, topic: str,
                                 reference_url: Optional[str] = None,
                                 options: Optional[GenerationOptions] = None):
        return await self.run_tracked(
            session,
            self.run_article_pipeline(session, epoch, topic, reference_url, options),
            "Article pipeline",
        )

    async def background_video(self, session: Session, epoch: int):
        return await self.run_tracked(session, self.run_video(session, epoch), "Video generation")


generation_service = GenerationService()
