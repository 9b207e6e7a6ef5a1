import time
import uuid
import asyncio
import logging
from collections import deque
from datetime import datetime, timezone
from typing import Dict, List, Optional, Set

from blog_wizard.core.config import settings
from blog_wizard.core.exceptions import SessionNotFoundError, StaleResultError
from blog_wizard.engine.schemas import Article, GeneratedImage, ImageSlot, VideoResult
from blog_wizard.engine.state import GenerationStatus, is_busy

logger = logging.getLogger(__name__)


class Session:
    """
    Owned, in-memory context of one editing session.

    Every async result is written through a commit_* method together with the
    epoch captured when its operation started; a result whose epoch is no
    longer current (the user discarded or restarted meanwhile) is refused.
    """

    def __init__(self, session_id: str, history_limit: Optional[int] = None):
        self.id = session_id
        self.created_at = datetime.now(timezone.utc)
        self.last_active = time.monotonic()
        self.status = GenerationStatus.IDLE
        self._history = deque([GenerationStatus.IDLE], maxlen=history_limit or settings.STATUS_HISTORY_LIMIT)
        self.alert: Optional[str] = None
        self.epoch = 0

        self.article: Optional[Article] = None
        self.images: Dict[ImageSlot, GeneratedImage] = {}
        self.video: Optional[VideoResult] = None

        self._tasks: Set[asyncio.Task] = set()

    @property
    def featured_image(self) -> Optional[GeneratedImage]:
        return self.images.get(ImageSlot.FEATURED)

    @property
    def inline_image(self) -> Optional[GeneratedImage]:
        return self.images.get(ImageSlot.INLINE)

    @property
    def is_busy(self) -> bool:
        return is_busy(self.status)

    @property
    def status_history(self) -> List[GenerationStatus]:
        """Most recent status transitions, oldest first"""
        return list(self._history)

    def touch(self):
        self.last_active = time.monotonic()

    def is_expired(self, ttl_seconds: float, now: Optional[float] = None) -> bool:
        """Idle for longer than `ttl_seconds`; a busy session never expires"""
        now = time.monotonic() if now is None else now
        return not self.is_busy and now - self.last_active > ttl_seconds

    def is_current(self, epoch: int) -> bool:
        return epoch == self.epoch

    def ensure_current(self, epoch: int):
        if not self.is_current(epoch):
            raise StaleResultError(f"Session {self.id} moved from epoch {epoch} to {self.epoch}.")

    # ------------------------------------------------------------------
    # status
    # ------------------------------------------------------------------

    def set_status(self, status: GenerationStatus, alert: Optional[str] = None):
        self.status = status
        self.alert = alert
        self._history.append(status)
        self.touch()
        logger.debug(f"[Session {self.id}] status -> {status.value}")

    # ------------------------------------------------------------------
    # lifecycle
    # ------------------------------------------------------------------

    def begin_generation(self) -> int:
        """Drop previous results and start a new article generation; returns its epoch"""
        self.epoch += 1
        self.article = None
        self.images = {}
        self.video = None
        self.set_status(GenerationStatus.GENERATING_TEXT)
        return self.epoch

    def reset(self):
        """Discard everything and return to idle, cancelling in-flight work"""
        self.epoch += 1
        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()
        self.article = None
        self.images = {}
        self.video = None
        self.set_status(GenerationStatus.IDLE)

    def track(self, task: asyncio.Task):
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    @property
    def pending_tasks(self) -> int:
        return len(self._tasks)

    # ------------------------------------------------------------------
    # results
    # ------------------------------------------------------------------

    def commit_article(self, epoch: int, article: Article):
        self.ensure_current(epoch)
        self.article = article

    def commit_image(self, epoch: int, slot: ImageSlot, image: GeneratedImage):
        self.ensure_current(epoch)
        self.images[slot] = image

    def commit_video(self, epoch: int, video: VideoResult):
        self.ensure_current(epoch)
        self.video = video


class SessionStore:
    """
    Process-wide registry of live sessions; nothing is persisted.

    Sessions idle for longer than `ttl_seconds` are evicted on the next
    create() or get(), so clients that never send DELETE do not pin their
    media in memory.
    """

    def __init__(self, ttl_seconds: Optional[float] = None):
        self.ttl_seconds = settings.SESSION_TTL_SECONDS if ttl_seconds is None else ttl_seconds
        self._sessions: Dict[str, Session] = {}

    def evict_expired(self, now: Optional[float] = None) -> int:
        now = time.monotonic() if now is None else now
        expired = [s for s in self._sessions.values() if s.is_expired(self.ttl_seconds, now)]
        for session in expired:
            session.reset()
            del self._sessions[session.id]
            logger.info(f"[SessionStore] Evicted idle session {session.id}")
        return len(expired)

    def create(self) -> Session:
        self.evict_expired()
        session = Session(uuid.uuid4().hex)
        self._sessions[session.id] = session
        logger.info(f"[SessionStore] Created session {session.id}")
        return session

    def get(self, session_id: str) -> Session:
        self.evict_expired()
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(f"Session {session_id} not found.")
        session.touch()
        return session

    def delete(self, session_id: str):
        session = self.get(session_id)
        session.reset()
        del self._sessions[session_id]
        logger.info(f"[SessionStore] Deleted session {session_id}")

    def close(self) -> int:
        """Cancel in-flight work of every session (server shutdown); returns the number of cancelled tasks"""
        cancelled = 0
        for session in self._sessions.values():
            cancelled += session.pending_tasks
            session.reset()
        self._sessions.clear()
        return cancelled

    def __len__(self):
        return len(self._sessions)


session_store = SessionStore()
