import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI

from blog_wizard.services.session_store import session_store

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(_app: FastAPI):
    """On shutdown, cancel whatever generation is still in flight."""
    yield

    sessions = len(session_store)
    cancelled = session_store.close()
    logger.info(f"Closed {sessions} in-memory session(s), cancelled {cancelled} running task(s).")
