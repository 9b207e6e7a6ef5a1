import logging
from fastapi import FastAPI, Security

from blog_wizard.api import health, sessions
from blog_wizard.core.config import settings
from blog_wizard.core.lifespan import lifespan
from blog_wizard.core.logging import setup_logging
from blog_wizard.core.security import verify_api_key

setup_logging()

logger = logging.getLogger(__name__)

app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)
app.include_router(health.router)
app.include_router(sessions.router, dependencies=[Security(verify_api_key)])
