from fastapi import APIRouter, HTTPException, status

from blog_wizard.core.config import get_settings

router = APIRouter(tags=["System"])

@router.get("/health")
async def liveness_check():
    """Liveness: the server process is up."""
    return {"status": "UP"}


@router.get("/health/ready")
async def readiness_check():
    """Readiness: the Gemini credential needed by every generation call is configured."""
    current = get_settings()
    if not current.GOOGLE_API_KEY:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="GOOGLE_API_KEY is not configured."
        )

    return {
        "status": "READY",
        "video_key_configured": bool(current.GOOGLE_VIDEO_API_KEY),
    }
