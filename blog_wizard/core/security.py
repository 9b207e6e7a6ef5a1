import secrets
from fastapi import HTTPException, Security
from fastapi.security.api_key import APIKeyHeader
from starlette import status
from blog_wizard.core.config import settings

API_KEY_NAME = "X-API-KEY"
api_key_header = APIKeyHeader(name=API_KEY_NAME, auto_error=False)


async def verify_api_key(header_value: str = Security(api_key_header)):
    """
    Validate the service API key sent by the client.

    Args:
        header_value: value of the X-API-KEY header

    Returns:
        str: the validated key

    Raises:
        HTTPException: missing or wrong key
    """
    if header_value is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Missing X-API-KEY header."
        )
    if not secrets.compare_digest(header_value, settings.API_KEY):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid API key."
        )
    return header_value
