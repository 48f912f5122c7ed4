"""
API Dependencies - Dependency injection for FastAPI.

Provides reusable dependencies for the caller, database-backed gateway and
the server-side recognition service.
"""
from typing import AsyncGenerator, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from config.settings import settings
from core.models import Caller
from data.database import get_db
from services.ocr_engine import tesseract_factory
from services.ocr_service import OCRService
from services.persistence import SQLPersistenceGateway
from services.translation_service import TranslationService

bearer_scheme = HTTPBearer(auto_error=False)


def get_caller(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> Caller:
    """
    Dependency resolving the bearer token to a caller.

    Raises:
        HTTPException: 401 when the token is missing or unknown
    """
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated.",
            headers={"WWW-Authenticate": "Bearer"}
        )

    user_id = settings.api_tokens.get(credentials.credentials)
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated.",
            headers={"WWW-Authenticate": "Bearer"}
        )

    return Caller(user_id=user_id, access_token=credentials.credentials)


def get_gateway(
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller)
) -> SQLPersistenceGateway:
    """
    Dependency for the persistence gateway of the current caller.

    Returns:
        SQLPersistenceGateway bound to the request's session
    """
    return SQLPersistenceGateway(db, caller)


async def get_translation_service() -> AsyncGenerator[TranslationService, None]:
    """Dependency for the translation service; closes its HTTP client afterwards."""
    translator = TranslationService(
        url=settings.translation_url,
        langpair=settings.translation_langpair,
        max_chars=settings.translation_max_chars,
        timeout=settings.translation_timeout
    )
    try:
        yield translator
    finally:
        await translator.close()


def get_server_ocr_service(
    translator: TranslationService = Depends(get_translation_service)
) -> OCRService:
    """
    Dependency for the server side of the ocr-translate call.

    Images arriving here are already cropped and upscaled by the client, so
    the service runs local recognition only and does not upscale again.
    """
    return OCRService(
        engine_factory=tesseract_factory(settings.tesseract_cmd),
        translator=translator,
        remote_client=None,
        remote_enabled=False,
        lang=settings.tesseract_lang,
        upscale_factor=1,
        vertical_ratio=settings.ocr_vertical_ratio,
        min_text_length=settings.ocr_min_text_length
    )
