"""
Reader API for the region translation pipeline.

Provides endpoints for:
- Server-side recognition + translation of an already-cropped image
- Translation history (per page / chapter, visibility, deletion)
- Word vault
"""
import logging
from typing import List, Optional

from fastapi import Depends, FastAPI, Query, Request, status
from fastapi.responses import JSONResponse, Response

from api.dependencies import get_gateway, get_caller, get_server_ocr_service
from api.schemas import (
    HistoryCreateRequest,
    HistoryEntryResponse,
    OcrTranslateRequest,
    OcrTranslateResponse,
    RegionSchema,
    VaultCreateRequest,
    VaultEntryResponse,
    VisibilityRequest
)
from core.errors import (
    EntryNotFoundError,
    NotAuthenticatedError,
    NoTextRecognizedError,
    PersistenceError,
    RecognitionEngineError,
    ValidationError
)
from core.models import Caller, NormalizedRegion, OverlayEntry, PageRef, RecognitionResult, VaultEntry
from data.database import init_database
from services.ocr_service import OCRService
from services.persistence import SQLPersistenceGateway
from utils.image_utils import decode_data_url

logger = logging.getLogger(__name__)

FULL_IMAGE = NormalizedRegion(x=0.0, y=0.0, w=1.0, h=1.0)


# Create FastAPI app
reader_app = FastAPI(
    title="Manga Region Translator API",
    description="Region OCR + translation with per-user history and word vault",
    version="1.0.0"
)


@reader_app.on_event("startup")
async def startup_event():
    """Initialize database tables on startup."""
    init_database()
    logger.info("Reader API initialized")


# ── Error mapping ────────────────────────────────────────────

@reader_app.exception_handler(NotAuthenticatedError)
async def not_authenticated_handler(request: Request, exc: NotAuthenticatedError):
    return JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content={"detail": str(exc)})


@reader_app.exception_handler(EntryNotFoundError)
async def not_found_handler(request: Request, exc: EntryNotFoundError):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


@reader_app.exception_handler(ValidationError)
async def validation_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content={"detail": str(exc)})


@reader_app.exception_handler(PersistenceError)
async def persistence_handler(request: Request, exc: PersistenceError):
    return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content={"detail": str(exc)})


def _history_response(entry: OverlayEntry) -> HistoryEntryResponse:
    return HistoryEntryResponse(
        id=entry.history_id,
        manga_id=entry.page_ref.manga_id,
        chapter_id=entry.page_ref.chapter_id,
        page_index=entry.page_ref.page_index,
        region=RegionSchema(**entry.region.to_dict()),
        ocr_text=entry.result.text,
        translated=entry.result.translated,
        romaji=entry.result.phonetic,
        visible=entry.visible,
        created_at=entry.created_at.isoformat() if entry.created_at else None
    )


def _vault_response(entry: VaultEntry) -> VaultEntryResponse:
    return VaultEntryResponse(
        id=entry.id,
        original=entry.original,
        translated=entry.translated,
        romaji=entry.phonetic,
        source_page_id=entry.source_page_id,
        created_at=entry.created_at.isoformat() if entry.created_at else None
    )


# ── Recognition ──────────────────────────────────────────────

@reader_app.post("/ocr-translate", response_model=OcrTranslateResponse)
async def ocr_translate(
    request: OcrTranslateRequest,
    caller: Caller = Depends(get_caller),
    ocr_service: OCRService = Depends(get_server_ocr_service)
):
    """
    Recognize and translate an already-cropped image.

    Args:
        request: Body with ``imageDataUrl``
        caller: Authenticated caller
        ocr_service: Local-only recognition service

    Returns:
        ``{ocrText, translated, romaji}``; empty ``ocrText`` when nothing was read
    """
    try:
        image = decode_data_url(request.image_data_url)
    except ValueError as e:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(e)})

    try:
        outcome = await ocr_service.recognize_region(image, FULL_IMAGE, prefer_remote=False)
    except NoTextRecognizedError:
        return OcrTranslateResponse(ocr_text="", translated="", romaji=None)
    except RecognitionEngineError as e:
        logger.error("ocr-translate failed for user %s: %s", caller.user_id, e)
        return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content={"detail": str(e)})

    result = outcome.result
    return OcrTranslateResponse(
        ocr_text=result.text,
        translated=result.translated or "",
        romaji=result.phonetic
    )


# ── History ──────────────────────────────────────────────────

@reader_app.get("/history", response_model=List[HistoryEntryResponse])
async def list_history(
    chapter_id: str = Query(..., min_length=1),
    page_index: Optional[int] = Query(None, ge=0, description="Restrict to one page"),
    gateway: SQLPersistenceGateway = Depends(get_gateway)
):
    """List the caller's history for a chapter (or one page), newest first."""
    if page_index is None:
        entries = gateway.list_history_for_chapter(chapter_id)
    else:
        entries = gateway.list_history_for_page(
            PageRef(manga_id="", chapter_id=chapter_id, page_index=page_index)
        )
    return [_history_response(entry) for entry in entries]


@reader_app.post("/history", response_model=HistoryEntryResponse, status_code=status.HTTP_201_CREATED)
async def create_history(
    request: HistoryCreateRequest,
    gateway: SQLPersistenceGateway = Depends(get_gateway)
):
    """Store a recognized region as a history entry."""
    try:
        region = NormalizedRegion(**request.region.model_dump())
    except ValueError as e:
        raise ValidationError(str(e)) from e

    page_ref = PageRef(
        manga_id=request.manga_id,
        chapter_id=request.chapter_id,
        page_index=request.page_index
    )
    result = RecognitionResult(
        text=request.ocr_text,
        translated=request.translated,
        phonetic=request.romaji
    )
    history_id = gateway.create_history_entry(region, page_ref, result)

    for entry in gateway.list_history_for_page(page_ref):
        if entry.history_id == history_id:
            return _history_response(entry)
    raise EntryNotFoundError('history', history_id)


@reader_app.patch("/history/{history_id}/visibility")
async def set_history_visibility(
    history_id: str,
    request: VisibilityRequest,
    gateway: SQLPersistenceGateway = Depends(get_gateway)
):
    """Persist the show/hide flag of a history entry."""
    gateway.set_history_visibility(history_id, request.visible)
    return {"id": history_id, "visible": request.visible}


@reader_app.delete("/history/{history_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_history(
    history_id: str,
    gateway: SQLPersistenceGateway = Depends(get_gateway)
):
    gateway.delete_history_entry(history_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ── Word vault ───────────────────────────────────────────────

@reader_app.get("/vault", response_model=List[VaultEntryResponse])
async def list_vault(gateway: SQLPersistenceGateway = Depends(get_gateway)):
    """List the caller's vault, newest first."""
    return [_vault_response(entry) for entry in gateway.list_vault()]


@reader_app.post("/vault", response_model=VaultEntryResponse, status_code=status.HTTP_201_CREATED)
async def create_vault_entry(
    request: VaultCreateRequest,
    gateway: SQLPersistenceGateway = Depends(get_gateway)
):
    """Save a recognized word or phrase to the vault."""
    entry_id = gateway.create_vault_entry(
        RecognitionResult(
            text=request.original,
            translated=request.translated,
            phonetic=request.romaji
        ),
        source_page_id=request.source_page_id
    )
    for entry in gateway.list_vault():
        if entry.id == entry_id:
            return _vault_response(entry)
    raise EntryNotFoundError('vault', entry_id)


@reader_app.delete("/vault/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_vault_entry(
    entry_id: str,
    gateway: SQLPersistenceGateway = Depends(get_gateway)
):
    gateway.delete_vault_entry(entry_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@reader_app.get("/")
async def root():
    """API root endpoint."""
    return {
        "name": "Manga Region Translator API",
        "version": "1.0.0",
        "endpoints": {
            "ocr_translate": "POST /ocr-translate",
            "list_history": "GET /history?chapter_id=&page_index=",
            "create_history": "POST /history",
            "set_visibility": "PATCH /history/{history_id}/visibility",
            "delete_history": "DELETE /history/{history_id}",
            "list_vault": "GET /vault",
            "create_vault": "POST /vault",
            "delete_vault": "DELETE /vault/{entry_id}"
        }
    }


# Export app for uvicorn
app = reader_app


if __name__ == '__main__':
    import uvicorn

    from config.settings import settings

    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
