"""
Pydantic schemas for API request/response validation.
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class RegionSchema(BaseModel):
    """Normalized region, all values fractions of the natural image size."""
    x: float = Field(ge=0, le=1)
    y: float = Field(ge=0, le=1)
    w: float = Field(gt=0, le=1)
    h: float = Field(gt=0, le=1)


class OcrTranslateRequest(BaseModel):
    """Body of the ocr-translate call."""
    model_config = ConfigDict(populate_by_name=True)

    image_data_url: str = Field(alias="imageDataUrl")


class OcrTranslateResponse(BaseModel):
    """Response of the ocr-translate call (camelCase on the wire)."""
    model_config = ConfigDict(populate_by_name=True)

    ocr_text: str = Field(default="", alias="ocrText")
    translated: str = ""
    romaji: Optional[str] = None


class HistoryCreateRequest(BaseModel):
    """Request body for storing a history entry."""
    manga_id: str = Field(min_length=1)
    chapter_id: str = Field(min_length=1)
    page_index: int = Field(ge=0)
    region: RegionSchema
    ocr_text: str = Field(min_length=1)
    translated: str = ""
    romaji: Optional[str] = None


class VisibilityRequest(BaseModel):
    visible: bool


class HistoryEntryResponse(BaseModel):
    """Response for a history entry."""
    id: str
    manga_id: str
    chapter_id: str
    page_index: int
    region: RegionSchema
    ocr_text: str
    translated: Optional[str]
    romaji: Optional[str]
    visible: bool
    created_at: Optional[str] = None


class VaultCreateRequest(BaseModel):
    """Request body for saving a word to the vault."""
    original: str = Field(min_length=1)
    translated: Optional[str] = None
    romaji: Optional[str] = None
    source_page_id: Optional[str] = None


class VaultEntryResponse(BaseModel):
    """Response for a vault entry."""
    id: str
    original: str
    translated: Optional[str]
    romaji: Optional[str]
    source_page_id: Optional[str]
    created_at: Optional[str] = None
