"""
Configuration management using Pydantic Settings.

Environment variables:
- REMOTE_OCR_URL: Endpoint of the remote ocr-translate function
- REMOTE_OCR_ENABLED: Try the remote function before local recognition
- TESSERACT_CMD: Path to the tesseract binary (optional)
- TESSERACT_LANG: Language hint for local recognition
- TRANSLATION_URL: MyMemory-compatible translation endpoint
- DATABASE_URL: SQLAlchemy database URL
- API_TOKENS: JSON mapping of bearer token -> user id
"""
from typing import Dict, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Remote recognition + translation function
    remote_ocr_url: str = Field(default="http://localhost:8002/ocr-translate")
    remote_ocr_enabled: bool = Field(default=True)
    remote_ocr_timeout: float = Field(default=60.0)

    # Translation
    translation_url: str = Field(default="https://api.mymemory.translated.net/get")
    translation_langpair: str = Field(default="ja|en")
    translation_max_chars: int = Field(default=500)
    translation_timeout: float = Field(default=15.0)

    # Local recognition engine
    tesseract_cmd: Optional[str] = Field(default=None)
    tesseract_lang: str = Field(default="jpn")

    # Cropping / recognition parameters
    ocr_upscale_factor: int = Field(default=2)
    ocr_vertical_ratio: float = Field(default=1.2)
    ocr_min_text_length: int = Field(default=2)
    selection_min_px: float = Field(default=10.0)

    # Database Configuration
    database_url: str = Field(default="sqlite:///manga_ocr.db")

    # API Configuration
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8002)
    api_tokens: Dict[str, str] = Field(default_factory=dict)

    def get_orchestrator_config(self) -> dict:
        """Get recognition orchestrator configuration as dictionary."""
        return {
            'remote_enabled': self.remote_ocr_enabled,
            'lang': self.tesseract_lang,
            'upscale_factor': self.ocr_upscale_factor,
            'vertical_ratio': self.ocr_vertical_ratio,
            'min_text_length': self.ocr_min_text_length,
        }

    def get_geometry_config(self) -> dict:
        """Get selection geometry configuration as dictionary."""
        return {
            'min_size': self.selection_min_px,
        }


# Global settings instance
settings = Settings()
