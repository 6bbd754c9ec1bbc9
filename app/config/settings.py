"""Application settings loaded from environment variables."""

import os
from functools import lru_cache
from typing import Optional
from pydantic import BaseModel, Field
from dotenv import load_dotenv

load_dotenv()

DEFAULT_AI_GATEWAY_URL = "https://ai.gateway.lovable.dev/v1/chat/completions"
DEFAULT_AI_MODEL = "google/gemini-2.5-pro"


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    value = value.strip()
    return value or default


def _env_bool(name: str, default: bool) -> bool:
    value = _env(name)
    if value is None:
        return default
    return value.lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    """Runtime configuration for the bill review service."""

    supabase_url: Optional[str] = Field(None, description="Supabase project URL")
    supabase_key: Optional[str] = Field(None, description="Supabase service-role key")
    ai_gateway_api_key: Optional[str] = Field(None, description="API key for the AI gateway")
    ai_gateway_url: str = Field(DEFAULT_AI_GATEWAY_URL, description="OpenAI-compatible chat completions URL")
    ai_model: str = Field(DEFAULT_AI_MODEL, description="Vision model used for bill analysis")
    ai_timeout_seconds: float = Field(120.0, gt=0, description="Timeout for the AI gateway call")
    allowed_origin: str = Field("https://wellth.ai", description="Only origin allowed by CORS")
    receipts_bucket: str = Field("receipts", description="Storage bucket holding uploaded receipts")
    provider_sync_enabled: bool = Field(True, description="Invoke sync-provider-data after analysis")
    pdf_render_zoom: float = Field(2.5, gt=0, description="Zoom used when rasterizing PDF pages")
    log_level: str = Field("INFO", description="Root logging level")


@lru_cache
def get_settings() -> Settings:
    """Build settings from the environment (cached)."""
    return Settings(
        supabase_url=_env("SUPABASE_URL"),
        supabase_key=_env("SUPABASE_KEY"),
        ai_gateway_api_key=_env("AI_GATEWAY_API_KEY"),
        ai_gateway_url=_env("AI_GATEWAY_URL", DEFAULT_AI_GATEWAY_URL),
        ai_model=_env("AI_MODEL", DEFAULT_AI_MODEL),
        ai_timeout_seconds=float(_env("AI_TIMEOUT_SECONDS", "120")),
        allowed_origin=_env("ALLOWED_ORIGIN", "https://wellth.ai"),
        receipts_bucket=_env("RECEIPTS_BUCKET", "receipts"),
        provider_sync_enabled=_env_bool("PROVIDER_SYNC_ENABLED", True),
        pdf_render_zoom=float(_env("PDF_RENDER_ZOOM", "2.5")),
        log_level=_env("LOG_LEVEL", "INFO").upper(),
    )
