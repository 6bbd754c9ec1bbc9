from contextlib import asynccontextmanager
import logging
from typing import (
    Any,
    Dict,
)
from fastapi import (
    FastAPI,
    Request,
)
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from app.config.logging_config import configure_logging
from app.config.settings import get_settings
from app.exceptions import BillAnalysisError
from app.api.v1.bill_reviews import error_response, router as bill_reviews_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan events."""
    configure_logging()
    settings = get_settings()
    logger.info(f"Bill review service starting (model: {settings.ai_model}, origin: {settings.allowed_origin})")
    yield
    logger.info("Bill review service stopped")

app = FastAPI(
    description="Medical Bill Review Service",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[get_settings().allowed_origin],
    allow_credentials=True,
    allow_methods=["POST", "OPTIONS"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)

# Include API routers
app.include_router(bill_reviews_router, prefix="/api/v1/bills")


@app.exception_handler(BillAnalysisError)
async def bill_analysis_error_handler(request: Request, exc: BillAnalysisError) -> JSONResponse:
    """Errors raised outside a route body (e.g. while building dependencies)."""
    logger.error(f"Bill analysis error: {exc.message}")
    return error_response(exc.message)


@app.get("/")
async def root(request: Request):
    """Root endpoint returning basic API information."""
    return {"name": "Medical Bill Review Service", "version": "0.1.0", "status": "healthy"}


@app.get("/health")
async def health_check(request: Request) -> Dict[str, Any]:
    """Health check endpoint returning basic API information."""
    return {"status": "healthy"}
