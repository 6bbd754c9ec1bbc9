"""This file contains the schemas for the application."""
from app.schemas.bills import (
    AnalysisResult,
    AnalyzeBillRequest,
    AnalyzeBillResponse,
    BillCategory,
    BillError,
    BillMetadata,
    BillReview,
    ErrorPriority,
    ErrorResponse,
    ErrorType,
    ExtractedField,
    ParsedAnalysis,
    ReviewStatus,
    ValidationOutcome,
)

__all__ = [
    "AnalysisResult",
    "AnalyzeBillRequest",
    "AnalyzeBillResponse",
    "BillCategory",
    "BillError",
    "BillMetadata",
    "BillReview",
    "ErrorPriority",
    "ErrorResponse",
    "ErrorType",
    "ExtractedField",
    "ParsedAnalysis",
    "ReviewStatus",
    "ValidationOutcome",
]
