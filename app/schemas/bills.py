"""Bill schemas for medical bill review and error detection."""

from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, TypeVar
from pydantic import BaseModel, Field

T = TypeVar("T")


class BillCategory(str, Enum):
    """HSA-eligible expense category of a bill."""
    MEDICAL = "medical"
    DENTAL = "dental"
    VISION = "vision"
    PHARMACY = "pharmacy"
    MENTAL_HEALTH = "mental_health"
    OTHER_HSA_ELIGIBLE = "other_hsa_eligible"


class ErrorType(str, Enum):
    """Billing error categories the analysis can report."""
    DUPLICATE_CHARGE = "duplicate_charge"
    UPCODING = "upcoding"
    UNBUNDLING = "unbundling"
    INCORRECT_QUANTITY = "incorrect_quantity"
    BALANCE_BILLING = "balance_billing"
    PRICING_DISCREPANCY = "pricing_discrepancy"
    CODING_ERROR = "coding_error"
    EXCESSIVE_MARKUP = "excessive_markup"
    QUESTIONABLE_FACILITY_FEE = "questionable_facility_fee"
    TIMELINE_INCONSISTENCY = "timeline_inconsistency"
    DIAGNOSIS_MISMATCH = "diagnosis_mismatch"
    PRICING_TRANSPARENCY_VIOLATION = "pricing_transparency_violation"
    NO_SURPRISES_ACT_VIOLATION = "no_surprises_act_violation"
    OTHER = "other"


class ErrorPriority(str, Enum):
    """Priority of a billing error."""
    HIGH = "high_priority"
    MEDIUM = "medium_priority"
    LOW = "low_priority"


class ReviewStatus(str, Enum):
    """Lifecycle status of a bill review."""
    PENDING = "pending"
    REVIEWED = "reviewed"


class ExtractedField(BaseModel, Generic[T]):
    """One metadata value pulled from a bill. ``value=None`` means not found."""

    value: Optional[T] = Field(None, description="Extracted value or None if not found")
    confidence: float = Field(0.0, ge=0.0, le=1.0, description="Model confidence, 0.0-1.0")
    source: Optional[str] = Field(None, description="Where on the bill the value was found")


class BillMetadata(BaseModel):
    """Structured metadata extracted from a bill."""

    provider_name: Optional[ExtractedField[str]] = None
    total_amount: Optional[ExtractedField[float]] = Field(None, description="Final balance due, not a subtotal")
    service_date: Optional[ExtractedField[date]] = None
    bill_date: Optional[ExtractedField[date]] = None
    invoice_number: Optional[ExtractedField[str]] = None
    patient_name: Optional[ExtractedField[str]] = None
    insurance_company: Optional[ExtractedField[str]] = None
    category: Optional[ExtractedField[BillCategory]] = None

    def present_fields(self) -> Dict[str, ExtractedField]:
        """Return the fields the model reported, keyed by name."""
        return {name: field for name, field in self if field is not None}

    def to_json(self) -> Dict[str, Any]:
        """JSON-safe dict of reported fields, keeping ``value: null`` entries."""
        return {name: field.model_dump(mode="json") for name, field in self.present_fields().items()}


class BillError(BaseModel):
    """One detected billing issue."""

    error_type: ErrorType
    error_category: ErrorPriority
    description: str = Field(..., min_length=1, description="Patient-friendly explanation")
    line_item_reference: Optional[str] = Field(None, description="Bill lines the error refers to")
    potential_savings: float = Field(0.0, ge=0.0, description="Estimated savings in dollars")
    evidence: Dict[str, Any] = Field(default_factory=dict, description="Supporting data from the bill")


class ParsedAnalysis(BaseModel):
    """Untrusted analysis exactly as the model returned it.

    Values keep whatever type the JSON had; only ``validate_analysis`` turns
    this into an ``AnalysisResult``.
    """

    metadata: Optional[Dict[str, Any]] = None
    errors: List[Any] = Field(default_factory=list)
    total_potential_savings: Any = None
    confidence_score: Any = None
    extraction_warnings: List[Any] = Field(default_factory=list)


class AnalysisResult(BaseModel):
    """Validated analysis of one bill."""

    metadata: Optional[BillMetadata] = None
    errors: List[BillError] = Field(default_factory=list)
    total_potential_savings: float = Field(0.0, ge=0.0)
    confidence_score: float = Field(..., ge=0.0, le=1.0)
    extraction_warnings: List[str] = Field(default_factory=list)


class ValidationOutcome(BaseModel):
    """Result of validation plus the warnings validation itself produced."""

    result: AnalysisResult
    warnings: List[str] = Field(default_factory=list)


class BillReview(BaseModel):
    """A persisted bill review row (one per invoice)."""

    id: str
    invoice_id: str
    user_id: str
    review_status: ReviewStatus = ReviewStatus.PENDING
    total_potential_savings: float = 0.0
    confidence_score: Optional[float] = None
    analyzed_at: Optional[datetime] = None


class AnalyzeBillRequest(BaseModel):
    """Body of an analyze-medical-bill request."""

    invoice_id: str = Field(..., alias="invoiceId", min_length=1)
    receipt_id: str = Field(..., alias="receiptId", min_length=1)

    class Config:
        """Pydantic config."""
        populate_by_name = True


class AnalyzeBillResponse(BaseModel):
    """Successful analysis response."""

    success: bool = True
    bill_review_id: str = Field(..., alias="billReviewId")
    metadata: Optional[Dict[str, Any]] = None
    total_potential_savings: float = Field(..., alias="totalPotentialSavings")
    errors_found: int = Field(..., alias="errorsFound")
    confidence_score: float = Field(..., alias="confidenceScore")
    warnings: List[str] = Field(default_factory=list)

    class Config:
        """Pydantic config."""
        populate_by_name = True


class ErrorResponse(BaseModel):
    """Failed analysis response."""

    success: bool = False
    error: str
