"""
Validation and reconciliation of model-produced bill analyses.

The model's JSON is untrusted. ``validate_analysis`` builds a typed
``AnalysisResult`` from a ``ParsedAnalysis``, repairing what it can and
recording a warning for anything a person should double-check. Extraction
quality problems never raise: the result is always persisted and flagged.
"""

import logging
import math
import re
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Tuple
from app.schemas.bills import (
    AnalysisResult,
    BillCategory,
    BillError,
    BillMetadata,
    ErrorPriority,
    ErrorType,
    ParsedAnalysis,
    ValidationOutcome,
)

logger = logging.getLogger(__name__)

GENERIC_PROVIDER_NAMES = frozenset({"Hospital", "Clinic", "Medical Center", "Billing Department"})
GENERIC_PROVIDER_CONFIDENCE_CAP = 0.70
HIGH_AMOUNT_THRESHOLD = 100_000
SAVINGS_TOLERANCE = 1.0
MAX_FINDING_SAVINGS = 10_000_000
DEFAULT_CONFIDENCE_SCORE = 0.5

WARNING_DATE_ORDER = "Service date is after bill date - please verify dates"
WARNING_GENERIC_PROVIDER = "Provider name appears generic - may need manual verification"
WARNING_HIGH_AMOUNT = "Amount exceeds $100,000 - flagged for review"

_CURRENCY_SYMBOLS = re.compile(r"[$€£¥₹\s]")
_DATE_FORMATS = ("%Y-%m-%d", "%m/%d/%Y", "%m/%d/%y", "%Y/%m/%d")


def parse_amount(value: Any) -> Optional[float]:
    """
    Parse a money value to float.

    Handles numbers and strings such as '$2,180', '1,234.56' or '-$500'.
    Returns None when the value is not a finite number.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        cleaned = _CURRENCY_SYMBOLS.sub("", value).replace(",", "")
        try:
            number = float(cleaned)
        except ValueError:
            return None
    else:
        return None

    return number if math.isfinite(number) else None


def parse_date(value: Any) -> Optional[date]:
    """Parse YYYY-MM-DD (or an ISO datetime, or MM/DD/YYYY) into a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    if len(text) > 10 and text[4:5] == "-" and text[10] in "T ":
        text = text[:10]

    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def parse_text(value: Any) -> Optional[str]:
    """Stripped string value; numbers are stringified, empty strings become None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if not isinstance(value, str):
        return None
    return value.strip() or None


def parse_category(value: Any) -> Optional[BillCategory]:
    text = parse_text(value)
    if text is None:
        return None
    try:
        return BillCategory(text.lower().replace(" ", "_").replace("-", "_"))
    except ValueError:
        return None


def clamp_confidence(value: float) -> float:
    return max(0.0, min(1.0, value))


# field name -> (coercer, label used in warnings)
METADATA_FIELDS: Dict[str, Tuple[Callable[[Any], Any], str]] = {
    "provider_name": (parse_text, "provider name"),
    "total_amount": (parse_amount, "total amount"),
    "service_date": (parse_date, "service date"),
    "bill_date": (parse_date, "bill date"),
    "invoice_number": (parse_text, "invoice number"),
    "patient_name": (parse_text, "patient name"),
    "insurance_company": (parse_text, "insurance company"),
    "category": (parse_category, "category"),
}


def _build_field(name: str, raw: Any, warnings: List[str]) -> Optional[Dict[str, Any]]:
    if raw is None:
        return None

    coerce, label = METADATA_FIELDS[name]

    if not isinstance(raw, dict):
        logger.warning(f"Metadata field {name} is not an object, treating it as a bare value")
        raw = {"value": raw, "confidence": 0.0}

    confidence = parse_amount(raw.get("confidence"))
    if confidence is None:
        logger.warning(f"Missing or invalid confidence for {name}, using 0.0")
        confidence = 0.0
    elif confidence < 0 or confidence > 1:
        logger.warning(f"Invalid confidence score {confidence} for {name}, clamping to 0-1")
        confidence = clamp_confidence(confidence)

    raw_value = raw.get("value")
    value = None
    if raw_value is not None:
        value = coerce(raw_value)
        if value is None:
            logger.warning(f"Could not interpret {name} value {raw_value!r}")
            warnings.append(f"Could not interpret {label} value - please verify")

    return {"value": value, "confidence": confidence, "source": parse_text(raw.get("source"))}


def validate_metadata(raw_metadata: Dict[str, Any]) -> Tuple[BillMetadata, List[str]]:
    """Build typed metadata and apply the consistency checks."""
    warnings: List[str] = []

    unknown = set(raw_metadata) - set(METADATA_FIELDS)
    if unknown:
        logger.debug(f"Ignoring unknown metadata fields: {sorted(unknown)}")

    fields = {
        name: _build_field(name, raw_metadata.get(name), warnings)
        for name in METADATA_FIELDS
    }
    metadata = BillMetadata(**fields)

    service_date = metadata.service_date.value if metadata.service_date else None
    bill_date = metadata.bill_date.value if metadata.bill_date else None
    if service_date and bill_date and service_date > bill_date:
        warnings.append(WARNING_DATE_ORDER)

    provider = metadata.provider_name
    if provider and provider.value in GENERIC_PROVIDER_NAMES:
        warnings.append(WARNING_GENERIC_PROVIDER)
        provider.confidence = min(provider.confidence, GENERIC_PROVIDER_CONFIDENCE_CAP)

    total_amount = metadata.total_amount.value if metadata.total_amount else None
    if total_amount is not None and total_amount > HIGH_AMOUNT_THRESHOLD:
        warnings.append(WARNING_HIGH_AMOUNT)

    return metadata, warnings


def _build_error(index: int, raw: Any, warnings: List[str]) -> Optional[BillError]:
    if not isinstance(raw, dict):
        warnings.append(f"Dropped malformed error finding #{index}")
        return None

    description = parse_text(raw.get("description"))
    if description is None:
        warnings.append(f"Dropped error finding #{index} without a description")
        return None

    raw_type = parse_text(raw.get("error_type")) or ""
    try:
        error_type = ErrorType(raw_type.lower())
    except ValueError:
        warnings.append(f"Unrecognized error type '{raw_type}' recorded as 'other'")
        error_type = ErrorType.OTHER

    raw_priority = parse_text(raw.get("error_category")) or ""
    try:
        priority = ErrorPriority(raw_priority.lower())
    except ValueError:
        warnings.append(f"Unrecognized priority '{raw_priority}' recorded as 'medium_priority'")
        priority = ErrorPriority.MEDIUM

    savings = parse_amount(raw.get("potential_savings"))
    if savings is None:
        logger.warning(f"Error finding #{index} has no numeric potential_savings, using 0")
        savings = 0.0
    elif savings < 0:
        logger.warning(f"Error finding #{index} has negative potential_savings {savings}, using 0")
        savings = 0.0
    elif savings > MAX_FINDING_SAVINGS:
        warnings.append(f"Ignored implausible savings of {savings:g} on error finding #{index}")
        savings = 0.0

    evidence = raw.get("evidence")

    return BillError(
        error_type=error_type,
        error_category=priority,
        description=description,
        line_item_reference=parse_text(raw.get("line_item_reference")),
        potential_savings=round(savings, 2),
        evidence=evidence if isinstance(evidence, dict) else {},
    )


def check_duplicate_charges(errors: List[BillError]) -> int:
    """
    Log duplicate-charge findings whose savings don't match
    charge_amount x (duplicate_count - 1). Returns the number of mismatches.
    """
    mismatches = 0
    for error in errors:
        if error.error_type != ErrorType.DUPLICATE_CHARGE:
            continue
        count = parse_amount(error.evidence.get("duplicate_count"))
        charge = parse_amount(error.evidence.get("charge_amount"))
        if not count or not charge:
            continue
        expected = charge * (count - 1)
        if abs(expected - error.potential_savings) > SAVINGS_TOLERANCE:
            mismatches += 1
            logger.warning(
                f"Duplicate charge calculation mismatch: expected {expected:.2f}, "
                f"reported {error.potential_savings:.2f} ({error.description})"
            )
    return mismatches


def reconcile_savings(errors: List[BillError], reported_total: Any) -> float:
    """Itemized savings sum; the model's own total is only compared, never used."""
    calculated = round(sum(e.potential_savings for e in errors), 2)
    reported = parse_amount(reported_total)

    if reported is None:
        logger.warning(f"No numeric total_potential_savings reported, using itemized sum {calculated}")
    elif abs(calculated - reported) > SAVINGS_TOLERANCE:
        logger.warning(f"Savings mismatch: calculated {calculated}, reported {reported}")

    return calculated


def validate_confidence_score(raw_score: Any) -> float:
    score = parse_amount(raw_score)
    if score is None or score < 0 or score > 1:
        logger.warning(f"Invalid overall confidence {raw_score!r}, setting to {DEFAULT_CONFIDENCE_SCORE}")
        return DEFAULT_CONFIDENCE_SCORE
    return score


def validate_analysis(parsed: ParsedAnalysis) -> ValidationOutcome:
    """Turn an untrusted ``ParsedAnalysis`` into a validated ``AnalysisResult``."""
    warnings: List[str] = []

    metadata = None
    if parsed.metadata is not None:
        metadata, metadata_warnings = validate_metadata(parsed.metadata)
        warnings.extend(metadata_warnings)

    errors = []
    for index, raw_error in enumerate(parsed.errors, 1):
        error = _build_error(index, raw_error, warnings)
        if error is not None:
            errors.append(error)

    check_duplicate_charges(errors)
    total_savings = reconcile_savings(errors, parsed.total_potential_savings)
    confidence_score = validate_confidence_score(parsed.confidence_score)

    model_warnings = [w for w in (parse_text(w) for w in parsed.extraction_warnings) if w]

    result = AnalysisResult(
        metadata=metadata,
        errors=errors,
        total_potential_savings=total_savings,
        confidence_score=confidence_score,
        extraction_warnings=model_warnings + warnings,
    )

    logger.info(f"Validation complete. {len(warnings)} warnings generated.")
    return ValidationOutcome(result=result, warnings=warnings)
