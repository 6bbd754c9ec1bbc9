"""Persistence of bill reviews, their error findings and extracted receipt metadata."""

import logging
from datetime import datetime, UTC
from typing import Any, Dict, List, Optional
from supabase import Client
from app.exceptions import PersistenceError
from app.schemas.bills import (
    AnalysisResult,
    BillError,
    BillMetadata,
    BillReview,
    ReviewStatus,
)

logger = logging.getLogger(__name__)

BILL_REVIEWS_TABLE = "bill_reviews"
BILL_ERRORS_TABLE = "bill_errors"
RECEIPT_METADATA_TABLE = "receipt_ocr_data"

ERROR_STATUS_IDENTIFIED = "identified"
DEFAULT_METADATA_CONFIDENCE = 0.5


def _rows(response: Any) -> List[Dict[str, Any]]:
    """Rows from a postgrest response; maybe_single() returns None for no match."""
    if response is None or response.data is None:
        return []
    if isinstance(response.data, list):
        return response.data
    return [response.data]


def average_metadata_confidence(metadata: BillMetadata) -> float:
    """Mean confidence of fields that have a value; fields with value None are skipped."""
    confidences = [
        field.confidence
        for field in metadata.present_fields().values()
        if field.value is not None
    ]
    if not confidences:
        return DEFAULT_METADATA_CONFIDENCE
    return sum(confidences) / len(confidences)


def build_receipt_metadata_row(receipt_id: str, result: AnalysisResult) -> Dict[str, Any]:
    """Flatten extracted metadata into a receipt_ocr_data row."""
    metadata = result.metadata or BillMetadata()
    full = metadata.to_json()

    def value_of(name: str) -> Optional[Any]:
        field = full.get(name)
        return field.get("value") if field else None

    return {
        "receipt_id": receipt_id,
        "extracted_vendor": value_of("provider_name"),
        "extracted_amount": value_of("total_amount"),
        "extracted_date": value_of("service_date") or value_of("bill_date"),
        "extracted_category": value_of("category"),
        "extracted_invoice_number": value_of("invoice_number"),
        "extracted_insurance": value_of("insurance_company"),
        "extracted_service_date": value_of("service_date"),
        "extracted_bill_date": value_of("bill_date"),
        "metadata_confidence": average_metadata_confidence(metadata),
        "metadata_full": full,
        "extraction_warnings": result.extraction_warnings,
        "confidence_score": result.confidence_score,
        "processed_at": datetime.now(UTC).isoformat(),
    }


def build_error_rows(review_id: str, errors: List[BillError]) -> List[Dict[str, Any]]:
    return [
        {
            "bill_review_id": review_id,
            "error_type": error.error_type.value,
            "error_category": error.error_category.value,
            "description": error.description,
            "line_item_reference": error.line_item_reference,
            "potential_savings": error.potential_savings,
            "evidence": error.evidence,
            "status": ERROR_STATUS_IDENTIFIED,
        }
        for error in errors
    ]


class BillReviewRepository:
    """
    Idempotent storage of one bill review per invoice.

    ``invoice_id`` is the idempotency key: re-analysis updates the existing
    review and replaces its error findings. The lookup-then-write is not
    atomic, so two concurrent first analyses of one invoice can both insert.
    """

    def __init__(self, client: Client):
        self.client = client

    def find_review_id(self, invoice_id: str) -> Optional[str]:
        response = (
            self.client.table(BILL_REVIEWS_TABLE)
            .select("id")
            .eq("invoice_id", invoice_id)
            .maybe_single()
            .execute()
        )
        rows = _rows(response)
        return rows[0]["id"] if rows else None

    def save_review(self, invoice_id: str, user_id: str, result: AnalysisResult) -> BillReview:
        """Update the invoice's review in place, or insert it if there is none."""
        values = {
            "review_status": ReviewStatus.REVIEWED.value,
            "total_potential_savings": result.total_potential_savings,
            "confidence_score": result.confidence_score,
            "analyzed_at": datetime.now(UTC).isoformat(),
        }

        try:
            # TODO: switch to upsert(on_conflict="invoice_id") once bill_reviews has a unique constraint on invoice_id
            review_id = self.find_review_id(invoice_id)

            if review_id:
                response = (
                    self.client.table(BILL_REVIEWS_TABLE)
                    .update(values)
                    .eq("id", review_id)
                    .execute()
                )
                action = "Updated"
            else:
                response = (
                    self.client.table(BILL_REVIEWS_TABLE)
                    .insert({"user_id": user_id, "invoice_id": invoice_id, **values})
                    .execute()
                )
                action = "Created"
        except Exception as e:
            logger.error(f"Error saving bill review for invoice {invoice_id}: {str(e)}", exc_info=True)
            raise PersistenceError(str(e) or "Failed to save bill review") from e

        rows = _rows(response)
        if not rows:
            logger.error(f"Bill review write for invoice {invoice_id} returned no row")
            raise PersistenceError("Failed to save bill review")

        review = BillReview(**rows[0])
        logger.info(f"{action} bill review {review.id}")
        return review

    def replace_errors(self, review_id: str, errors: List[BillError]) -> int:
        """Delete every stored error of the review, then insert ``errors``."""
        try:
            (
                self.client.table(BILL_ERRORS_TABLE)
                .delete()
                .eq("bill_review_id", review_id)
                .execute()
            )

            if errors:
                self.client.table(BILL_ERRORS_TABLE).insert(build_error_rows(review_id, errors)).execute()
        except Exception as e:
            logger.error(f"Error replacing bill errors for review {review_id}: {str(e)}", exc_info=True)
            raise PersistenceError(str(e) or "Failed to save bill errors") from e

        logger.info(f"Inserted {len(errors)} error findings")
        return len(errors)

    def upsert_receipt_metadata(self, receipt_id: str, result: AnalysisResult) -> bool:
        """Store extracted metadata for the receipt. Failures are logged, never raised."""
        if result.metadata is None:
            logger.info("No metadata extracted, skipping receipt metadata")
            return False

        try:
            row = build_receipt_metadata_row(receipt_id, result)
            self.client.table(RECEIPT_METADATA_TABLE).upsert(row, on_conflict="receipt_id").execute()
        except Exception as e:
            logger.error(f"Error storing metadata (non-fatal): {str(e)}", exc_info=True)
            return False

        logger.info("Metadata stored successfully")
        return True

    def persist_analysis(self, invoice_id: str, receipt_id: str, user_id: str, result: AnalysisResult) -> BillReview:
        """Save the review, replace its errors, then store metadata (best effort)."""
        review = self.save_review(invoice_id, user_id, result)
        self.replace_errors(review.id, result.errors)
        self.upsert_receipt_metadata(receipt_id, result)
        return review
