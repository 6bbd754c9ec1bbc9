"""Medical bill analysis pipeline: receipt -> AI extraction -> validation -> persistence."""

import logging
import uuid
from supabase import Client
from app.config.settings import get_settings
from app.schemas.bills import AnalyzeBillResponse
from app.services.ai_gateway_client import request_bill_analysis
from app.services.bill_validator import validate_analysis
from app.services.prompts import get_bill_analysis_prompt
from app.services.provider_sync import notify_provider_sync
from app.services.receipt_service import download_receipt, get_receipt_file
from app.services.response_parser import parse_analysis_response
from app.services.review_repository import BillReviewRepository
from app.utils.pdf_service import prepare_document_images

logger = logging.getLogger(__name__)


async def analyze_medical_bill(
    client: Client,
    user_id: str,
    invoice_id: str,
    receipt_id: str,
) -> AnalyzeBillResponse:
    """
    Analyze the receipt behind an invoice and store the bill review.

    Nothing is written until the AI response has been parsed and validated.
    Metadata storage and the provider sync are best effort; every other
    failure propagates as a ``BillAnalysisError``.
    """
    request_id = uuid.uuid4().hex[:8]
    logger.info(f"[{request_id}] Analyzing bill for invoice {invoice_id}, receipt {receipt_id}")

    # Step 1: Locate and download the receipt (ownership enforced by the query)
    receipt = get_receipt_file(client, receipt_id, user_id)
    file_bytes = download_receipt(client, receipt)
    documents = await prepare_document_images(file_bytes, receipt.file_type)
    logger.info(f"[{request_id}] ✓ Prepared {len(documents)} document part(s) ({receipt.file_type or 'unknown type'})")

    # Step 2: Extract with the vision model
    response_text = await request_bill_analysis(documents, get_bill_analysis_prompt())
    logger.info(f"[{request_id}] ✓ AI analysis complete")

    # Step 3: Parse and validate
    parsed = parse_analysis_response(response_text)
    outcome = validate_analysis(parsed)
    result = outcome.result
    logger.info(
        f"[{request_id}] ✓ {len(result.errors)} error(s), savings {result.total_potential_savings:.2f}, "
        f"{len(outcome.warnings)} validation warning(s)"
    )

    # Step 4: Persist
    review = BillReviewRepository(client).persist_analysis(invoice_id, receipt_id, user_id, result)
    logger.info(f"[{request_id}] ✓ Bill review {review.id} saved")

    # Step 5: Downstream sync
    if get_settings().provider_sync_enabled:
        notify_provider_sync(client, invoice_id, review.id)

    return AnalyzeBillResponse(
        bill_review_id=review.id,
        metadata=result.metadata.to_json() if result.metadata else None,
        total_potential_savings=result.total_potential_savings,
        errors_found=len(result.errors),
        confidence_score=result.confidence_score,
        warnings=result.extraction_warnings,
    )
