"""Bill review API routes."""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, Header, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from supabase import Client
from app.config.supabase import get_supabase_client
from app.exceptions import BillAnalysisError, InvalidRequestError
from app.schemas.bills import AnalyzeBillRequest, ErrorResponse
from app.services.auth_service import authenticate_user
from app.services.bill_analysis_service import analyze_medical_bill

logger = logging.getLogger(__name__)
router = APIRouter(tags=["bill-reviews"])


def error_response(message: str) -> JSONResponse:
    """Failed analysis response; every handled failure is a 400."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ErrorResponse(error=message).model_dump(),
    )


async def read_analyze_request(request: Request) -> AnalyzeBillRequest:
    try:
        body = await request.json()
    except ValueError as e:
        raise InvalidRequestError("Invalid JSON body") from e

    try:
        return AnalyzeBillRequest.model_validate(body)
    except ValidationError as e:
        raise InvalidRequestError("Missing required parameters") from e


@router.post("/analyze-medical-bill", status_code=status.HTTP_200_OK)
async def analyze_medical_bill_endpoint(
    request: Request,
    authorization: Optional[str] = Header(None),
    client: Client = Depends(get_supabase_client),
) -> JSONResponse:
    """
    Analyze an uploaded medical bill for billing errors.

    Body: ``{"invoiceId": ..., "receiptId": ...}`` with an
    ``Authorization: Bearer <token>`` header. Returns the saved review id,
    extracted metadata, total potential savings, number of errors, overall
    confidence and any warnings that need manual verification.
    """
    try:
        user_id = authenticate_user(client, authorization)
        payload = await read_analyze_request(request)

        result = await analyze_medical_bill(client, user_id, payload.invoice_id, payload.receipt_id)
        return JSONResponse(
            status_code=status.HTTP_200_OK,
            content=result.model_dump(by_alias=True),
        )

    except BillAnalysisError as e:
        logger.warning(f"Bill analysis failed: {e.message}")
        return error_response(e.message)
    except Exception as e:
        logger.error(f"Unexpected error in analyze_medical_bill_endpoint: {str(e)}", exc_info=True)
        return error_response(str(e) or "Unknown error")
