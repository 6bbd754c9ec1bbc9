"""Receipt lookup and download from Supabase storage."""

import logging
from typing import Optional
from pydantic import BaseModel
from supabase import Client
from app.config.settings import get_settings
from app.exceptions import ReceiptDownloadError, ReceiptNotFoundError

logger = logging.getLogger(__name__)

RECEIPTS_TABLE = "receipts"


class ReceiptFile(BaseModel):
    """Storage location of an uploaded receipt."""

    file_path: str
    file_type: Optional[str] = None


def get_receipt_file(client: Client, receipt_id: str, user_id: str) -> ReceiptFile:
    """Load the receipt's storage location, only if the user owns it."""
    try:
        response = (
            client.table(RECEIPTS_TABLE)
            .select("file_path, file_type")
            .eq("id", receipt_id)
            .eq("user_id", user_id)
            .maybe_single()
            .execute()
        )
    except Exception as e:
        logger.error(f"Error loading receipt {receipt_id}: {str(e)}", exc_info=True)
        raise ReceiptNotFoundError() from e

    data = response.data if response is not None else None
    if not data or not data.get("file_path"):
        logger.warning(f"Receipt {receipt_id} not found for user")
        raise ReceiptNotFoundError()

    return ReceiptFile(**data)


def download_receipt(client: Client, receipt: ReceiptFile) -> bytes:
    """Download the receipt file bytes from the receipts bucket."""
    bucket = get_settings().receipts_bucket
    try:
        file_bytes = client.storage.from_(bucket).download(receipt.file_path)
    except Exception as e:
        logger.error(f"Error downloading receipt from {bucket}: {str(e)}", exc_info=True)
        raise ReceiptDownloadError() from e

    if not file_bytes:
        logger.error("Downloaded receipt is empty")
        raise ReceiptDownloadError()

    logger.info(f"Receipt downloaded: {len(file_bytes)} bytes")
    return file_bytes
