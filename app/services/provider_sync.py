"""Trigger the provider statistics sync after a bill review is saved."""

import logging
from supabase import Client

logger = logging.getLogger(__name__)

SYNC_FUNCTION_NAME = "sync-provider-data"


def notify_provider_sync(client: Client, invoice_id: str, bill_review_id: str) -> bool:
    """
    Invoke the provider sync edge function.

    Never raises: a failed sync must not fail the analysis. Returns whether
    the invocation succeeded.
    """
    try:
        client.functions.invoke(
            SYNC_FUNCTION_NAME,
            invoke_options={"body": {"invoiceId": invoice_id, "billReviewId": bill_review_id}},
        )
    except Exception as e:
        logger.error(f"Failed to sync provider data (non-fatal): {str(e)}", exc_info=True)
        return False

    logger.info("Provider data sync initiated")
    return True
