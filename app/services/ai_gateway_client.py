"""Client for the AI gateway's chat completions endpoint (vision extraction)."""

import base64
import logging
from typing import Any, Dict, List, Optional, Tuple
import httpx
from app.config.settings import get_settings
from app.exceptions import (
    ConfigurationError,
    OracleUnavailableError,
    QuotaExhaustedError,
    RateLimitedError,
)

logger = logging.getLogger(__name__)

TEMPERATURE = 0.3
MAX_TOKENS = 4000


def build_payload(documents: List[Tuple[bytes, str]], prompt: str, model: str) -> Dict[str, Any]:
    """Build the chat completions payload: prompt text followed by one image part per document."""
    content: List[Dict[str, Any]] = [{"type": "text", "text": prompt}]

    for doc_bytes, mime_type in documents:
        base64_doc = base64.b64encode(doc_bytes).decode("utf-8")
        content.append({
            "type": "image_url",
            "image_url": {"url": f"data:{mime_type};base64,{base64_doc}"}
        })

    return {
        "model": model,
        "messages": [{"role": "user", "content": content}],
        "temperature": TEMPERATURE,
        "max_tokens": MAX_TOKENS,
    }


def _error_detail(response: httpx.Response) -> str:
    try:
        error_data = response.json()
    except ValueError:
        return response.text or response.reason_phrase

    error = error_data.get("error") if isinstance(error_data, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if isinstance(error, str):
        return error
    return response.reason_phrase or str(response.status_code)


async def request_bill_analysis(
    documents: List[Tuple[bytes, str]],
    prompt: str,
    model: Optional[str] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> str:
    """
    Send bill documents and the analysis prompt to the vision model.

    Args:
        documents: ``(bytes, mime_type)`` parts, sent inline as base64 data URLs
        prompt: Analysis prompt
        model: Model name; defaults to AI_MODEL
        http_client: Optional client to reuse (a new one is created otherwise)

    Returns:
        str: Raw text of the model's reply

    Raises:
        RateLimitedError: Gateway answered 429
        QuotaExhaustedError: Gateway answered 402
        OracleUnavailableError: Any other failure
    """
    settings = get_settings()
    api_key = settings.ai_gateway_api_key
    if not api_key:
        logger.error("AI_GATEWAY_API_KEY environment variable is not set")
        raise ConfigurationError("AI_GATEWAY_API_KEY environment variable is not set. Please check your .env file.")

    model = model or settings.ai_model
    payload = build_payload(documents, prompt, model)
    headers = {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
    }

    logger.info(f"Sending {len(documents)} document part(s) to {model}")

    try:
        if http_client is not None:
            response = await http_client.post(settings.ai_gateway_url, headers=headers, json=payload)
        else:
            async with httpx.AsyncClient(timeout=settings.ai_timeout_seconds) as client:
                response = await client.post(settings.ai_gateway_url, headers=headers, json=payload)
    except httpx.HTTPError as e:
        logger.error(f"AI gateway request failed: {str(e)}")
        raise OracleUnavailableError(f"AI analysis failed: {str(e) or type(e).__name__}") from e

    if response.status_code == 429:
        logger.warning("AI gateway rate limit hit")
        raise RateLimitedError()
    if response.status_code == 402:
        logger.warning("AI gateway credits exhausted")
        raise QuotaExhaustedError()
    if response.is_error:
        detail = _error_detail(response)
        logger.error(f"AI gateway HTTP {response.status_code}: {detail}")
        raise OracleUnavailableError(f"AI analysis failed: {detail}")

    try:
        response_text = response.json()["choices"][0]["message"]["content"]
    except (ValueError, KeyError, IndexError, TypeError) as e:
        logger.error("Invalid response format from AI gateway")
        raise OracleUnavailableError("AI analysis failed: invalid response format from AI gateway") from e

    if not isinstance(response_text, str):
        raise OracleUnavailableError("AI analysis failed: empty response from AI gateway")

    logger.info(f"Vision model response received: {len(response_text)} characters")
    logger.debug(f"Response preview: {response_text[:200]}...")
    return response_text
