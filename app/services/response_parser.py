"""Extract the JSON analysis object from the model's raw reply."""

import json
import logging
import re
from app.exceptions import ParseFailure
from app.schemas.bills import ParsedAnalysis

logger = logging.getLogger(__name__)

_JSON_FENCE = re.compile(r"```json\s*([\s\S]*?)\s*```", re.IGNORECASE)
_ANY_FENCE = re.compile(r"```\s*([\s\S]*?)\s*```")


def extract_json_text(response_text: str) -> str:
    """Return the body of the first ```json fence, else of any fence, else the whole text."""
    match = _JSON_FENCE.search(response_text) or _ANY_FENCE.search(response_text)
    json_text = match.group(1) if match else response_text
    return json_text.strip()


def parse_analysis_response(response_text: str) -> ParsedAnalysis:
    """
    Parse the model's reply into an untrusted ``ParsedAnalysis``.

    Raises:
        ParseFailure: The reply is not a JSON object.
    """
    json_text = extract_json_text(response_text or "")

    try:
        parsed_json = json.loads(json_text)
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse AI response as JSON: {str(e)}")
        logger.debug(f"Response text: {response_text}")
        raise ParseFailure() from e

    if not isinstance(parsed_json, dict):
        logger.error(f"AI response JSON is a {type(parsed_json).__name__}, expected an object")
        raise ParseFailure()

    metadata = parsed_json.get("metadata")
    errors = parsed_json.get("errors")
    warnings = parsed_json.get("extraction_warnings")

    return ParsedAnalysis(
        metadata=metadata if isinstance(metadata, dict) else None,
        errors=errors if isinstance(errors, list) else [],
        total_potential_savings=parsed_json.get("total_potential_savings"),
        confidence_score=parsed_json.get("confidence_score"),
        extraction_warnings=warnings if isinstance(warnings, list) else [],
    )
