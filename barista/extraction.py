"""
Response Extraction
===================
Turns the final assistant message into a TurnResult.

The model is told to end every reply with a ```json fenced object. This is the
one place where free text becomes structured data, and it is strict: no block,
broken JSON or a payload that does not fit TurnResult all raise
ExtractionError. There is no fallback payload — callers depend on the contract.
"""
import json
import logging
import re

from pydantic import ValidationError

from .errors import ExtractionError
from .schemas import TurnResult

logger = logging.getLogger(__name__)

_JSON_FENCE = re.compile(r"```json\s*([\s\S]*?)\s*```", re.IGNORECASE)


def find_json_block(text: str) -> str | None:
    """Return the body of the first ```json fenced block, or None."""
    match = _JSON_FENCE.search(text)
    if not match:
        return None
    return match.group(1).strip()


def extract_turn_result(text: str) -> TurnResult:
    """
    Parse the structured block out of an assistant reply.

    Raises:
        ExtractionError — with the reason and the offending text, after logging it.
    """
    block = find_json_block(text)
    if block is None:
        logger.error("[extract] No ```json block in final message: %.200r", text)
        raise ExtractionError("no ```json block in the final assistant message", text)

    try:
        payload = json.loads(block)
    except json.JSONDecodeError as exc:
        logger.error("[extract] Invalid JSON in structured block (%s): %.200r", exc, block)
        raise ExtractionError(f"structured block is not valid JSON ({exc.msg})", text) from exc

    if not isinstance(payload, dict):
        logger.error("[extract] Structured block is a %s, not an object", type(payload).__name__)
        raise ExtractionError("structured block is not a JSON object", text)

    try:
        return TurnResult.model_validate(payload)
    except ValidationError as exc:
        logger.error("[extract] Structured block does not match the turn schema: %s", exc)
        raise ExtractionError(
            f"structured block does not match the turn schema ({exc.error_count()} error(s))", text
        ) from exc
