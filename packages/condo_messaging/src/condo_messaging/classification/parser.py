"""
Classifier output parsing.

The model's text is untrusted: strip a code-fence wrapper, decode JSON and
validate it against ClassificationResult. Anything else is a
ClassificationParseError and the caller falls back.
"""

import json
import re

from pydantic import ValidationError as PydanticValidationError

from condo_messaging.contracts.payloads import (
    ClassificationResult,
    Intent,
    Language,
    Priority,
    RouteTo,
)
from condo_messaging.errors import ClassificationParseError

_FENCE_OPEN = re.compile(r"^```(?:json)?\s*\n?", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"\n?```\s*$")

FALLBACK_RESPONSES = {
    Language.ES: "Hemos recibido tu mensaje. Un administrador te responderá pronto.",
    Language.EN: "We received your message. An administrator will respond soon.",
}


def strip_code_fence(text: str) -> str:
    text = text.strip()
    if text.startswith("```"):
        text = _FENCE_CLOSE.sub("", _FENCE_OPEN.sub("", text))
    return text.strip()


def parse_classification(raw: str) -> ClassificationResult:
    """
    Parse the classifier's raw output.

    Raises:
        ClassificationParseError: not JSON, not an object, or fails validation
    """
    text = strip_code_fence(raw or "")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ClassificationParseError(f"Classifier output is not JSON: {e}", {"raw": text[:500]}) from e

    if not isinstance(data, dict):
        raise ClassificationParseError("Classifier output is not a JSON object", {"raw": text[:500]})

    try:
        return ClassificationResult.model_validate(data)
    except PydanticValidationError as e:
        raise ClassificationParseError(
            "Classifier output failed validation",
            {"errors": e.errors(include_url=False), "raw": text[:500]},
        ) from e


def fallback_classification(language: Language) -> ClassificationResult:
    """Deterministic result used whenever classification fails."""
    return ClassificationResult(
        intent=Intent.OTHER,
        priority=Priority.MEDIUM,
        route_to=RouteTo.ADMIN,
        suggested_response=FALLBACK_RESPONSES[language],
        requires_human_review=True,
        extracted_data={},
    )
