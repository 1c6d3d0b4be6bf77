"""
Request Validation
==================

Checks performed on inbound bodies before any provider call. Any
violation fails the whole request with a 400 and a descriptive message.
"""

from typing import Any

from pydantic import ValidationError as PydanticValidationError

from ..errors import ValidationError
from ..models.canvas_models import CanvasElement
from ..models.coach_models import CoachMode, CoachRequest
from ..models.generation_models import GenerateRequest

VALID_MODES = [m.value for m in CoachMode]


def validate_coach_request(body: Any) -> CoachRequest:
    """Validate `{ elements, prompt, mode }`."""
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")

    elements = body.get("elements")
    prompt = body.get("prompt")
    mode = body.get("mode")

    if not isinstance(elements, list):
        raise ValidationError("'elements' must be an array")

    if not isinstance(prompt, str) or not prompt.strip():
        raise ValidationError("'prompt' must be a non-empty string")

    if mode not in VALID_MODES:
        raise ValidationError(f"'mode' must be one of: {', '.join(VALID_MODES)}")

    if not all(isinstance(el, dict) for el in elements):
        raise ValidationError("'elements' must be an array of objects")

    try:
        parsed = [CanvasElement.model_validate(el) for el in elements]
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid canvas element: {e.errors()[0]['msg']}") from e

    return CoachRequest(elements=parsed, prompt=prompt, mode=CoachMode(mode))


def validate_generate_request(body: Any) -> GenerateRequest:
    """Validate `{ workshopContent }`."""
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")

    content = body.get("workshopContent")
    if not isinstance(content, str) or not content.strip():
        raise ValidationError("No workshop content provided")

    return GenerateRequest(workshop_content=content)
