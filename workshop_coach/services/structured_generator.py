"""
Structured Generator for Workshop Coach
========================================

Turns free-form workshop notes into post-its, milestones, a summary and
follow-up lists with a single non-streaming LLM call.

Models often wrap the requested JSON in prose or code fences, so the
object is recovered with a bracket-counting scan rather than by parsing
the whole response.
"""

import json
import logging
from typing import Any, Dict, Iterator, Tuple

from pydantic import ValidationError as PydanticValidationError

from ..errors import ParseError, ProviderError, ValidationError
from ..models.generation_models import GeneratedContent
from .llm_service import LLMService
from .prompt_builder import build_generation_prompt

logger = logging.getLogger(__name__)

NO_JSON_MESSAGE = "Could not extract JSON from response"
INVALID_CONTENT_MESSAGE = "AI response did not match the expected content format"


def _top_level_regions(text: str) -> Iterator[Tuple[int, int]]:
    """
    Yield (start, end) of each top-level `{...}` region in one pass.
    Braces inside JSON strings are not counted and nested objects are never
    yielded on their own.

    Raises:
        ParseError: an object is still open at the end of the text
    """
    depth = 0
    start = 0
    in_string = False
    escaped = False
    for i, ch in enumerate(text):
        if depth == 0:
            if ch == "{":
                depth = 1
                start = i
            continue
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                yield start, i + 1
    if depth:
        # Truncated reply; an inner object is not the answer
        raise ParseError(NO_JSON_MESSAGE)


def extract_json_object(text: str) -> Dict[str, Any]:
    """
    Recover the first top-level JSON object embedded in model output.

    Args:
        text: Raw model text, possibly with prose or code fences around the JSON

    Returns:
        The parsed object

    Raises:
        ParseError: no top-level region parses as a JSON object, or the
            reply ends inside an unclosed object
    """
    stripped = (text or "").strip()
    if stripped.startswith("{"):
        try:
            data = json.loads(stripped)
        except json.JSONDecodeError:
            pass
        else:
            if isinstance(data, dict):
                return data

    for start, end in _top_level_regions(stripped):
        try:
            data = json.loads(stripped[start:end])
        except json.JSONDecodeError:
            continue
        if isinstance(data, dict):
            return data

    raise ParseError(NO_JSON_MESSAGE)


class StructuredGenerator:
    """Prompt, call and parse as one atomic attempt. No internal retries."""

    def __init__(self, llm_service: LLMService):
        self.llm = llm_service

    async def generate(self, workshop_content: str) -> GeneratedContent:
        """
        Generate structured content from workshop notes.

        Args:
            workshop_content: Plain-text workshop summary

        Returns:
            GeneratedContent parsed from the model's reply

        Raises:
            ValidationError: content is blank
            ProviderError: the call failed or returned no text
            ParseError: no usable JSON object in the reply
        """
        if not workshop_content or not workshop_content.strip():
            raise ValidationError("No workshop content provided")

        prompt = build_generation_prompt(workshop_content)
        logger.info(f"[GENERATOR] Generating content from {len(workshop_content)} chars of notes")

        response = await self.llm.generate_text(prompt)
        if not response.success:
            raise ProviderError(response.error or "Generation failed")
        if not response.content.strip():
            raise ProviderError("No text response from AI")

        try:
            data = extract_json_object(response.content)
        except ParseError:
            logger.warning(f"[GENERATOR] No JSON object in response: {response.content[:200]!r}")
            raise

        try:
            content = GeneratedContent.model_validate(data)
        except PydanticValidationError as e:
            logger.warning(f"[GENERATOR] Generated JSON rejected: {e}")
            raise ParseError(INVALID_CONTENT_MESSAGE) from e

        logger.info(
            f"[GENERATOR] Parsed {len(content.post_its)} post-its, "
            f"{len(content.milestones)} milestones"
        )
        return content
