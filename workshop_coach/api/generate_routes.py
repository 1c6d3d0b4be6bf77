"""
Generate Routes
================

Structured content generation from workshop notes.
"""

import logging
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ..errors import ParseError, ProviderError
from ..services.llm_service import LLMService
from ..services.structured_generator import StructuredGenerator
from .dependencies import get_llm_service, read_json_body
from .validation import validate_generate_request

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["generate"])


@router.post("/generate")
async def generate(request: Request, llm: LLMService = Depends(get_llm_service)):
    """
    Generate post-its, milestones and follow-ups from workshop notes.

    Body: `{ workshopContent }`. Returns `{ content }`, or `{ error }`
    with 400 for blank input and 500 for any generation failure.
    """
    llm.ensure_configured()

    body = await read_json_body(request)
    generate_request = validate_generate_request(body)

    generator = StructuredGenerator(llm)
    try:
        content = await generator.generate(generate_request.workshop_content)
    except (ProviderError, ParseError) as e:
        logger.error(f"[GENERATE-API] Generation error: {e.message}")
        return JSONResponse({"error": e.message}, status_code=500)

    return {"content": content.to_wire()}
