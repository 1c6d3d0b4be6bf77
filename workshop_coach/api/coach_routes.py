"""
Coach Routes
=============

AI Coach endpoint: streams the assistant's reply as raw UTF-8 text.
"""

import logging
from typing import AsyncIterator, Optional
from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from ..services.llm_service import LLMService
from ..services.prompt_builder import build_coach_prompt
from .dependencies import get_llm_service, read_json_body
from .validation import validate_coach_request

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["coach"])


async def _relay(first: Optional[str], chunks: AsyncIterator[str]) -> AsyncIterator[bytes]:
    """Re-emit the primed first chunk, then the rest of the provider stream."""
    sent = 0
    try:
        if first is not None:
            sent += len(first)
            yield first.encode("utf-8")
            async for chunk in chunks:
                sent += len(chunk)
                yield chunk.encode("utf-8")
    except Exception as e:
        # Headers are gone; aborting the body is the only signal left
        logger.error(f"[COACH-API] Stream failed after {sent} chars: {e}")
        raise
    finally:
        # Also runs when the client disconnects mid-stream
        await chunks.aclose()
    logger.info(f"[COACH-API] Stream finished, {sent} chars")


@router.post("/ai")
async def coach(request: Request, llm: LLMService = Depends(get_llm_service)):
    """
    Stream a coach reply for the canvas.

    Body: `{ elements, prompt, mode }`. Success is a chunked
    `text/plain` body; failures before the first byte are JSON `{error}`.
    """
    llm.ensure_configured()

    body = await read_json_body(request)
    coach_request = validate_coach_request(body)

    prompt = build_coach_prompt(coach_request.mode, coach_request.elements, coach_request.prompt)
    logger.info(
        f"[COACH-API] mode={coach_request.mode.value}, elements={len(coach_request.elements)}, "
        f"provider={llm.provider_name}"
    )

    chunks = llm.stream_text(prompt.user, system_instruction=prompt.system)

    # Pull the first chunk before committing to a 200 so an immediate
    # provider failure still reaches the client as a JSON envelope
    try:
        first = await chunks.__anext__()
    except StopAsyncIteration:
        first = None

    return StreamingResponse(
        _relay(first, chunks),
        media_type="text/plain; charset=utf-8",
        headers={"Cache-Control": "no-cache"},
    )
