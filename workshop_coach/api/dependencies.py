"""
Route Dependencies
==================

Shared instances injected by server.py at startup.
"""

import json
import logging
from typing import Any, Optional
from fastapi import Request

from ..errors import ConfigurationError, ValidationError
from ..services.llm_service import LLMService

logger = logging.getLogger(__name__)

# Shared instances (initialized in server.py)
llm_service: Optional[LLMService] = None


def get_llm_service() -> LLMService:
    """Dependency to get LLM service."""
    if llm_service is None:
        raise ConfigurationError("LLM service not initialized")
    return llm_service


async def read_json_body(request: Request) -> Any:
    """Decode the request body, reporting malformed JSON as a 400."""
    raw = await request.body()
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.debug(f"[API] Malformed JSON body: {e}")
        raise ValidationError("Request body must be valid JSON") from e
