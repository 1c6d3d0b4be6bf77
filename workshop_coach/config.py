"""
Configuration for Workshop Coach
=================================

Environment-driven settings for the server, the LLM provider and the
coach client. A local `.env` file is loaded first when present.
"""

import os
import logging
from typing import List, Optional
from dotenv import load_dotenv
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

load_dotenv()

PROVIDERS = ("anthropic", "vertex")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"[CONFIG] Invalid {name}={raw!r}, using {default}")
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"[CONFIG] Invalid {name}={raw!r}, using {default}")
        return default


class LLMConfig(BaseModel):
    """Configuration for the LLM provider."""
    provider: str = "anthropic"
    anthropic_api_key: Optional[str] = None
    anthropic_model: str = "claude-sonnet-4-20250514"
    vertex_project: Optional[str] = None
    vertex_location: str = "us-central1"
    vertex_model: str = "gemini-2.0-flash-001"
    temperature: float = 0.7
    max_output_tokens: int = 2048
    request_timeout: float = 60.0

    @classmethod
    def from_env(cls) -> "LLMConfig":
        provider = os.getenv("LLM_PROVIDER", "anthropic").strip().lower()
        if provider not in PROVIDERS:
            logger.warning(f"[CONFIG] Unknown LLM_PROVIDER={provider!r}, using 'anthropic'")
            provider = "anthropic"

        return cls(
            provider=provider,
            anthropic_api_key=os.getenv("ANTHROPIC_API_KEY") or None,
            anthropic_model=os.getenv("ANTHROPIC_MODEL", cls.model_fields["anthropic_model"].default),
            vertex_project=os.getenv("VERTEX_PROJECT") or None,
            vertex_location=os.getenv("VERTEX_LOCATION", "us-central1"),
            vertex_model=os.getenv("VERTEX_MODEL", cls.model_fields["vertex_model"].default),
            temperature=_env_float("LLM_TEMPERATURE", 0.7),
            max_output_tokens=_env_int("LLM_MAX_TOKENS", 2048),
            request_timeout=_env_float("LLM_TIMEOUT", 60.0),
        )

    def missing_credential(self) -> Optional[str]:
        """Name of the setting the selected provider needs but lacks."""
        if self.provider == "vertex":
            return None if self.vertex_project else "VERTEX_PROJECT"
        return None if self.anthropic_api_key else "ANTHROPIC_API_KEY"


class ServerConfig(BaseModel):
    """Configuration for the FastAPI server."""
    log_level: str = "INFO"
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls) -> "ServerConfig":
        origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            cors_origins=origins or ["*"],
        )


class CoachClientConfig(BaseModel):
    """Where the coach client finds the server."""
    base_url: str = "http://localhost:8080"
    timeout: float = 60.0

    @classmethod
    def from_env(cls) -> "CoachClientConfig":
        return cls(
            base_url=os.getenv("WORKSHOP_COACH_URL", "http://localhost:8080").rstrip("/"),
            timeout=_env_float("WORKSHOP_COACH_TIMEOUT", 60.0),
        )
