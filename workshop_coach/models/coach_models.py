"""
Coach Models for Workshop Coach
================================

Models for AI Coach requests, completed interactions and session state.
"""

import uuid
from enum import Enum
from typing import List, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime

from .canvas_models import CanvasElement


class CoachMode(str, Enum):
    """Which system prompt governs a coach request."""
    SUMMARIZE = "summarize"
    BRAINSTORM = "brainstorm"
    CHALLENGE = "challenge"
    CUSTOM = "custom"


# Quick-action button labels, also used as the prompt when none is given
MODE_LABELS = {
    CoachMode.SUMMARIZE: "Tiivistä",
    CoachMode.BRAINSTORM: "Ideoi",
    CoachMode.CHALLENGE: "Haasta",
    CoachMode.CUSTOM: "Kysy",
}

MAX_HISTORY = 5


class CoachRequest(BaseModel):
    """Validated body of a coach request."""
    elements: List[CanvasElement] = Field(default_factory=list)
    prompt: str
    mode: CoachMode


class CoachPrompt(BaseModel):
    """Rendered system/user pair sent to the provider."""
    system: str
    user: str


class CoachResponse(BaseModel):
    """A fully collected coach reply."""
    content: str
    mode: CoachMode
    timestamp: datetime = Field(default_factory=datetime.now)


class Interaction(BaseModel):
    """One completed coach exchange."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    mode: CoachMode
    prompt: str
    response: str
    timestamp: datetime = Field(default_factory=datetime.now)


class CoachPhase(str, Enum):
    """Resting and in-flight phases of a coach session."""
    IDLE = "idle"
    REQUESTING = "requesting"
    STREAMING = "streaming"


class CoachOutcome(str, Enum):
    """How the last exchange ended."""
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


class CoachState(BaseModel):
    """
    Snapshot of one coach instance.

    Transitions never mutate a snapshot; they return a new one.
    """
    model_config = ConfigDict(frozen=True)

    phase: CoachPhase = CoachPhase.IDLE
    draft: str = ""
    live_text: str = ""
    history: Tuple[Interaction, ...] = ()
    error: Optional[str] = None
    active_mode: Optional[CoachMode] = None
    active_prompt: Optional[str] = None
    last_outcome: Optional[CoachOutcome] = None

    @property
    def is_busy(self) -> bool:
        return self.phase in (CoachPhase.REQUESTING, CoachPhase.STREAMING)
