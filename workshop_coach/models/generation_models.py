"""
Generation Models for Workshop Coach
=====================================

Structured content produced from workshop notes: post-its, roadmap
milestones, the decision and follow-up lists.
"""

from datetime import date as calendar_date
from enum import Enum
from typing import Any, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class PostItColor(str, Enum):
    """
    Post-it colours and what they mean on the board.

    - YELLOW: general notes
    - GREEN: values and positives
    - BLUE: goals and vision
    - RED: risks and fears
    - PURPLE: ideas and innovations
    - ORANGE: action items
    """
    YELLOW = "yellow"
    GREEN = "green"
    BLUE = "blue"
    RED = "red"
    PURPLE = "purple"
    ORANGE = "orange"


POST_IT_COLOR_HEX = {
    PostItColor.YELLOW: "#fef08a",
    PostItColor.GREEN: "#bbf7d0",
    PostItColor.BLUE: "#bfdbfe",
    PostItColor.RED: "#fecaca",
    PostItColor.PURPLE: "#e9d5ff",
    PostItColor.ORANGE: "#fed7aa",
}

POST_IT_COLORS = {c.value for c in PostItColor}

MILESTONE_STATUSES = ("planned", "in-progress", "completed")


class GeneratedPostIt(BaseModel):
    """A sticky note proposed by the model."""
    text: str = ""
    color: PostItColor = PostItColor.YELLOW
    category: str = ""

    @field_validator("text", "category", mode="before")
    @classmethod
    def _as_text(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("color", mode="before")
    @classmethod
    def _known_color(cls, v: Any) -> str:
        s = str(v or "").strip().lower()
        return s if s in POST_IT_COLORS else PostItColor.YELLOW.value

    @property
    def hex_color(self) -> str:
        return POST_IT_COLOR_HEX[self.color]


class GeneratedMilestone(BaseModel):
    """A roadmap milestone proposed by the model."""
    title: str = ""
    date: Optional[str] = None
    description: str = ""
    status: str = "planned"

    @field_validator("title", "description", mode="before")
    @classmethod
    def _as_text(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("date", mode="before")
    @classmethod
    def _iso_date(cls, v: Any) -> Optional[str]:
        if not v:
            return None
        try:
            return calendar_date.fromisoformat(str(v).strip()[:10]).isoformat()
        except ValueError:
            return None

    @field_validator("status", mode="before")
    @classmethod
    def _known_status(cls, v: Any) -> str:
        s = str(v or "").strip().lower()
        return s if s in MILESTONE_STATUSES else "planned"


class GeneratedContent(BaseModel):
    """Everything one generation call produces."""
    model_config = ConfigDict(populate_by_name=True)

    post_its: List[GeneratedPostIt] = Field(default_factory=list, alias="postIts")
    milestones: List[GeneratedMilestone] = Field(default_factory=list)
    summary: str = ""
    decision: Optional[str] = None
    next_steps: List[str] = Field(default_factory=list, alias="nextSteps")
    risks: List[str] = Field(default_factory=list)
    insights: List[str] = Field(default_factory=list)

    @field_validator("summary", mode="before")
    @classmethod
    def _summary_text(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("next_steps", "risks", "insights", mode="before")
    @classmethod
    def _string_items(cls, v: Any) -> Any:
        if isinstance(v, list):
            return [str(item) for item in v if item is not None]
        return v

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class GenerateRequest(BaseModel):
    """Validated body of a generate request."""
    workshop_content: str


class GenerateResponse(BaseModel):
    """Successful generate response envelope."""
    content: GeneratedContent
