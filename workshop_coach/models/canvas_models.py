"""
Canvas Models for Workshop Coach
=================================

Elements contributed by the freeform drawing canvas.
"""

from typing import Any, Dict, Optional
from pydantic import BaseModel, Field, field_validator, model_validator

CORE_FIELDS = ("id", "type", "text")


class CanvasElement(BaseModel):
    """
    One drawable or textual unit on the canvas.

    Only `text` is read by the coach. Producer-side attributes (position,
    stroke, colour, ...) are kept in `extra` untouched.
    """
    id: str = ""
    type: str = ""
    text: Optional[str] = None
    extra: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _collect_extra(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        core = {k: data[k] for k in CORE_FIELDS if k in data}
        extra = dict(data.get("extra") or {})
        extra.update({k: v for k, v in data.items() if k not in CORE_FIELDS and k != "extra"})
        core["extra"] = extra
        return core

    @field_validator("id", "type", mode="before")
    @classmethod
    def _stringify(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("text", mode="before")
    @classmethod
    def _text_or_none(cls, v: Any) -> Optional[str]:
        return v if isinstance(v, str) else None

    @property
    def has_text(self) -> bool:
        return bool(self.text and self.text.strip())

    def to_wire(self) -> Dict[str, Any]:
        """Flatten back to the producer's record shape."""
        data = dict(self.extra)
        data["id"] = self.id
        data["type"] = self.type
        if self.text is not None:
            data["text"] = self.text
        return data
