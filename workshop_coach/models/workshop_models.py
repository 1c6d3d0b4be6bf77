"""
Workshop Models for Workshop Coach
===================================

Answers collected by the guided exercise template, keyed by exercise ID.
"""

from typing import Dict, List
from pydantic import BaseModel, Field


class ExerciseData(BaseModel):
    """Everything entered for one exercise."""
    notes: str = ""
    answers: Dict[str, str] = Field(default_factory=dict)     # scenario / question answers
    weights: Dict[str, float] = Field(default_factory=dict)   # criteria weights, 1-5
    selections: List[str] = Field(default_factory=list)       # chosen options
