from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, field_validator

from textaudit.schemas.analyze import AuditReport
from textaudit.schemas.common import CamelModel, Score


class Mode(str, Enum):
    NATURAL = "Natural"
    ACADEMIC = "Academic"
    AGGRESSIVE = "Aggressive"
    CREATIVE = "Creative"


class RewriteStats(CamelModel):
    original_ai_score: Score = 100
    predicted_new_ai_score: Score = 0
    readability_score: Score = 50


class RewritePayload(CamelModel):
    """Current rewrite schema requested from the backend."""

    humanized_text: str = Field(min_length=1)
    stats: RewriteStats = Field(default_factory=RewriteStats)
    changes_made: list[str] = Field(default_factory=list)
    tone_analysis: str | None = None

    @field_validator("humanized_text", mode="before")
    @classmethod
    def strip_text(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip()
        return value


class RewriteReport(CamelModel):
    """Stable rewrite result returned to callers."""

    humanized_text: str
    original_ai_probability: Score
    new_ai_probability: Score
    readability_score: Score
    key_changes: list[str] = Field(default_factory=list)
    tone_analysis: str
    mode: Mode


class SmartRewriteReport(CamelModel):
    selected_mode: Mode
    analysis: AuditReport
    rewrite: RewriteReport


class HumanizeRequest(BaseModel):
    text: str
    mode: str = Mode.NATURAL.value


class SmartHumanizeRequest(BaseModel):
    text: str


class HumanizeResponse(RewriteReport):
    humanize_id: str
    latency_ms: float
