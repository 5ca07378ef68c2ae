from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from textaudit.schemas.common import CamelModel, Score


class IssueCategory(str, Enum):
    GRAMMAR = "GRAMMAR"
    SPELLING = "SPELLING"
    PUNCTUATION = "PUNCTUATION"
    CONCISENESS = "CONCISENESS"
    WORD_CHOICE = "WORD_CHOICE"
    READABILITY = "READABILITY"
    PLAGIARISM = "PLAGIARISM"
    AI_PATTERN = "AI_PATTERN"
    TONE = "TONE"
    ADDITIONAL = "ADDITIONAL"


DEFAULT_ISSUE_CATEGORY = IssueCategory.ADDITIONAL


class Severity(str, Enum):
    MINOR = "MINOR"
    MAJOR = "MAJOR"
    CRITICAL = "CRITICAL"


def _enum_key(value: Any) -> str | None:
    if isinstance(value, Enum):
        value = value.value
    if not isinstance(value, str):
        return None
    return value.strip().upper().replace(" ", "_").replace("-", "_")


class Flag(CamelModel):
    text: str
    issue: IssueCategory = DEFAULT_ISSUE_CATEGORY
    fix: str = ""
    severity: Severity | None = None

    @field_validator("issue", mode="before")
    @classmethod
    def coerce_issue(cls, value: Any) -> IssueCategory:
        # Unknown tags degrade to the default category instead of failing the payload.
        key = _enum_key(value)
        if key in IssueCategory.__members__:
            return IssueCategory[key]
        return DEFAULT_ISSUE_CATEGORY

    @field_validator("severity", mode="before")
    @classmethod
    def coerce_severity(cls, value: Any) -> Severity | None:
        key = _enum_key(value)
        if key in Severity.__members__:
            return Severity[key]
        return None

    @field_validator("fix", mode="before")
    @classmethod
    def none_fix_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class WritingScores(CamelModel):
    grammar: Score = 0
    spelling: Score = 0
    punctuation: Score = 0
    conciseness: Score = 0
    word_choice: Score = 0
    additional_issues: Score = 0
    emotional_resonance: Score = 50
    # Recomputed locally; whatever the backend sends is discarded.
    readability: float | None = None


class AnalysisPayload(CamelModel):
    """Current analysis schema requested from the backend."""

    plagiarism_found: bool = False
    similarity_score: Score | None = None
    ai_score: Score
    total_issues: int = Field(default=0, ge=0)
    scores: WritingScores = Field(default_factory=WritingScores)
    flags: list[Flag] = Field(default_factory=list)
    summary: str


class PlagiarismSource(CamelModel):
    title: str
    uri: str
    snippet: str | None = None


class Highlight(CamelModel):
    text: str
    source_url: str = ""
    confidence: Score


class WritingFeedback(CamelModel):
    grammar: list[str] = Field(default_factory=list)
    tone: str = "Neutral"
    readability: str
    ai_markers: list[str] = Field(default_factory=list)


class WritingIssueCounts(CamelModel):
    plagiarism: bool
    spelling: Score
    conciseness: Score
    word_choice: Score
    grammar: Score
    punctuation: Score
    readability: Score
    additional: Score
    emotional_resonance: Score


class AuditReport(CamelModel):
    """Stable analysis result returned to callers."""

    similarity_score: Score
    originality_score: Score
    ai_score: Score
    readability_score: Score
    word_count: int
    sources: list[PlagiarismSource] = Field(default_factory=list)
    highlights: list[Highlight] = Field(default_factory=list)
    writing_feedback: WritingFeedback
    writing_scores: WritingIssueCounts
    flags: list[Flag] = Field(default_factory=list)
    summary: str


class AnalyzeRequest(BaseModel):
    text: str


class AnalyzeResponse(AuditReport):
    analysis_id: str
    latency_ms: float
