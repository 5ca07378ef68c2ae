"""Projection of the current backend schemas onto the stable caller contract.

Each external field is produced by one entry in a projection table, so a change
in the backend schema means editing a row here rather than every caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from textaudit.schemas.analyze import (
    AnalysisPayload,
    AuditReport,
    Flag,
    Highlight,
    IssueCategory,
    Severity,
    WritingFeedback,
    WritingIssueCounts,
)
from textaudit.schemas.humanize import Mode, RewritePayload, RewriteReport
from textaudit.services.prompts import MODE_TEMPLATES
from textaudit.utils.text import clamp

PLAGIARISM_FOUND_SIMILARITY = 85.0
PLAGIARISM_CLEAR_SIMILARITY = 0.0
DEFAULT_TONE = "Neutral"

HIGHLIGHT_CONFIDENCE: dict[Severity | None, float] = {
    Severity.CRITICAL: 95.0,
    Severity.MAJOR: 85.0,
    Severity.MINOR: 60.0,
    None: 60.0,
}

_GRAMMAR_CATEGORIES = {IssueCategory.GRAMMAR, IssueCategory.SPELLING, IssueCategory.PUNCTUATION}


@dataclass(frozen=True)
class AnalysisContext:
    payload: AnalysisPayload
    readability: float
    word_count: int


def similarity_of(payload: AnalysisPayload) -> float:
    if payload.similarity_score is not None:
        return clamp(payload.similarity_score, 0.0, 100.0)
    if payload.plagiarism_found:
        return PLAGIARISM_FOUND_SIMILARITY
    return PLAGIARISM_CLEAR_SIMILARITY


def _flags_in(payload: AnalysisPayload, categories: set[IssueCategory]) -> list[Flag]:
    return [flag for flag in payload.flags if flag.issue in categories]


def _grammar_notes(payload: AnalysisPayload) -> list[str]:
    notes = []
    for flag in _flags_in(payload, _GRAMMAR_CATEGORIES):
        notes.append(f"{flag.text} → {flag.fix}" if flag.fix else flag.text)
    return notes


def _tone(payload: AnalysisPayload) -> str:
    for flag in _flags_in(payload, {IssueCategory.TONE}):
        if flag.fix:
            return flag.fix
    return DEFAULT_TONE


def _highlights(payload: AnalysisPayload) -> list[Highlight]:
    return [
        Highlight(text=flag.text, source_url="", confidence=HIGHLIGHT_CONFIDENCE[flag.severity])
        for flag in _flags_in(payload, {IssueCategory.PLAGIARISM})
    ]


def _writing_feedback(ctx: AnalysisContext) -> WritingFeedback:
    return WritingFeedback(
        grammar=_grammar_notes(ctx.payload),
        tone=_tone(ctx.payload),
        readability=f"{ctx.readability:g}",
        ai_markers=[flag.text for flag in _flags_in(ctx.payload, {IssueCategory.AI_PATTERN})],
    )


def _writing_scores(ctx: AnalysisContext) -> WritingIssueCounts:
    scores = ctx.payload.scores
    return WritingIssueCounts(
        plagiarism=ctx.payload.plagiarism_found or similarity_of(ctx.payload) > 0,
        spelling=scores.spelling,
        conciseness=scores.conciseness,
        word_choice=scores.word_choice,
        grammar=scores.grammar,
        punctuation=scores.punctuation,
        readability=ctx.readability,
        additional=scores.additional_issues,
        emotional_resonance=scores.emotional_resonance,
    )


ANALYSIS_PROJECTIONS: dict[str, Callable[[AnalysisContext], Any]] = {
    "similarity_score": lambda ctx: similarity_of(ctx.payload),
    "originality_score": lambda ctx: 100.0 - similarity_of(ctx.payload),
    "ai_score": lambda ctx: ctx.payload.ai_score,
    "readability_score": lambda ctx: ctx.readability,
    "word_count": lambda ctx: ctx.word_count,
    # The backend has no web grounding, so there are never cited sources.
    "sources": lambda ctx: [],
    "highlights": lambda ctx: _highlights(ctx.payload),
    "writing_feedback": _writing_feedback,
    "writing_scores": _writing_scores,
    "flags": lambda ctx: list(ctx.payload.flags),
    "summary": lambda ctx: ctx.payload.summary.strip() or "No summary provided.",
}


def adapt_analysis(payload: AnalysisPayload, *, readability: float, word_count: int) -> AuditReport:
    ctx = AnalysisContext(payload=payload, readability=clamp(readability, 0.0, 100.0), word_count=word_count)
    return AuditReport(**{name: project(ctx) for name, project in ANALYSIS_PROJECTIONS.items()})


@dataclass(frozen=True)
class RewriteContext:
    payload: RewritePayload
    mode: Mode


REWRITE_PROJECTIONS: dict[str, Callable[[RewriteContext], Any]] = {
    "humanized_text": lambda ctx: ctx.payload.humanized_text,
    "original_ai_probability": lambda ctx: ctx.payload.stats.original_ai_score,
    "new_ai_probability": lambda ctx: ctx.payload.stats.predicted_new_ai_score,
    "readability_score": lambda ctx: ctx.payload.stats.readability_score,
    "key_changes": lambda ctx: [change.strip() for change in ctx.payload.changes_made if change.strip()],
    "tone_analysis": lambda ctx: (ctx.payload.tone_analysis or "").strip() or MODE_TEMPLATES[ctx.mode].label,
    "mode": lambda ctx: ctx.mode,
}


def adapt_rewrite(payload: RewritePayload, mode: Mode) -> RewriteReport:
    ctx = RewriteContext(payload=payload, mode=mode)
    return RewriteReport(**{name: project(ctx) for name, project in REWRITE_PROJECTIONS.items()})
