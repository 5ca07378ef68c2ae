"""Prompt construction for the analyze and rewrite operations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from textaudit.core.errors import ValidationError
from textaudit.schemas.analyze import IssueCategory
from textaudit.schemas.humanize import Mode
from textaudit.utils.text import quote_for_prompt

ANALYZE = "analyze"
REWRITE = "rewrite"

ANALYSIS_TEMPERATURE = 0.1
DEFAULT_MODE = Mode.NATURAL


@dataclass(frozen=True)
class PromptSpec:
    operation: str
    system: str
    user: str
    temperature: float


@dataclass(frozen=True)
class ModeTemplate:
    label: str
    strategy: str
    temperature: float


MODE_TEMPLATES: dict[Mode, ModeTemplate] = {
    Mode.NATURAL: ModeTemplate(
        label="Natural conversational voice",
        strategy=(
            "Keep the original meaning and structure. Vary sentence length, prefer plain words, "
            "use contractions where a person would, and remove stock transitions such as "
            "'moreover', 'furthermore' and 'in conclusion'."
        ),
        temperature=0.7,
    ),
    Mode.ACADEMIC: ModeTemplate(
        label="Academic register",
        strategy=(
            "Preserve every claim, citation and technical term. Keep a formal register without "
            "contractions, but break up uniform sentence rhythm and replace generic hedging with "
            "precise qualifiers. Coherence matters more than novelty."
        ),
        temperature=0.7,
    ),
    Mode.AGGRESSIVE: ModeTemplate(
        label="Aggressive restructuring",
        strategy=(
            "Rebuild the text from the ideas up. Reorder points, merge and split sentences, change "
            "paragraph openings, and introduce high burstiness and unpredictable word choice while "
            "keeping the facts intact."
        ),
        temperature=1.0,
    ),
    Mode.CREATIVE: ModeTemplate(
        label="Storyteller voice",
        strategy=(
            "Retell the content as a person explaining it to a friend. Use a concrete example or "
            "small anecdote, an occasional rhetorical question, and a personal but credible tone."
        ),
        temperature=0.9,
    ),
}

_missing_modes = set(Mode) - set(MODE_TEMPLATES)
if _missing_modes:
    raise RuntimeError(f"No prompt template for modes: {sorted(m.value for m in _missing_modes)}")


def resolve_mode(value: Any) -> Mode:
    """Map a Mode, its value or its name onto a Mode, falling back to the default."""
    if isinstance(value, Mode):
        return value
    if isinstance(value, str):
        key = value.strip()
        for mode in Mode:
            if key.lower() in (mode.value.lower(), mode.name.lower()):
                return mode
        if key.lower() == "storyteller":
            return Mode.CREATIVE
    return DEFAULT_MODE


def temperature_for(mode: Mode | None) -> float:
    if mode is None:
        return ANALYSIS_TEMPERATURE
    return MODE_TEMPLATES[resolve_mode(mode)].temperature


ANALYSIS_SYSTEM_PROMPT = (
    "You are a forensic writing auditor working at the level of Grammarly and Turnitin. "
    "You inspect text for plagiarism risk, AI-generation patterns (low perplexity, low burstiness), "
    "grammar, spelling, punctuation, conciseness, word choice and structural readability. "
    "You respond with a single valid JSON object and nothing else."
)

_ANALYSIS_SHAPE = """{
  "plagiarismFound": boolean,
  "similarityScore": number (0-100, estimated overlap with known sources),
  "aiScore": number (0-100, likelihood the text is machine generated),
  "totalIssues": integer,
  "scores": {
    "grammar": number (0-100),
    "spelling": number (0-100),
    "punctuation": number (0-100),
    "conciseness": number (0-100),
    "wordChoice": number (0-100),
    "additionalIssues": number (0-100),
    "emotionalResonance": number (0-100)
  },
  "flags": [
    {"text": "exact offending substring", "issue": CATEGORY, "fix": "suggested replacement", "severity": "MINOR" | "MAJOR" | "CRITICAL"}
  ],
  "summary": "two or three sentence overview"
}"""


def _require_text(text: str) -> None:
    if not text or not text.strip():
        raise ValidationError("Text must not be empty.")


def build_analysis_prompt(text: str) -> PromptSpec:
    _require_text(text)
    categories = ", ".join(category.value for category in IssueCategory)
    user = (
        "Audit the following text.\n"
        f"Text: {quote_for_prompt(text)}\n\n"
        "Respond ONLY with JSON of this exact shape:\n"
        f"{_ANALYSIS_SHAPE}\n"
        f"CATEGORY must be one of: {categories}.\n"
        "Every number must be between 0 and 100. Quote flag text verbatim from the input."
    )
    return PromptSpec(
        operation=ANALYZE,
        system=ANALYSIS_SYSTEM_PROMPT,
        user=user,
        temperature=ANALYSIS_TEMPERATURE,
    )


_REWRITE_SHAPE = """{
  "humanizedText": "the rewritten text",
  "stats": {
    "originalAiScore": number (0-100),
    "predictedNewAiScore": number (0-100),
    "readabilityScore": number (0-100)
  },
  "changesMade": ["short description of each change"],
  "toneAnalysis": "one sentence describing the resulting tone"
}"""


def build_rewrite_prompt(text: str, mode: Mode | str) -> PromptSpec:
    _require_text(text)
    resolved = resolve_mode(mode)
    template = MODE_TEMPLATES[resolved]
    system = (
        "You are a human linguistic editor. You rewrite text so it reads as if a person wrote it, "
        "without changing its facts. "
        f"Strategy ({template.label}): {template.strategy} "
        "You respond with a single valid JSON object and nothing else."
    )
    user = (
        "Rewrite the following text.\n"
        f"Original: {quote_for_prompt(text)}\n\n"
        "Respond ONLY with JSON of this exact shape:\n"
        f"{_REWRITE_SHAPE}"
    )
    return PromptSpec(
        operation=REWRITE,
        system=system,
        user=user,
        temperature=template.temperature,
    )
