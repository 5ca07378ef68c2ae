from __future__ import annotations

from typing import Any

from textaudit.core.config import Settings, get_settings
from textaudit.core.errors import ValidationError
from textaudit.core.logging import get_logger
from textaudit.schemas.analyze import AnalysisPayload, AuditReport
from textaudit.schemas.humanize import Mode, RewritePayload, RewriteReport, SmartRewriteReport
from textaudit.services.adapter import adapt_analysis, adapt_rewrite
from textaudit.services.executor import RequestExecutor
from textaudit.services.llm_client import ClientProvider, CompletionBackend
from textaudit.services.prompts import build_analysis_prompt, build_rewrite_prompt, resolve_mode
from textaudit.services.text_metrics import flesch_reading_ease
from textaudit.utils.text import truncate, word_count

logger = get_logger(__name__)

AGGRESSIVE_AI_THRESHOLD = 70.0
BALANCED_AI_THRESHOLD = 40.0


def select_mode(ai_score: float) -> Mode:
    if ai_score >= AGGRESSIVE_AI_THRESHOLD:
        return Mode.AGGRESSIVE
    if ai_score >= BALANCED_AI_THRESHOLD:
        return Mode.NATURAL
    return Mode.ACADEMIC


class AuditEngine:
    """Public entry point: analyze, humanize and the two-stage smart rewrite."""

    def __init__(
        self,
        backend: CompletionBackend | None = None,
        *,
        settings: Settings | None = None,
        executor: RequestExecutor | None = None,
    ) -> None:
        self.settings = settings if settings is not None else get_settings()
        self.backend = backend if backend is not None else ClientProvider(self.settings)
        self.executor = executor if executor is not None else RequestExecutor.from_settings(self.backend, self.settings)

    def validate_text(self, text: Any, min_chars: int | None = None) -> str:
        minimum = self.settings.engine_min_text_chars if min_chars is None else min_chars
        if not isinstance(text, str) or not text.strip():
            raise ValidationError("Text must not be empty.")
        stripped = text.strip()
        if len(stripped) < minimum:
            raise ValidationError(f"Text is too short: at least {minimum} characters are required.")
        return stripped

    def _prompt_text(self, clean: str) -> str:
        return truncate(clean, self.settings.groq_max_input_chars)

    async def analyze(self, text: str) -> AuditReport:
        clean = self.validate_text(text)
        prompt = build_analysis_prompt(self._prompt_text(clean))
        payload = await self.executor.execute(prompt.system, prompt.user, AnalysisPayload, prompt.temperature)
        report = adapt_analysis(
            payload,
            readability=flesch_reading_ease(clean),
            word_count=word_count(clean),
        )
        logger.info(
            "engine_analyze_complete",
            ai_score=report.ai_score,
            similarity=report.similarity_score,
            flags=len(report.flags),
        )
        return report

    async def humanize(self, text: str, mode: Mode | str = Mode.NATURAL) -> RewriteReport:
        clean = self.validate_text(text)
        resolved = resolve_mode(mode)
        prompt = build_rewrite_prompt(self._prompt_text(clean), resolved)
        payload = await self.executor.execute(prompt.system, prompt.user, RewritePayload, prompt.temperature)
        report = adapt_rewrite(payload, resolved)
        logger.info(
            "engine_humanize_complete",
            mode=resolved.value,
            temperature=prompt.temperature,
            changes=len(report.key_changes),
        )
        return report

    async def smart_humanize(self, text: str) -> SmartRewriteReport:
        analysis = await self.analyze(text)
        mode = select_mode(analysis.ai_score)
        logger.info("engine_smart_mode_selected", ai_score=analysis.ai_score, mode=mode.value)
        rewrite = await self.humanize(text, mode)
        return SmartRewriteReport(selected_mode=mode, analysis=analysis, rewrite=rewrite)


_engine: AuditEngine | None = None


def get_engine() -> AuditEngine:
    global _engine
    if _engine is None:
        _engine = AuditEngine()
    return _engine
