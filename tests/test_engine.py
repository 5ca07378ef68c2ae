import copy
import json

import pytest

from conftest import ANALYSIS_PAYLOAD, AUDIT_TEXT, REWRITE_PAYLOAD, FakeBackend
from textaudit.core.config import Settings
from textaudit.core.errors import ConfigurationError, ExhaustedRetriesError, ValidationError
from textaudit.schemas.analyze import IssueCategory
from textaudit.schemas.humanize import Mode
from textaudit.services.engine import AuditEngine, select_mode
from textaudit.services.llm_client import ClientProvider
from textaudit.services.text_metrics import flesch_reading_ease


def _analysis(**overrides):
    data = copy.deepcopy(ANALYSIS_PAYLOAD)
    data.update(overrides)
    return data


def _all_scores(report) -> list[float]:
    scores = [report.similarity_score, report.originality_score, report.ai_score, report.readability_score]
    ws = report.writing_scores
    scores += [ws.spelling, ws.conciseness, ws.word_choice, ws.grammar, ws.punctuation, ws.readability, ws.additional]
    scores.append(ws.emotional_resonance)
    scores += [h.confidence for h in report.highlights]
    return scores


@pytest.mark.asyncio
async def test_analyze_adapts_current_schema(make_engine):
    engine, backend = make_engine([ANALYSIS_PAYLOAD])

    report = await engine.analyze("This is a test sentence that fits the length requirement.")

    assert report.similarity_score == 85
    assert report.originality_score == 15
    assert report.ai_score == 72
    assert report.word_count == 10
    assert report.readability_score != 60
    assert len(backend.calls) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("similarity", [0, 12.5, 63, 100])
async def test_originality_is_derived_from_similarity(make_engine, similarity):
    engine, _ = make_engine([_analysis(similarityScore=similarity, originalityScore=3)])

    report = await engine.analyze(AUDIT_TEXT)

    assert report.originality_score == 100 - report.similarity_score
    assert report.similarity_score == similarity


@pytest.mark.asyncio
async def test_readability_overrides_backend_value(make_engine):
    data = _analysis()
    data["scores"]["readability"] = 3
    engine, _ = make_engine([data])

    report = await engine.analyze(AUDIT_TEXT)

    assert report.readability_score == flesch_reading_ease(AUDIT_TEXT)
    assert report.writing_scores.readability == flesch_reading_ease(AUDIT_TEXT)


@pytest.mark.asyncio
async def test_every_score_is_within_bounds(make_engine):
    flags = [{"text": "copied", "issue": "PLAGIARISM", "fix": "cite", "severity": "MAJOR"}]
    engine, _ = make_engine([_analysis(flags=flags)])

    report = await engine.analyze(AUDIT_TEXT)

    assert all(0 <= score <= 100 for score in _all_scores(report))


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["", "x", "   short  ", None])
async def test_short_input_never_reaches_backend(make_engine, text):
    engine, backend = make_engine([ANALYSIS_PAYLOAD, REWRITE_PAYLOAD])

    with pytest.raises(ValidationError):
        await engine.analyze(text)
    with pytest.raises(ValidationError):
        await engine.humanize(text, Mode.NATURAL)

    assert backend.calls == []


@pytest.mark.asyncio
async def test_unknown_issue_category_does_not_fail_analysis(make_engine):
    flags = [{"text": "hmm", "issue": "VIBES", "fix": "rephrase"}]
    engine, _ = make_engine([_analysis(flags=flags)])

    report = await engine.analyze(AUDIT_TEXT)

    assert report.flags[0].issue is IssueCategory.ADDITIONAL


@pytest.mark.asyncio
async def test_fenced_backend_output_is_repaired(make_engine):
    raw = "```json\n" + json.dumps(ANALYSIS_PAYLOAD)[:-1] + ",}\n```\nLet me know!"
    engine, backend = make_engine([raw])

    report = await engine.analyze(AUDIT_TEXT)

    assert report.summary == "Text has issues."
    assert len(backend.calls) == 1


@pytest.mark.asyncio
async def test_analyze_raises_after_exhausting_retries(make_engine):
    engine, backend = make_engine(["", "garbage", "{}"])

    with pytest.raises(ExhaustedRetriesError):
        await engine.analyze(AUDIT_TEXT)

    assert len(backend.calls) == 3


@pytest.mark.asyncio
async def test_humanize_adapts_rewrite_schema(make_engine):
    engine, _ = make_engine([REWRITE_PAYLOAD])

    result = await engine.humanize("Original AI text.", Mode.NATURAL)

    assert result.humanized_text == "Rewritten text content."
    assert result.readability_score == 92
    assert result.key_changes == ["fixed grammar"]
    assert result.mode is Mode.NATURAL


@pytest.mark.asyncio
async def test_aggressive_mode_samples_hotter_than_conservative(make_engine):
    engine, backend = make_engine([REWRITE_PAYLOAD, REWRITE_PAYLOAD, REWRITE_PAYLOAD])

    await engine.humanize(AUDIT_TEXT, Mode.AGGRESSIVE)
    await engine.humanize(AUDIT_TEXT, Mode.NATURAL)
    await engine.humanize(AUDIT_TEXT, Mode.ACADEMIC)

    aggressive, natural, academic = (call["temperature"] for call in backend.calls)
    assert aggressive > natural
    assert aggressive > academic


@pytest.mark.asyncio
async def test_humanize_accepts_unknown_mode_string(make_engine):
    engine, backend = make_engine([REWRITE_PAYLOAD])

    result = await engine.humanize(AUDIT_TEXT, "hyperdrive")

    assert result.mode is Mode.NATURAL
    assert backend.calls[0]["temperature"] == 0.7


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("ai_score", "expected_mode", "expected_temperature"),
    [(92, Mode.AGGRESSIVE, 1.0), (55, Mode.NATURAL, 0.7), (12, Mode.ACADEMIC, 0.7)],
)
async def test_smart_humanize_picks_mode_from_analysis(make_engine, ai_score, expected_mode, expected_temperature):
    engine, backend = make_engine([_analysis(aiScore=ai_score), REWRITE_PAYLOAD])

    result = await engine.smart_humanize(AUDIT_TEXT)

    assert result.selected_mode is expected_mode
    assert result.rewrite.mode is expected_mode
    assert result.analysis.ai_score == ai_score
    assert [call["temperature"] for call in backend.calls] == [0.1, expected_temperature]


def test_select_mode_thresholds():
    assert select_mode(100) is Mode.AGGRESSIVE
    assert select_mode(70) is Mode.AGGRESSIVE
    assert select_mode(69.9) is Mode.NATURAL
    assert select_mode(40) is Mode.NATURAL
    assert select_mode(0) is Mode.ACADEMIC


@pytest.mark.asyncio
async def test_long_input_is_truncated_before_prompting(settings):
    backend = FakeBackend([REWRITE_PAYLOAD])
    engine = AuditEngine(backend, settings=settings.model_copy(update={"groq_max_input_chars": 50}))

    await engine.humanize("word " * 100, Mode.NATURAL)

    user_prompt = backend.calls[0]["messages"][1]["content"]
    assert "word " * 11 not in user_prompt
    assert "word " * 9 in user_prompt


@pytest.mark.asyncio
async def test_metrics_use_full_text_when_prompt_is_truncated(settings):
    text = ("Cats nap. " * 3) + " ".join(
        ["Institutional accountability frameworks necessitate comprehensive interdisciplinary evaluation"] * 4
    ) + "."
    backend = FakeBackend([ANALYSIS_PAYLOAD])
    engine = AuditEngine(backend, settings=settings.model_copy(update={"groq_max_input_chars": 60}))

    report = await engine.analyze(text)

    assert report.word_count == 34
    assert report.readability_score == pytest.approx(flesch_reading_ease(text))
    assert report.readability_score != pytest.approx(flesch_reading_ease(text[:60]))
    assert text not in backend.calls[0]["messages"][1]["content"]


@pytest.mark.asyncio
async def test_missing_credentials_fail_lazily(monkeypatch):
    for key in ("GROQ_API_KEY", "API_KEY", "GEMINI_API_KEY"):
        monkeypatch.delenv(key, raising=False)
    settings = Settings(GROQ_API_KEY="")

    engine = AuditEngine(ClientProvider(settings), settings=settings)

    with pytest.raises(ConfigurationError):
        await engine.analyze(AUDIT_TEXT)
