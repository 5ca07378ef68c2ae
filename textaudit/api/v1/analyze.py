from __future__ import annotations

import time
import uuid

from fastapi import APIRouter, Depends

from textaudit.core.config import get_settings
from textaudit.schemas.analyze import AnalyzeRequest, AnalyzeResponse
from textaudit.services.engine import AuditEngine, get_engine

router = APIRouter()


@router.post("/analyze", response_model=AnalyzeResponse)
async def analyze_content(body: AnalyzeRequest, engine: AuditEngine = Depends(get_engine)):
    settings = get_settings()
    # Full audits need more context than the engine's own minimum.
    engine.validate_text(body.text, min_chars=settings.audit_min_text_chars)

    start = time.perf_counter()
    report = await engine.analyze(body.text)
    latency_ms = round((time.perf_counter() - start) * 1000, 3)

    return AnalyzeResponse(
        **report.model_dump(),
        analysis_id=uuid.uuid4().hex,
        latency_ms=latency_ms,
    )
