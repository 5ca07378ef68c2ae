from __future__ import annotations

import time
import uuid

from fastapi import APIRouter, Depends

from textaudit.schemas.humanize import (
    HumanizeRequest,
    HumanizeResponse,
    SmartHumanizeRequest,
    SmartRewriteReport,
)
from textaudit.services.engine import AuditEngine, get_engine

router = APIRouter()


@router.post("/humanize", response_model=HumanizeResponse)
async def humanize_content(body: HumanizeRequest, engine: AuditEngine = Depends(get_engine)):
    start = time.perf_counter()
    report = await engine.humanize(body.text, body.mode)
    latency_ms = round((time.perf_counter() - start) * 1000, 3)

    return HumanizeResponse(
        **report.model_dump(),
        humanize_id=uuid.uuid4().hex,
        latency_ms=latency_ms,
    )


@router.post("/humanize/smart", response_model=SmartRewriteReport)
async def smart_humanize_content(body: SmartHumanizeRequest, engine: AuditEngine = Depends(get_engine)):
    return await engine.smart_humanize(body.text)
