from fastapi import APIRouter

from textaudit.api.v1 import analyze, humanize

router = APIRouter()
router.include_router(analyze.router, tags=["analyze"])
router.include_router(humanize.router, tags=["humanize"])
