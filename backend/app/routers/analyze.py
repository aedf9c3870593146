"""
Chart / chat analysis endpoint.

The browser posts the whole conversation plus the user's own OpenRouter key;
the reply is the model's raw text (rendered as a signal card by the client
when it parses) or ``{"error": ...}``.
"""

import logging

from fastapi import APIRouter, BackgroundTasks

from app.config import settings
from app.engines.analysis import run_analysis
from app.engines.journal import store_analysis_log
from app.engines.signal_parser import journal_signal, looks_like_signal
from app.notifier import notify_signal
from app.schemas.analysis import AnalyzeRequest, AnalyzeResponse, ErrorResponse

router = APIRouter(tags=["analyze"])
logger = logging.getLogger(__name__)


@router.post(
    "/analyze",
    response_model=AnalyzeResponse,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def analyze(payload: AnalyzeRequest, background_tasks: BackgroundTasks):
    """Analyze a chart and/or chat turn and return the model's answer."""
    outcome = await run_analysis(payload)

    if looks_like_signal(outcome.raw_text):
        background_tasks.add_task(notify_signal, outcome.raw_text, payload.trading_mode)

    if payload.user_id and settings.journal_enabled:
        try:
            await store_analysis_log(
                user_id=payload.user_id,
                pair_name=outcome.parsed.pair,
                signal=journal_signal(outcome.parsed),
                analysis_result=outcome.raw_text,
                model_used=outcome.model,
                trading_mode=payload.trading_mode,
            )
        except Exception:
            logger.exception("Failed to store analysis log for user %s", payload.user_id)

    return AnalyzeResponse(
        result=outcome.raw_text,
        signal=outcome.parsed if outcome.parsed.is_valid else None,
    )
