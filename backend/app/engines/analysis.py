"""
Analysis pipeline

One chat submission, strictly sequential:

1. Validate input (credential, and some text or an image)
2. Build the prompt (optionally scraping news first)
3. Call the model once
4. Parse the completion into a ParsedSignal

Notification and journaling are side effects owned by the router; they
never change what this returns.
"""

import asyncio
import logging
from typing import NamedTuple

from app.config import settings
from app.engines.llm_gateway import call_model
from app.engines.prompt_builder import build_prompt, message_text
from app.engines.signal_parser import parse_signal
from app.errors import ValidationError
from app.schemas.analysis import AnalyzeRequest
from app.schemas.signal import ParsedSignal

logger = logging.getLogger(__name__)


class AnalysisOutcome(NamedTuple):
    raw_text: str
    parsed: ParsedSignal
    model: str


def validate_request(request: AnalyzeRequest) -> None:
    if not request.api_key:
        raise ValidationError("Missing API key")

    has_text = any(message_text(m.content).strip() for m in request.messages if m.role == "user")
    if not request.image and not has_text:
        raise ValidationError("Missing image or message")

    if request.image:
        # base64 inflates by 4/3
        max_chars = settings.max_image_size_mb * 1024 * 1024 * 4 // 3 + 64
        if len(request.image) > max_chars:
            raise ValidationError(f"Image too large (max {settings.max_image_size_mb} MB)")


async def run_analysis(
    request: AnalyzeRequest,
    *,
    topic: str | None = None,
    signal_template: bool = True,
) -> AnalysisOutcome:
    """Run the pipeline for one request. Raises ValidationError / UpstreamError."""
    validate_request(request)
    model = request.model or settings.default_model

    bundle = await asyncio.to_thread(
        build_prompt, request, topic=topic, signal_template=signal_template
    )
    raw_text = await asyncio.to_thread(
        call_model, bundle.system_message, bundle.messages, model, request.api_key
    )
    parsed = parse_signal(raw_text)

    logger.info(
        "analysis_complete",
        extra={
            "model": model,
            "trading_mode": request.trading_mode,
            "news": request.enable_news,
            "has_image": bool(request.image),
            "valid_signal": parsed.is_valid,
            "pair": parsed.pair,
        },
    )
    return AnalysisOutcome(raw_text=raw_text, parsed=parsed, model=model)
