"""
Run one chart analysis from the command line.

Usage:
    cd /opt/aitrade/backend
    source venv/bin/activate
    OPENROUTER_API_KEY=sk-or-... python -m app.scripts.analyze_chart \
        --image chart.png --mode swing --news "What's the outlook for EUR/USD?"
"""

import argparse
import asyncio
import base64
import logging
import mimetypes
import os
import sys

from app.engines.analysis import run_analysis
from app.errors import AnalysisError
from app.logging_config import setup_logging
from app.notifier import notify_signal
from app.schemas.analysis import AnalyzeRequest, ChatMessage

setup_logging("analyze_chart")
logger = logging.getLogger(__name__)


def _load_image(path: str) -> str:
    mime = mimetypes.guess_type(path)[0] or "image/png"
    with open(path, "rb") as f:
        data = base64.b64encode(f.read()).decode("utf-8")
    return f"data:{mime};base64,{data}"


def _parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Analyze a trading chart with an LLM.")
    parser.add_argument("question", nargs="?", default="", help="Question or note for this chart")
    parser.add_argument("--image", help="Path to a chart screenshot")
    parser.add_argument("--model", help="OpenRouter model id")
    parser.add_argument("--mode", default="scalping", help="scalping or swing")
    parser.add_argument("--technical", action="store_true", help="Require RSI/MACD/BB/Elliott Wave")
    parser.add_argument("--news", action="store_true", help="Add scraped news context")
    parser.add_argument("--source", action="append", default=[], help="News source domain (repeatable)")
    return parser.parse_args(argv)


async def main(argv=None) -> int:
    args = _parse_args(argv)

    request = AnalyzeRequest(
        messages=[ChatMessage(role="user", content=args.question)],
        api_key=os.environ.get("OPENROUTER_API_KEY", ""),
        model=args.model,
        enable_news=args.news,
        news_sources=args.source,
        trading_mode=args.mode,
        technical_analysis=args.technical,
        image=_load_image(args.image) if args.image else None,
    )

    try:
        outcome = await run_analysis(request)
    except AnalysisError as e:
        logger.error("Analysis failed: %s", e.message)
        print(f"Error: {e.message}. Please check your API key.")
        return 1

    parsed = outcome.parsed
    if parsed.is_valid:
        print(f"\n{parsed.pair}  {parsed.timeframe or ''}")
        print(f"  Signal:      {parsed.signal}  (confidence {parsed.confidence or '?'})")
        print(f"  Entry:       {parsed.entry}")
        print(f"  Take profit: {parsed.take_profit}")
        print(f"  Stop loss:   {parsed.stop_loss}")
        if parsed.reasoning:
            print(f"\n{parsed.reasoning}")
    else:
        print(outcome.raw_text)

    notify_signal(outcome.raw_text, args.mode)
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
