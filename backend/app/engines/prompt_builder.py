"""
Prompt Assembler

Builds the system message and the provider-ready message list for one chat
turn. The output-format block at the end of the system message is the
contract signal_parser depends on: label names and the ``**LABEL**:``
punctuation must stay in sync with signal_parser.SIGNAL_FIELDS.

Given identical inputs (and identical news text) the output is identical;
the optional news fetch is the only I/O.
"""

import logging
import re
from enum import Enum

from pydantic import BaseModel

from app.engines.news_fetcher import fetch_news
from app.schemas.analysis import AnalyzeRequest, ChatMessage

logger = logging.getLogger(__name__)

DEFAULT_PERSONA = "You are a professional crypto & forex trader. Analyze charts with precision."

GLOBAL_NEWS_TOPIC = "Global Market Sentiment"

DEFAULT_IMAGE_PROMPT = "Analyze this chart."

# Three to six capitals, optionally "/" and another three to six (EURUSD, EUR/USD, XAUUSD)
PAIR_PATTERN = re.compile(r"\b[A-Z]{3,6}(?:/[A-Z]{3,6})?\b")


class TradingMode(str, Enum):
    SCALPING = "scalping"
    SWING = "swing"
    UNSPECIFIED = "unspecified"

    @classmethod
    def parse(cls, value: str | None) -> "TradingMode":
        """Exact match on the mode name; anything else is UNSPECIFIED."""
        for mode in (cls.SCALPING, cls.SWING):
            if value == mode.value:
                return mode
        return cls.UNSPECIFIED


MODE_INSTRUCTIONS = {
    TradingMode.SCALPING: """
TRADING MODE: SCALPING
- Focus on short timeframes (M1, M5, M15).
- Prioritize momentum, order flow, and intraday liquidity zones.
- Keep stop losses tight and targets realistic for a quick in-and-out trade.""",
    TradingMode.SWING: """
TRADING MODE: SWING / LONG TERM
- Focus on higher timeframes (H4, D1, W1).
- Weigh macro drivers, market structure, and major support/resistance.
- Allow wider stops and targets sized for a multi-day holding period.""",
}

TECHNICAL_INSTRUCTIONS = """
TECHNICAL ANALYSIS REQUIREMENTS:
You MUST reference each of the following in your reasoning:
- RSI (overbought/oversold, divergences)
- MACD (crossovers, histogram momentum)
- Bollinger Bands (squeeze, band walks, mean reversion)
- Elliott Wave (current wave count and what it implies)"""

OUTPUT_FORMAT = """
Structure your response EXACTLY like this, each field on its own line:

**SIGNAL**: [BUY / SELL / WAIT]
**PAIR**: [e.g. EUR/USD]
**TIMEFRAME**: [e.g. H1]
**ENTRY**: [price or zone]
**TAKE PROFIT**: [price]
**STOP LOSS**: [price]
**CONFIDENCE**: [0-100%]

**REASONING**:
[Concise explanation combining chart structure and any news context]"""


class PromptBundle(BaseModel):
    system_message: str
    messages: list[dict]

    def provider_messages(self) -> list[dict]:
        """System message first, then the conversation, as the provider expects."""
        return [{"role": "system", "content": self.system_message}, *self.messages]


def message_text(content) -> str:
    """Plain text of a message whose content may be a multi-part list."""
    if isinstance(content, str):
        return content
    parts = [p.get("text", "") for p in content if isinstance(p, dict) and p.get("type") == "text"]
    return "\n".join(p for p in parts if p)


def extract_pair(text: str) -> str | None:
    match = PAIR_PATTERN.search(text or "")
    return match.group(0) if match else None


def news_topic(messages: list[ChatMessage]) -> str:
    """Instrument named in the most recent user message, or the global fallback."""
    for msg in reversed(messages):
        if msg.role == "user":
            return extract_pair(message_text(msg.content)) or GLOBAL_NEWS_TOPIC
    return GLOBAL_NEWS_TOPIC


def image_url(image: str) -> str:
    """Data URL for an uploaded chart; bare base64 is assumed to be JPEG."""
    if image.startswith(("data:", "http://", "https://")):
        return image
    return f"data:image/jpeg;base64,{image}"


def build_system_prompt(
    persona: str | None,
    mode: TradingMode,
    technical_analysis: bool,
    reasoning_effort: str | None = None,
    signal_template: bool = True,
) -> str:
    parts = [persona or DEFAULT_PERSONA]
    if reasoning_effort:
        parts[0] = f"{parts[0]} (Reasoning Effort: {reasoning_effort})"

    mode_block = MODE_INSTRUCTIONS.get(mode)
    if mode_block:
        parts.append(mode_block)
    if technical_analysis:
        parts.append(TECHNICAL_INSTRUCTIONS)
    if signal_template:
        parts.append(OUTPUT_FORMAT)
    return "\n".join(parts)


def build_messages(messages: list[ChatMessage], new_image: str | None) -> list[dict]:
    """Strip historical images; attach the current turn's image to the last message."""
    out = [{"role": m.role, "content": message_text(m.content)} for m in messages]

    if new_image and out:
        last = out[-1]
        last["content"] = [
            {"type": "text", "text": last["content"] or DEFAULT_IMAGE_PROMPT},
            {"type": "image_url", "image_url": {"url": image_url(new_image)}},
        ]
    elif new_image:
        out.append({
            "role": "user",
            "content": [
                {"type": "text", "text": DEFAULT_IMAGE_PROMPT},
                {"type": "image_url", "image_url": {"url": image_url(new_image)}},
            ],
        })
    return out


def build_prompt(
    request: AnalyzeRequest,
    news_fetcher=None,
    *,
    topic: str | None = None,
    signal_template: bool = True,
) -> PromptBundle:
    """Assemble the system message and message list for one analysis request.

    ``news_fetcher`` defaults to news_fetcher.fetch_news and is only called
    when news is enabled. ``topic`` overrides the pair detected in the last
    user message. ``signal_template=False`` leaves out the signal output
    format for free-form requests such as the news digest.
    """
    mode = TradingMode.parse(request.trading_mode)
    system_message = build_system_prompt(
        request.system_prompt,
        mode,
        request.technical_analysis,
        request.reasoning_effort,
        signal_template,
    )

    if request.enable_news:
        topic = topic or news_topic(request.messages)
        news = (news_fetcher or fetch_news)(topic, request.news_sources)
        sources_label = ", ".join(request.news_sources) if request.news_sources else "General"
        system_message += f"\n\nLATEST NEWS CONTEXT (Sources: {sources_label}):\n{news}"
        logger.debug("News context attached for topic %r", topic)

    return PromptBundle(
        system_message=system_message,
        messages=build_messages(request.messages, request.image),
    )
