"""
Signal Parser

Turns a raw model completion into a ParsedSignal. The completion is expected
to follow the output template appended by prompt_builder.OUTPUT_FORMAT:

    **SIGNAL**: BUY
    **PAIR**: XAUUSD
    ...
    **REASONING**:
    free text

Grammar: any number of ``**LABEL**: value`` lines (label case-insensitive,
first occurrence wins) followed by an optional trailing reasoning block
introduced by the literal ``**REASONING**:`` marker. Missing labels are not
errors; they simply stay None. The raw text is never modified, so callers
fall back to it verbatim when the result is not valid.
"""

import re

from app.schemas.signal import ParsedSignal

# ParsedSignal attribute -> label as it appears in the output template
SIGNAL_FIELDS = {
    "signal": "SIGNAL",
    "pair": "PAIR",
    "timeframe": "TIMEFRAME",
    "entry": "ENTRY",
    "take_profit": "TAKE PROFIT",
    "stop_loss": "STOP LOSS",
    "confidence": "CONFIDENCE",
}

REASONING_MARKER = "**REASONING**:"

# \s* also crosses newlines: an empty "**SIGNAL**:" line takes the next line as its value
_FIELD_PATTERNS = {
    label: re.compile(rf"\*\*{re.escape(label)}\*\*:\s*(.*)", re.IGNORECASE)
    for label in SIGNAL_FIELDS.values()
}


def extract_field(text: str, label: str) -> str | None:
    """Return the trimmed value after ``**label**:`` or None."""
    pattern = _FIELD_PATTERNS.get(label)
    if pattern is None:
        pattern = re.compile(rf"\*\*{re.escape(label)}\*\*:\s*(.*)", re.IGNORECASE)
    match = pattern.search(text)
    if not match:
        return None
    value = match.group(1).strip()
    return value or None


def extract_reasoning(text: str) -> str | None:
    _, marker, rest = text.partition(REASONING_MARKER)
    if not marker:
        return None
    return rest.strip() or None


def parse_signal(raw_text: str) -> ParsedSignal:
    """Extract every labeled field plus the reasoning block from a completion."""
    values = {attr: extract_field(raw_text, label) for attr, label in SIGNAL_FIELDS.items()}
    return ParsedSignal(**values, reasoning=extract_reasoning(raw_text))


def classify_signal(signal: str | None) -> str:
    """Map a SIGNAL value to "buy", "sell" or "neutral".

    This is a case-insensitive substring test, not an exact token match:
    "I would NOT BUY" classifies as "buy". BUY is checked before SELL.
    """
    value = (signal or "").upper()
    if "BUY" in value:
        return "buy"
    if "SELL" in value:
        return "sell"
    return "neutral"


def journal_signal(parsed: ParsedSignal) -> str:
    """Signal label stored in the analysis journal (BUY, SELL or WAIT)."""
    return {"buy": "BUY", "sell": "SELL"}.get(classify_signal(parsed.signal), "WAIT")


def looks_like_signal(raw_text: str) -> bool:
    """Coarse notification trigger on the raw text (case-sensitive)."""
    return any(token in raw_text for token in ("SIGNAL", "BUY", "SELL"))
