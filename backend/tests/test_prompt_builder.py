from app.engines.prompt_builder import (
    DEFAULT_PERSONA,
    GLOBAL_NEWS_TOPIC,
    MODE_INSTRUCTIONS,
    OUTPUT_FORMAT,
    TECHNICAL_INSTRUCTIONS,
    TradingMode,
    build_prompt,
    build_system_prompt,
    extract_pair,
)
from app.engines.signal_parser import SIGNAL_FIELDS
from app.schemas.analysis import AnalyzeRequest, ChatMessage


class RecordingFetcher:
    def __init__(self, text="- [reuters.com] ECB holds rates: Euro steady."):
        self.text = text
        self.calls = []

    def __call__(self, topic, sources):
        self.calls.append((topic, list(sources)))
        return self.text


def _request(content="Analyze this", **kwargs):
    return AnalyzeRequest(
        messages=[ChatMessage(role="user", content=content)],
        api_key="sk-test",
        **kwargs,
    )


def test_news_topic_uses_pair_from_last_user_message():
    fetcher = RecordingFetcher()
    request = _request(
        "What's the outlook for EUR/USD?",
        enable_news=True,
        news_sources=["forexfactory.com"],
    )

    bundle = build_prompt(request, fetcher)

    assert fetcher.calls == [("EUR/USD", ["forexfactory.com"])]
    assert "LATEST NEWS CONTEXT (Sources: forexfactory.com):" in bundle.system_message
    assert bundle.system_message.endswith(fetcher.text)


def test_news_topic_falls_back_to_global_sentiment():
    fetcher = RecordingFetcher()
    bundle = build_prompt(_request("how is the market today?", enable_news=True), fetcher)

    assert fetcher.calls == [(GLOBAL_NEWS_TOPIC, [])]
    assert "(Sources: General)" in bundle.system_message


def test_news_disabled_never_fetches():
    fetcher = RecordingFetcher()
    bundle = build_prompt(_request("EURUSD?"), fetcher)

    assert fetcher.calls == []
    assert "LATEST NEWS CONTEXT" not in bundle.system_message


def test_topic_override():
    fetcher = RecordingFetcher()
    build_prompt(_request("TITLE: [x]", enable_news=True), fetcher, topic="Bitcoin ETF")
    assert fetcher.calls[0][0] == "Bitcoin ETF"


def test_extract_pair():
    assert extract_pair("Check XAUUSD on H1") == "XAUUSD"
    assert extract_pair("What's the outlook for EUR/USD?") == "EUR/USD"
    assert extract_pair("nothing here") is None


def test_persona_default_and_override():
    assert build_prompt(_request()).system_message.startswith(DEFAULT_PERSONA)

    custom = build_prompt(_request(system_prompt="You are a gold specialist.", reasoning_effort="high"))
    assert custom.system_message.startswith("You are a gold specialist. (Reasoning Effort: high)")


def test_trading_mode_blocks():
    scalping = build_system_prompt(None, TradingMode.SCALPING, False)
    swing = build_system_prompt(None, TradingMode.SWING, False)

    assert MODE_INSTRUCTIONS[TradingMode.SCALPING] in scalping
    assert MODE_INSTRUCTIONS[TradingMode.SWING] not in scalping
    assert MODE_INSTRUCTIONS[TradingMode.SWING] in swing


def test_unrecognized_mode_is_unspecified_and_adds_nothing():
    assert TradingMode.parse("long") is TradingMode.UNSPECIFIED
    assert TradingMode.parse("Scalping") is TradingMode.UNSPECIFIED
    assert TradingMode.parse(None) is TradingMode.UNSPECIFIED

    prompt = build_prompt(_request(trading_mode="position")).system_message
    assert prompt == build_system_prompt(None, TradingMode.UNSPECIFIED, False)
    for block in MODE_INSTRUCTIONS.values():
        assert block not in prompt


def test_technical_block_only_when_flagged():
    assert TECHNICAL_INSTRUCTIONS not in build_prompt(_request()).system_message

    prompt = build_prompt(_request(technical_analysis=True)).system_message
    assert TECHNICAL_INSTRUCTIONS in prompt
    for indicator in ("RSI", "MACD", "Bollinger Bands", "Elliott Wave"):
        assert indicator in prompt


def test_output_format_lists_every_parser_label_in_order():
    prompt = build_prompt(_request()).system_message
    assert OUTPUT_FORMAT in prompt

    positions = [OUTPUT_FORMAT.index(f"**{label}**:") for label in SIGNAL_FIELDS.values()]
    assert positions == sorted(positions)
    assert OUTPUT_FORMAT.index("**REASONING**:") > positions[-1]


def test_signal_template_can_be_left_out():
    bundle = build_prompt(_request(), signal_template=False)
    assert "**SIGNAL**" not in bundle.system_message


def test_historical_images_stripped_and_new_image_on_last_message():
    request = AnalyzeRequest(
        messages=[
            ChatMessage(role="user", content="First chart", image="data:image/png;base64,AAAA"),
            ChatMessage(role="assistant", content="**SIGNAL**: WAIT"),
            ChatMessage(role="user", content="And this one?"),
        ],
        api_key="sk-test",
        image="BBBB",
    )

    messages = build_prompt(request).messages

    assert messages[0] == {"role": "user", "content": "First chart"}
    assert messages[1] == {"role": "assistant", "content": "**SIGNAL**: WAIT"}
    assert messages[2] == {
        "role": "user",
        "content": [
            {"type": "text", "text": "And this one?"},
            {"type": "image_url", "image_url": {"url": "data:image/jpeg;base64,BBBB"}},
        ],
    }


def test_multipart_history_collapses_to_text():
    request = AnalyzeRequest(
        messages=[
            ChatMessage(
                role="user",
                content=[
                    {"type": "text", "text": "Look at this"},
                    {"type": "image_url", "image_url": {"url": "data:image/png;base64,AAAA"}},
                ],
            )
        ],
        api_key="sk-test",
    )
    assert build_prompt(request).messages == [{"role": "user", "content": "Look at this"}]


def test_provider_messages_put_system_first():
    bundle = build_prompt(_request("hi"))
    provider = bundle.provider_messages()

    assert provider[0] == {"role": "system", "content": bundle.system_message}
    assert provider[1:] == bundle.messages


def test_deterministic_for_identical_inputs():
    request = _request("GBPJPY setup?", enable_news=True, technical_analysis=True, trading_mode="swing")
    assert build_prompt(request, RecordingFetcher()) == build_prompt(request, RecordingFetcher())
