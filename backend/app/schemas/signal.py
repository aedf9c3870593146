from pydantic import BaseModel


class ParsedSignal(BaseModel):
    """Labeled fields extracted from a model completion.

    Every field is optional; a signal is only usable as a card when both
    ``signal`` and ``pair`` were found. Otherwise the raw completion text
    is shown as-is.
    """

    signal: str | None = None
    pair: str | None = None
    timeframe: str | None = None
    entry: str | None = None
    take_profit: str | None = None
    stop_loss: str | None = None
    confidence: str | None = None
    reasoning: str | None = None

    model_config = {"frozen": True}

    @property
    def is_valid(self) -> bool:
        return bool(self.signal) and bool(self.pair)
