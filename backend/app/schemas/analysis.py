from typing import Literal

from pydantic import BaseModel, Field

from app.schemas.signal import ParsedSignal


class ChatMessage(BaseModel):
    """One conversation turn as sent by the chat UI."""

    role: Literal["user", "assistant", "system"]
    content: str | list[dict] = ""
    image: str | None = None  # data URL of a previously attached chart


class AnalyzeRequest(BaseModel):
    """Body of POST /api/analyze.

    Field aliases follow the camelCase keys the browser client sends.
    """

    messages: list[ChatMessage] = Field(default_factory=list)
    api_key: str = Field("", alias="apiKey")
    model: str | None = None
    enable_news: bool = Field(False, alias="enableNews")
    news_sources: list[str] = Field(default_factory=list, alias="newsSources")
    trading_mode: str = Field("scalping", alias="tradingMode")
    technical_analysis: bool = Field(False, alias="technicalAnalysis")
    system_prompt: str | None = Field(None, alias="systemPrompt")
    reasoning_effort: Literal["low", "medium", "high"] | None = Field(None, alias="reasoningEffort")
    image: str | None = Field(None, description="Base64 or data-URL chart image for the current turn")
    user_id: str | None = Field(None, alias="userId")

    model_config = {"populate_by_name": True}


class AnalyzeResponse(BaseModel):
    result: str
    signal: ParsedSignal | None = None  # present only when the text parsed as a valid signal


class ErrorResponse(BaseModel):
    error: str
