from pydantic import BaseModel, Field


class NewsDigestRequest(BaseModel):
    """Body of POST /api/news."""

    query: str = "Crypto Forex Market"
    api_key: str = Field("", alias="apiKey")
    model: str | None = None
    news_sources: list[str] | None = Field(None, alias="newsSources")

    model_config = {"populate_by_name": True}


class NewsItem(BaseModel):
    title: str
    source: str = "Market News"
    time: str = "Today"
    snippet: str


class ModelInfo(BaseModel):
    id: str
    name: str
