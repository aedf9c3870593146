"""
Market news digest: asks the model for a fixed-format list of headlines
(with scraped search results as context) and parses it back into items.
"""

import re

from app.config import settings
from app.schemas.analysis import AnalyzeRequest, ChatMessage
from app.schemas.news import NewsItem

DIGEST_PERSONA = "You are a news aggregator. Provide strictly formatted news summaries."

FALLBACK_SNIPPET_CHARS = 200

_DIGEST_FIELDS = {
    "title": re.compile(r"TITLE:\s*(.*)"),
    "source": re.compile(r"SOURCE:\s*(.*)"),
    "time": re.compile(r"TIME:\s*(.*)"),
    "snippet": re.compile(r"SNIPPET:\s*(.*)"),
}


def digest_prompt(query: str) -> str:
    return f"""Find and summarize the top 4 latest and most important trading news articles about "{query}".

Format your response EXACTLY like this for each article (do not add any other text):

TITLE: [Article Title]
SOURCE: [Source Name, e.g. Bloomberg]
TIME: [e.g. 2 hours ago]
SNIPPET: [Brief summary, max 2 sentences]
---"""


def build_digest_request(query: str, api_key: str, model: str | None, sources: list[str] | None) -> AnalyzeRequest:
    return AnalyzeRequest(
        messages=[ChatMessage(role="user", content=digest_prompt(query))],
        api_key=api_key,
        model=model,
        enable_news=True,
        news_sources=sources if sources is not None else list(settings.news_default_sources),
        trading_mode="unspecified",
        system_prompt=DIGEST_PERSONA,
    )


def parse_news_digest(text: str, query: str) -> list[NewsItem]:
    """Split on ``---`` and keep articles that have both a title and a snippet."""
    items = []
    for article in text.split("---"):
        fields = {}
        for name, pattern in _DIGEST_FIELDS.items():
            match = pattern.search(article)
            if match and match.group(1).strip():
                fields[name] = match.group(1).strip()
        if "title" in fields and "snippet" in fields:
            items.append(NewsItem(**fields))

    if items:
        return items

    snippet = text[:FALLBACK_SNIPPET_CHARS] + "..."
    return [NewsItem(title=f"Market Update: {query}", source="AI Analyst", time="Just now", snippet=snippet)]
