import logging

from fastapi import APIRouter

from app.engines.analysis import run_analysis
from app.engines.llm_gateway import list_models
from app.engines.news_digest import build_digest_request, parse_news_digest
from app.schemas.analysis import ErrorResponse
from app.schemas.news import ModelInfo, NewsDigestRequest, NewsItem

router = APIRouter(tags=["news"])
logger = logging.getLogger(__name__)


@router.post(
    "/news",
    response_model=list[NewsItem],
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def news_digest(payload: NewsDigestRequest):
    """Summarize the latest headlines for a query (web search forced on)."""
    request = build_digest_request(payload.query, payload.api_key, payload.model, payload.news_sources)
    outcome = await run_analysis(request, topic=payload.query, signal_template=False)
    items = parse_news_digest(outcome.raw_text, payload.query)
    logger.info("news_digest", extra={"query": payload.query, "items": len(items)})
    return items


@router.get("/models", response_model=list[ModelInfo])
def get_models():
    """Selectable models: the built-in list plus part of the provider catalog."""
    return list_models()
