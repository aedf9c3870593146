import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from app.auth import require_api_key
from app.config import settings
from app.engines.journal import fetch_admin_stats, fetch_analysis_logs
from app.schemas.journal import AdminStats, AnalysisLogEntry

router = APIRouter(tags=["journal"])
logger = logging.getLogger(__name__)


@router.get("/journal/{user_id}", response_model=list[AnalysisLogEntry])
async def get_journal(user_id: str, limit: int = Query(default=100, le=500)):
    """Return a user's past analyses, most recent first."""
    if not settings.journal_enabled:
        raise HTTPException(status_code=404, detail="Journal is disabled")
    return await fetch_analysis_logs(user_id, limit)


@router.get("/admin/stats", response_model=AdminStats)
async def admin_stats(api_key: str = Depends(require_api_key)):
    """Usage totals for the admin panel."""
    return await fetch_admin_stats()
