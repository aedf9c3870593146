from datetime import datetime

from pydantic import BaseModel


class AnalysisLogEntry(BaseModel):
    """One persisted analysis (append-only)."""

    id: int
    user_id: str
    pair_name: str | None = None
    signal: str  # BUY, SELL, WAIT
    analysis_result: str
    model_used: str | None = None
    trading_mode: str | None = None
    created_at: datetime


class AdminStats(BaseModel):
    total_analyses: int
    distinct_users: int
    signals: dict[str, int]
    analyses_last_24h: int
