"""
Analysis journal persistence.

Append-only log of completed analyses (analysis_logs table). Entries are
written once and never updated or deleted here.
"""

import logging

from app.database import get_pool
from app.schemas.journal import AdminStats, AnalysisLogEntry

logger = logging.getLogger(__name__)


async def store_analysis_log(
    user_id: str,
    pair_name: str | None,
    signal: str,
    analysis_result: str,
    model_used: str | None,
    trading_mode: str | None,
) -> int:
    pool = await get_pool()
    async with pool.acquire() as conn:
        log_id = await conn.fetchval(
            """
            INSERT INTO analysis_logs
                (user_id, pair_name, signal, analysis_result, model_used, trading_mode, created_at)
            VALUES ($1, $2, $3, $4, $5, $6, NOW())
            RETURNING id
            """,
            user_id,
            pair_name,
            signal,
            analysis_result,
            model_used,
            trading_mode,
        )
    logger.info("journal_entry", extra={"log_id": log_id, "pair": pair_name, "signal": signal})
    return log_id


async def fetch_analysis_logs(user_id: str, limit: int = 100) -> list[AnalysisLogEntry]:
    """A user's journal, newest first."""
    pool = await get_pool()
    async with pool.acquire() as conn:
        rows = await conn.fetch(
            """
            SELECT id, user_id, pair_name, signal, analysis_result,
                   model_used, trading_mode, created_at
            FROM analysis_logs
            WHERE user_id = $1
            ORDER BY created_at DESC
            LIMIT $2
            """,
            user_id,
            limit,
        )
    return [AnalysisLogEntry(**dict(r)) for r in rows]


async def fetch_admin_stats() -> AdminStats:
    pool = await get_pool()
    async with pool.acquire() as conn:
        totals = await conn.fetchrow(
            """
            SELECT COUNT(*) AS total,
                   COUNT(DISTINCT user_id) AS users,
                   COUNT(*) FILTER (WHERE created_at > NOW() - INTERVAL '24 hours') AS recent
            FROM analysis_logs
            """
        )
        by_signal = await conn.fetch(
            "SELECT signal, COUNT(*) AS n FROM analysis_logs GROUP BY signal"
        )

    return AdminStats(
        total_analyses=totals["total"],
        distinct_users=totals["users"],
        signals={r["signal"]: r["n"] for r in by_signal},
        analyses_last_24h=totals["recent"],
    )
