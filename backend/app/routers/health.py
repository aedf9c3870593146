import logging

from fastapi import APIRouter

from app.config import settings
from app.database import get_pool

router = APIRouter(tags=["health"])
logger = logging.getLogger(__name__)


@router.get("/health")
async def health_check():
    """
    System health check: status of each subsystem.

    Checks:
      - db: Can we query the journal database? (skipped when the journal is off)
      - webhook: Is a signal webhook configured?
    """
    health = {"status": "ok", "checks": {}}
    checks = health["checks"]

    if settings.journal_enabled:
        try:
            pool = await get_pool()
            async with pool.acquire() as conn:
                await conn.fetchval("SELECT 1")
            checks["db"] = True
        except Exception:
            logger.exception("Health check failed")
            checks["db"] = False
            health["status"] = "error"
    else:
        checks["db"] = None

    checks["journal"] = settings.journal_enabled
    checks["webhook"] = bool(settings.webhook_url and settings.webhook_enabled)
    return health
